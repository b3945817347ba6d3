"""
Shared fixtures: a fake database, a recording payment gateway and a
TestClient wired to both.
"""
import sys
from pathlib import Path

# Add project root to sys.path so the flat modules can be imported
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

import pytest
from fastapi.testclient import TestClient

from auth import create_access_token
from config import Settings, get_settings
from database import get_db
from payments import get_payment_gateway
from tests.fakes import FakeDatabase, FakeGateway


# ============================================================================
# FIXTURES
# ============================================================================

@pytest.fixture
def test_settings():
    return Settings(jwt_secret="test-secret", stripe_secret_key="sk_test_123", currency="usd")


@pytest.fixture
def fake_db():
    return FakeDatabase()


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def client(fake_db, gateway, test_settings):
    from main import app

    app.dependency_overrides[get_db] = lambda: fake_db
    app.dependency_overrides[get_payment_gateway] = lambda: gateway
    app.dependency_overrides[get_settings] = lambda: test_settings
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers(test_settings):
    def make(email="donor@example.com"):
        return {"Authorization": f"Bearer {create_access_token(email, test_settings)}"}
    return make


@pytest.fixture
def campaign_payload():
    return {
        "title": "Shelter Roof Repair",
        "shortDescription": "Fix the leaking roof",
        "longDescription": "The kennel roof leaks every time it rains.",
        "imageUrl": "https://example.com/roof.jpg",
        "goalAmount": 1000,
        "lastDate": "2026-12-31",
    }
