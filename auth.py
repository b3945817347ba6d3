"""
Session tokens: issue a signed JWT into a cookie and verify it on protected routes.
"""
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, Header, Request
from jose import JWTError, jwt
from pydantic import BaseModel

from config import Settings, get_settings
from errors import AuthenticationError, PermissionDeniedError


class AuthUser(BaseModel):
    email: str


def create_access_token(email: str, settings: Settings, expires_delta: Optional[timedelta] = None) -> str:
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=settings.token_expire_minutes))
    return jwt.encode({"sub": email, "exp": expire}, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str, settings: Settings) -> Optional[dict]:
    try:
        return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None


def get_current_user(
    request: Request,
    authorization: Optional[str] = Header(None),
    settings: Settings = Depends(get_settings),
) -> AuthUser:
    token = request.cookies.get(settings.cookie_name)
    if not token and authorization and authorization.lower().startswith("bearer "):
        token = authorization[7:].strip()
    if not token:
        raise AuthenticationError("Unauthorized access")
    payload = decode_access_token(token, settings)
    if not payload or not payload.get("sub"):
        raise PermissionDeniedError("Forbidden access")
    return AuthUser(email=payload["sub"])


def ensure_same_user(user: AuthUser, email: str) -> None:
    if user.email != email:
        raise PermissionDeniedError("Forbidden access")
