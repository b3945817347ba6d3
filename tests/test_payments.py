"""
Payment gateway tests with the Stripe client patched out.
"""
from types import SimpleNamespace
from unittest.mock import patch

import pytest
import stripe

from errors import GatewayError
from payments import PaymentGateway, to_minor_units


@pytest.mark.parametrize("amount, expected", [(1, 100), (19.99, 1999), (0.1, 10), (250, 25000)])
def test_to_minor_units(amount, expected):
    assert to_minor_units(amount) == expected


class TestPaymentGateway:

    def test_create_payment_intent(self):
        intent = SimpleNamespace(id="pi_123", client_secret="pi_123_secret", status="succeeded")
        with patch("payments.stripe.PaymentIntent.create", return_value=intent) as create:
            confirmation = PaymentGateway("sk_test").create_payment_intent(
                2500, "usd", "pm_card_visa", {"campaignId": "c1"})

        assert confirmation.payment_intent_id == "pi_123"
        assert confirmation.client_secret == "pi_123_secret"
        kwargs = create.call_args.kwargs
        assert kwargs["amount"] == 2500
        assert kwargs["confirm"] is True
        assert kwargs["payment_method"] == "pm_card_visa"
        assert kwargs["metadata"] == {"campaignId": "c1"}
        assert kwargs["automatic_payment_methods"] == {"enabled": True, "allow_redirects": "never"}

    def test_stripe_error_becomes_gateway_error(self):
        error = stripe.CardError("Your card was declined.", param="payment_method", code="card_declined")
        with patch("payments.stripe.PaymentIntent.create", side_effect=error):
            with pytest.raises(GatewayError) as exc:
                PaymentGateway("sk_test").create_payment_intent(100, "usd", "pm_card_visa", {})
        assert "declined" in exc.value.message

    def test_failed_status(self):
        intent = SimpleNamespace(id="pi_1", client_secret="s", status="requires_payment_method")
        with patch("payments.stripe.PaymentIntent.create", return_value=intent):
            with pytest.raises(GatewayError):
                PaymentGateway("sk_test").create_payment_intent(100, "usd", "pm_card_visa", {})

    def test_unconfigured_gateway(self):
        with patch("payments.stripe.PaymentIntent.create") as create:
            with pytest.raises(GatewayError):
                PaymentGateway("").create_payment_intent(100, "usd", "pm_card_visa", {})
        create.assert_not_called()
