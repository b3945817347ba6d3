"""
Stripe payment gateway used to capture donations.
"""
from typing import Dict, Optional

import stripe
import structlog
from pydantic import BaseModel

from config import get_settings
from errors import GatewayError

logger = structlog.get_logger(__name__)

FAILED_STATUSES = {"requires_payment_method", "canceled"}


class PaymentConfirmation(BaseModel):
    payment_intent_id: str
    client_secret: Optional[str] = None
    status: str


def to_minor_units(amount: float) -> int:
    """Convert a currency amount to cents."""
    return int(round(amount * 100))


class PaymentGateway:
    def __init__(self, api_key: str):
        self.api_key = api_key

    def create_payment_intent(self, amount: int, currency: str, payment_method: str,
                              metadata: Dict[str, str]) -> PaymentConfirmation:
        """Create and confirm a payment intent for `amount` minor units.

        Redirect-based payment methods are disabled, so the intent either
        settles synchronously or fails here.
        """
        if not self.api_key:
            raise GatewayError("Payment gateway is not configured")
        try:
            intent = stripe.PaymentIntent.create(
                api_key=self.api_key,
                amount=amount,
                currency=currency,
                payment_method=payment_method,
                confirm=True,
                metadata=metadata,
                automatic_payment_methods={
                    "enabled": True,
                    "allow_redirects": "never",
                },
            )
        except stripe.StripeError as e:
            logger.error("Failed to create payment intent", error=str(e), amount=amount)
            raise GatewayError(getattr(e, "user_message", None) or str(e))

        if intent.status in FAILED_STATUSES:
            logger.error("Payment intent not completed", payment_intent_id=intent.id, status=intent.status)
            raise GatewayError(f"Payment was not completed: {intent.status}")

        logger.info("Payment intent confirmed", payment_intent_id=intent.id, status=intent.status)
        return PaymentConfirmation(payment_intent_id=intent.id, client_secret=intent.client_secret,
                                   status=intent.status)


_gateway: Optional[PaymentGateway] = None


def init_gateway() -> PaymentGateway:
    global _gateway
    _gateway = PaymentGateway(get_settings().stripe_secret_key)
    return _gateway


def get_payment_gateway() -> PaymentGateway:
    if _gateway is None:
        return init_gateway()
    return _gateway
