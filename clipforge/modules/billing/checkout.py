"""Stripe Checkout sessions for buying credit packs."""

import stripe  # type: ignore
from stripe import StripeError  # type: ignore

from clipforge.api.core.exceptions.base import (
    ConfigurationError,
    ExternalServiceError,
    InvalidCreditAmountError,
)
from clipforge.core.base import BaseService
from clipforge.core.context import Identity
from clipforge.modules.billing.constants import METADATA_CREDITS, METADATA_USER_ID
from clipforge.utils.settings.stripe import StripeSettings


class CheckoutService(BaseService):
    def __init__(self, settings: StripeSettings):
        super().__init__()
        self.settings = settings

    async def create_checkout_session(
        self, identity: Identity, price_id: str, credits: int
    ) -> stripe.checkout.Session:
        """One-off payment whose completion webhook credits ``credits`` to the user."""
        api_key = self.settings.STRIPE_SECRET_KEY.get_secret_value()
        if not api_key:
            raise ConfigurationError("STRIPE_SECRET_KEY is not configured")

        if isinstance(credits, bool) or not isinstance(credits, int) or credits <= 0:
            raise InvalidCreditAmountError(credits)

        params = {
            "api_key": api_key,
            "mode": "payment",
            "payment_method_types": ["card"],
            "line_items": [{"price": price_id, "quantity": 1}],
            "success_url": self.settings.STRIPE_SUCCESS_URL,
            "cancel_url": self.settings.STRIPE_CANCEL_URL,
            "client_reference_id": identity.user_id,
            "metadata": {
                METADATA_USER_ID: identity.user_id,
                METADATA_CREDITS: str(credits),
            },
        }
        if identity.email:
            params["customer_email"] = identity.email

        try:
            checkout_session = stripe.checkout.Session.create(**params)
        except StripeError as e:
            self.logger.error(
                "Failed to create checkout session",
                user_id=identity.user_id,
                price_id=price_id,
                error=str(e),
            )
            raise ExternalServiceError("stripe", f"Failed to create checkout session: {e}")

        self.logger.info(
            "Checkout session created",
            user_id=identity.user_id,
            session_id=checkout_session.id,
            credits=credits,
        )
        return checkout_session
