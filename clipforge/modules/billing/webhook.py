"""Signed payment-provider events that top up the credit ledger."""

from dataclasses import dataclass

import orjson
import stripe  # type: ignore

from clipforge.api.core.exceptions.base import (
    ConfigurationError,
    SignatureVerificationError,
)
from clipforge.core.base import BaseService
from clipforge.modules.billing.constants import (
    CHECKOUT_COMPLETED_EVENT,
    METADATA_CREDITS,
    METADATA_USER_ID,
    WebhookStatus,
)
from clipforge.modules.ledger import LedgerStore
from clipforge.utils.settings.stripe import StripeSettings


@dataclass(frozen=True)
class WebhookOutcome:
    status: WebhookStatus
    event_id: str | None = None
    event_type: str | None = None
    user_id: str | None = None
    credits: int | None = None
    reason: str | None = None


def parse_credit_amount(value) -> int | None:
    """Positive integer from a metadata value sent as a string or a number."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        amount = value
    elif isinstance(value, str) and value.strip().isascii() and value.strip().isdigit():
        amount = int(value)
    else:
        return None
    return amount if amount > 0 else None


class PaymentWebhookProcessor(BaseService):
    def __init__(self, ledger: LedgerStore, settings: StripeSettings):
        super().__init__()
        self.ledger = ledger
        self.settings = settings

    def verify(self, payload: bytes, signature: str | None) -> dict:
        """Check the signature header against the raw body and decode it."""
        secret = self.settings.STRIPE_WEBHOOK_SECRET.get_secret_value()
        if not secret:
            raise ConfigurationError("STRIPE_WEBHOOK_SECRET is not configured")

        if not signature:
            raise SignatureVerificationError("Missing signature header")

        try:
            body = payload.decode("utf-8")
        except UnicodeDecodeError:
            raise SignatureVerificationError("Payload is not valid UTF-8")

        try:
            stripe.WebhookSignature.verify_header(
                body,
                signature,
                secret,
                self.settings.STRIPE_WEBHOOK_TOLERANCE,
            )
        except stripe.SignatureVerificationError as e:
            self.logger.warning("Webhook signature rejected", error=str(e))
            raise SignatureVerificationError(str(e))

        try:
            event = orjson.loads(payload)
        except orjson.JSONDecodeError:
            raise SignatureVerificationError("Payload is not valid JSON")

        if not isinstance(event, dict):
            raise SignatureVerificationError("Payload is not a JSON object")
        return event

    async def process(self, payload: bytes, signature: str | None) -> WebhookOutcome:
        event = self.verify(payload, signature)
        event_type = event.get("type")

        handlers = {
            CHECKOUT_COMPLETED_EVENT: self._handle_checkout_completed,
        }

        handler = handlers.get(event_type)
        if handler is None:
            self.logger.info("Ignoring webhook event", event_type=event_type)
            return WebhookOutcome(
                WebhookStatus.IGNORED, event_id=event.get("id"), event_type=event_type
            )

        return await handler(event)

    async def _handle_checkout_completed(self, event: dict) -> WebhookOutcome:
        event_id = event.get("id")
        event_type = event.get("type")
        session = (event.get("data") or {}).get("object") or {}
        metadata = session.get("metadata") or {}

        user_id = metadata.get(METADATA_USER_ID)
        credits = parse_credit_amount(metadata.get(METADATA_CREDITS))

        reason = None
        if not event_id:
            reason = "Event has no id"
        elif not user_id or not isinstance(user_id, str):
            reason = f"Missing {METADATA_USER_ID} in checkout metadata"
        elif credits is None:
            reason = f"Invalid {METADATA_CREDITS} in checkout metadata"

        if reason:
            self.logger.error(
                "Checkout event rejected",
                event_id=event_id,
                reason=reason,
                metadata=metadata,
            )
            return WebhookOutcome(
                WebhookStatus.REJECTED,
                event_id=event_id,
                event_type=event_type,
                reason=reason,
            )

        applied = await self.ledger.credit(user_id, credits, event_id=event_id)
        if not applied:
            self.logger.info(
                "Duplicate checkout event", event_id=event_id, user_id=user_id
            )
            return WebhookOutcome(
                WebhookStatus.DUPLICATE,
                event_id=event_id,
                event_type=event_type,
                user_id=user_id,
                credits=credits,
            )

        self.logger.info(
            "Credits added from checkout",
            event_id=event_id,
            user_id=user_id,
            credits=credits,
        )
        return WebhookOutcome(
            WebhookStatus.APPLIED,
            event_id=event_id,
            event_type=event_type,
            user_id=user_id,
            credits=credits,
        )
