"""Payment endpoints: Stripe webhook and checkout session creation."""

from fastapi import APIRouter, Request

from clipforge.api.core.constants import STRIPE_SIGNATURE_HEADER
from clipforge.api.core.dependencies import (
    CheckoutServiceDep,
    CurrentIdentityDep,
    WebhookProcessorDep,
)
from clipforge.api.core.messages import APIResponse, MessageCode
from .schemas import (
    CheckoutSessionData,
    CheckoutSessionRequest,
    CheckoutSessionResponse,
    WebhookAck,
    WebhookAckResponse,
)

router = APIRouter(tags=["payments"])


@router.post("/payment-webhook", response_model=WebhookAckResponse)
async def payment_webhook(
    request: Request,
    processor: WebhookProcessorDep,
) -> WebhookAckResponse:
    """Apply a signed Stripe event to the credit ledger.

    Verified events are always acknowledged with 200, including rejected and
    duplicate ones, so Stripe stops redelivering them.
    """
    payload = await request.body()
    signature = request.headers.get(STRIPE_SIGNATURE_HEADER)

    outcome = await processor.process(payload, signature)
    return APIResponse.success(
        message_code=MessageCode.WEBHOOK_RECEIVED,
        data=WebhookAck(received=True, status=outcome.status),
    )


@router.post("/checkout-session", response_model=CheckoutSessionResponse)
async def create_checkout_session(
    body: CheckoutSessionRequest,
    identity: CurrentIdentityDep,
    checkout_service: CheckoutServiceDep,
) -> CheckoutSessionResponse:
    """Start a Stripe Checkout for a credit pack."""
    checkout_session = await checkout_service.create_checkout_session(
        identity, body.price_id, body.credits_amount
    )
    return APIResponse.success(
        message_code=MessageCode.CREATED,
        data=CheckoutSessionData(
            session_id=checkout_session.id, url=checkout_session.url
        ),
    )
