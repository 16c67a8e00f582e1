"""Tests for POST /payment-webhook and POST /checkout-session."""

from unittest.mock import MagicMock, patch

import pytest

from clipforge.api.core.messages import MessageCode
from tests.unit.modules.billing.stripe_events import (
    PAYMENT_INTENT_SUCCEEDED_EVENT,
    checkout_completed_event,
    encode,
    sign,
)
from tests.utils.assertions import assert_error_response, assert_success_response
from tests.utils.constants import TEST_USER_ID, TEST_WEBHOOK_SECRET

SESSION_CREATE = "clipforge.modules.billing.checkout.stripe.checkout.Session.create"


async def post_event(client, event: dict, secret: str = TEST_WEBHOOK_SECRET):
    payload = encode(event)
    return await client.post(
        "/payment-webhook",
        content=payload,
        headers={
            "Stripe-Signature": sign(payload, secret),
            "Content-Type": "application/json",
        },
    )


class TestPaymentWebhook:
    @pytest.mark.asyncio
    async def test_checkout_completed_credits_account(
        self, public_client, test_account, read_balance
    ):
        event = checkout_completed_event(user_id=TEST_USER_ID, credits="10")

        response = await post_event(public_client, event)

        assert_success_response(
            response,
            MessageCode.WEBHOOK_RECEIVED,
            data_assertions={"received": True, "status": "applied"},
        )
        assert await read_balance(TEST_USER_ID) == 13

    @pytest.mark.asyncio
    async def test_redelivery_is_acknowledged_once(self, public_client, read_balance):
        event = checkout_completed_event(event_id="evt_redelivered", credits="5")

        first = await post_event(public_client, event)
        second = await post_event(public_client, event)

        assert_success_response(
            first, MessageCode.WEBHOOK_RECEIVED, data_assertions={"status": "applied"}
        )
        assert_success_response(
            second, MessageCode.WEBHOOK_RECEIVED, data_assertions={"status": "duplicate"}
        )
        assert await read_balance("auth0|buyer") == 5

    @pytest.mark.asyncio
    async def test_bad_metadata_is_acknowledged(self, public_client, read_balance):
        response = await post_event(
            public_client, checkout_completed_event(credits="lots")
        )

        assert_success_response(
            response,
            MessageCode.WEBHOOK_RECEIVED,
            data_assertions={"status": "rejected"},
        )
        assert await read_balance("auth0|buyer") is None

    @pytest.mark.asyncio
    async def test_other_events_are_ignored(self, public_client):
        response = await post_event(public_client, PAYMENT_INTENT_SUCCEEDED_EVENT)

        assert_success_response(
            response, MessageCode.WEBHOOK_RECEIVED, data_assertions={"status": "ignored"}
        )

    @pytest.mark.asyncio
    async def test_bad_signature(self, public_client, read_balance):
        response = await post_event(
            public_client, checkout_completed_event(), secret="whsec_forged"
        )

        assert_error_response(response, MessageCode.INVALID_SIGNATURE, 400)
        assert await read_balance("auth0|buyer") is None

    @pytest.mark.asyncio
    async def test_missing_signature(self, public_client):
        response = await public_client.post(
            "/payment-webhook", content=encode(checkout_completed_event())
        )

        assert_error_response(response, MessageCode.INVALID_SIGNATURE, 400)


class TestCheckoutSession:
    @pytest.mark.asyncio
    async def test_creates_session(self, authorized_client):
        created = MagicMock(id="cs_test_9", url="https://checkout.stripe.test/cs_test_9")

        with patch(SESSION_CREATE, return_value=created) as create:
            response = await authorized_client.post(
                "/checkout-session",
                json={"priceId": "price_pack_10", "creditsAmount": 10},
            )

        assert_success_response(
            response,
            MessageCode.CREATED,
            data_assertions={
                "session_id": "cs_test_9",
                "url": "https://checkout.stripe.test/cs_test_9",
            },
        )
        assert create.call_args.kwargs["metadata"] == {
            "userId": TEST_USER_ID,
            "creditsToAdd": "10",
        }

    @pytest.mark.asyncio
    async def test_rejects_non_positive_credits(self, authorized_client):
        with patch(SESSION_CREATE) as create:
            response = await authorized_client.post(
                "/checkout-session",
                json={"priceId": "price_pack_10", "creditsAmount": 0},
            )

        assert_error_response(response, MessageCode.INVALID_INPUT, 422)
        create.assert_not_called()

    @pytest.mark.asyncio
    async def test_requires_authentication(self, public_client):
        response = await public_client.post(
            "/checkout-session",
            json={"priceId": "price_pack_10", "creditsAmount": 10},
        )

        assert_error_response(response, MessageCode.AUTH_REQUIRED, 401)
