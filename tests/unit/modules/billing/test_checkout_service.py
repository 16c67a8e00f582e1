"""Checkout session creation tests with Stripe mocked out."""

from unittest.mock import MagicMock, patch

import pytest
from stripe import StripeError  # type: ignore

from clipforge.api.core.exceptions.base import (
    ConfigurationError,
    ExternalServiceError,
    InvalidCreditAmountError,
)
from clipforge.api.core.messages import MessageCode
from clipforge.core.context import Identity
from clipforge.modules.billing.checkout import CheckoutService
from clipforge.utils.settings.stripe import StripeSettings
from tests.utils.assertions import assert_clipforge_exception

SESSION_CREATE = "clipforge.modules.billing.checkout.stripe.checkout.Session.create"


@pytest.fixture
def checkout_service(stripe_settings) -> CheckoutService:
    return CheckoutService(stripe_settings)


@pytest.fixture
def identity() -> Identity:
    return Identity(user_id="auth0|buyer", email="buyer@example.com")


@pytest.mark.asyncio
async def test_session_carries_credit_metadata(checkout_service, identity):
    created = MagicMock(id="cs_test_1", url="https://checkout.stripe.test/cs_test_1")

    with patch(SESSION_CREATE, return_value=created) as create:
        session = await checkout_service.create_checkout_session(
            identity, "price_pack_25", 25
        )

    assert session is created
    kwargs = create.call_args.kwargs
    assert kwargs["api_key"] == "sk_test_123"
    assert kwargs["mode"] == "payment"
    assert kwargs["line_items"] == [{"price": "price_pack_25", "quantity": 1}]
    assert kwargs["metadata"] == {"userId": "auth0|buyer", "creditsToAdd": "25"}
    assert kwargs["client_reference_id"] == "auth0|buyer"
    assert kwargs["customer_email"] == "buyer@example.com"
    assert kwargs["success_url"] == "https://app.clipforge.test/payment/success"


@pytest.mark.asyncio
async def test_email_is_optional(checkout_service):
    with patch(SESSION_CREATE, return_value=MagicMock(id="cs_test_2")) as create:
        await checkout_service.create_checkout_session(
            Identity(user_id="auth0|anon"), "price_pack_5", 5
        )

    assert "customer_email" not in create.call_args.kwargs


@pytest.mark.asyncio
@pytest.mark.parametrize("credits", [0, -3, True])
async def test_invalid_credit_amount(checkout_service, identity, credits):
    with patch(SESSION_CREATE) as create:
        with pytest.raises(InvalidCreditAmountError):
            await checkout_service.create_checkout_session(identity, "price", credits)

    create.assert_not_called()


@pytest.mark.asyncio
async def test_stripe_failure_is_external_service_error(checkout_service, identity):
    with patch(SESSION_CREATE, side_effect=StripeError("No such price")):
        with pytest.raises(ExternalServiceError) as exc_info:
            await checkout_service.create_checkout_session(identity, "price_x", 5)

    assert_clipforge_exception(exc_info.value, MessageCode.EXTERNAL_SERVICE_ERROR)


@pytest.mark.asyncio
async def test_missing_secret_key(identity):
    service = CheckoutService(StripeSettings(STRIPE_SECRET_KEY=""))

    with pytest.raises(ConfigurationError):
        await service.create_checkout_session(identity, "price", 5)
