"""Payment API schemas."""

from pydantic import BaseModel, ConfigDict, Field

from clipforge.api.core.messages import APIResponse
from clipforge.modules.billing.constants import WebhookStatus


class CheckoutSessionRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    price_id: str = Field(alias="priceId", min_length=1)
    credits_amount: int = Field(alias="creditsAmount", gt=0)


class CheckoutSessionData(BaseModel):
    session_id: str
    url: str | None = None


class WebhookAck(BaseModel):
    received: bool = True
    status: WebhookStatus


CheckoutSessionResponse = APIResponse[CheckoutSessionData]
WebhookAckResponse = APIResponse[WebhookAck]
