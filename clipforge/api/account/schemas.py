from pydantic import BaseModel

from clipforge.api.core.messages import APIResponse


class AccountStatus(BaseModel):
    credits: int
    email: str | None = None


AccountStatusResponse = APIResponse[AccountStatus]
