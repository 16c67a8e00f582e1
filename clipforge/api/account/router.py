"""Account balance endpoint."""

from fastapi import APIRouter

from clipforge.api.core.dependencies import CurrentIdentityDep, LedgerStoreDep
from clipforge.api.core.messages import APIResponse, MessageCode
from .schemas import AccountStatus, AccountStatusResponse

router = APIRouter(tags=["account"])


@router.get("/account-status", response_model=AccountStatusResponse)
async def get_account_status(
    identity: CurrentIdentityDep,
    ledger: LedgerStoreDep,
) -> AccountStatusResponse:
    """Current credit balance; the account is created on first call."""
    credits = await ledger.get_balance(identity.user_id, email=identity.email)
    return APIResponse.success(
        message_code=MessageCode.SUCCESS,
        data=AccountStatus(credits=credits, email=identity.email),
    )
