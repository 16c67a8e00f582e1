"""Video generation endpoint."""

from fastapi import APIRouter

from clipforge.api.core.dependencies import CurrentIdentityDep, GenerationServiceDep
from clipforge.api.core.messages import APIResponse, MessageCode
from .schemas import GenerateRequest, GenerateResponse, GenerationResult

router = APIRouter(tags=["generation"])


@router.post("/generate", response_model=GenerateResponse)
async def generate_video(
    body: GenerateRequest,
    identity: CurrentIdentityDep,
    generation_service: GenerationServiceDep,
) -> GenerateResponse:
    """Generate one video for the caller, spending one credit on success."""
    outcome = await generation_service.generate(
        identity.user_id, body.prompt, seed=body.seed
    )
    return APIResponse.success(
        message_code=MessageCode.SUCCESS,
        data=GenerationResult(
            artifact_url=outcome.artifact_url,
            seed=outcome.seed,
            remaining_balance=outcome.remaining_balance,
            debit_applied=outcome.debit_applied,
        ),
    )
