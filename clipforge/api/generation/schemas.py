"""Generation API schemas."""

from pydantic import BaseModel, ConfigDict, Field

from clipforge.api.core.messages import APIResponse
from clipforge.modules.generation.constants import MAX_SEED


class GenerateRequest(BaseModel):
    # Optional here so a missing prompt is reported as a 400, not a 422
    prompt: str | None = None
    seed: int | None = Field(default=None, ge=0, le=MAX_SEED)


class GenerationResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    artifact_url: str = Field(alias="artifactURL")
    seed: int
    remaining_balance: int = Field(alias="remainingBalance")
    debit_applied: bool = Field(alias="debitApplied")


GenerateResponse = APIResponse[GenerationResult]
