"""Replicate predictions API adapter."""

from typing import Any

from clipforge.modules.generation.backends.base import (
    BackendLogicalFailure,
    JobHandle,
    PollingBackend,
    StatusReport,
    provider_detail,
)
from clipforge.modules.generation.constants import JobStatus

RUNNING_STATES = {"starting", "processing"}
FAILED_STATES = {"failed", "canceled"}


def extract_output_url(output: Any) -> str | None:
    """Replicate video models return either a URL or a list of URLs."""
    if isinstance(output, str):
        return output or None
    if isinstance(output, list) and output and isinstance(output[0], str):
        return output[0]
    return None


class ReplicateBackend(PollingBackend):
    name = "replicate"

    @property
    def api_key(self) -> str:
        return self.settings.REPLICATE_API_KEY.get_secret_value()

    def _auth_headers(self, api_key: str) -> dict[str, str]:
        return {"Authorization": f"Token {api_key}"}

    @property
    def base_url(self) -> str:
        return self.settings.REPLICATE_API_URL.rstrip("/")

    async def submit(self, prompt: str, seed: int) -> JobHandle:
        self._require_api_key()

        model = self.settings.REPLICATE_MODEL
        payload: dict[str, Any] = {"input": {"prompt": prompt, "seed": seed}}
        if ":" in model:
            # Pinned "owner/name:version" goes through the generic endpoint
            url = f"{self.base_url}/predictions"
            payload["version"] = model
        else:
            url = f"{self.base_url}/models/{model}/predictions"

        status, prediction = await self._request_json("POST", url, payload)
        if status not in (200, 201):
            raise BackendLogicalFailure(
                provider_detail(prediction, "detail", "error")
                or f"Replicate refused the prediction (HTTP {status})"
            )

        prediction_id = prediction.get("id")
        if not prediction_id:
            raise BackendLogicalFailure("Replicate response did not include an id")

        status_url = (prediction.get("urls") or {}).get("get")
        self.logger.info(
            "Replicate prediction created",
            prediction_id=prediction_id,
            model=model,
        )
        return JobHandle(
            job_id=prediction_id,
            status_url=status_url or f"{self.base_url}/predictions/{prediction_id}",
        )

    async def check_status(self, handle: JobHandle) -> StatusReport:
        self._require_api_key()

        url = handle.status_url or f"{self.base_url}/predictions/{handle.job_id}"
        status, prediction = await self._request_json("GET", url)
        if status != 200:
            raise BackendLogicalFailure(
                provider_detail(prediction, "detail", "error")
                or f"Replicate status check failed (HTTP {status})"
            )

        state = prediction.get("status")
        if state == "succeeded":
            return StatusReport(
                state=JobStatus.SUCCEEDED,
                artifact_url=extract_output_url(prediction.get("output")),
            )
        if state in FAILED_STATES:
            return StatusReport(
                state=JobStatus.FAILED,
                error_detail=provider_detail(prediction, "error")
                or f"Prediction {state}",
            )
        if state not in RUNNING_STATES:
            self.logger.warning(
                "Unknown Replicate prediction status",
                prediction_id=handle.job_id,
                status=state,
            )
        return StatusReport(state=JobStatus.RUNNING)
