"""Adapter for queue-style video APIs that list results under ``videos``."""

from typing import Any

from clipforge.api.core.exceptions.base import ConfigurationError
from clipforge.modules.generation.backends.base import (
    BackendLogicalFailure,
    JobHandle,
    PollingBackend,
    StatusReport,
    provider_detail,
)
from clipforge.modules.generation.constants import JobStatus

RUNNING_STATES = {"queued", "pending", "processing", "in_progress"}
SUCCEEDED_STATES = {"completed", "succeeded"}
FAILED_STATES = {"failed", "error", "cancelled", "canceled"}


def first_video_url(body: dict[str, Any]) -> str | None:
    videos = body.get("videos") or []
    if videos and isinstance(videos[0], dict):
        return videos[0].get("url") or None
    return None


class VideoQueueBackend(PollingBackend):
    """``POST /generations`` then ``GET /generations/{id}`` until terminal."""

    name = "video_queue"

    @property
    def api_key(self) -> str:
        return self.settings.VIDEO_QUEUE_API_KEY.get_secret_value()

    def _auth_headers(self, api_key: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {api_key}"}

    @property
    def base_url(self) -> str:
        url = self.settings.VIDEO_QUEUE_API_URL.rstrip("/")
        if not url:
            raise ConfigurationError(
                "VIDEO_QUEUE_API_URL is not configured", backend=self.name
            )
        return url

    async def submit(self, prompt: str, seed: int) -> JobHandle:
        self._require_api_key()

        payload: dict[str, Any] = {"prompt": prompt, "seed": seed}
        if self.settings.VIDEO_QUEUE_MODEL:
            payload["model"] = self.settings.VIDEO_QUEUE_MODEL

        status, body = await self._request_json(
            "POST", f"{self.base_url}/generations", payload
        )
        if status not in (200, 201, 202):
            raise BackendLogicalFailure(
                provider_detail(body, "error", "message", "detail")
                or f"Generation request refused (HTTP {status})"
            )

        job_id = body.get("id")
        if not job_id:
            raise BackendLogicalFailure("Generation response did not include an id")

        self.logger.info("Queued video generation", job_id=job_id)
        return JobHandle(job_id=str(job_id))

    async def check_status(self, handle: JobHandle) -> StatusReport:
        self._require_api_key()

        status, body = await self._request_json(
            "GET", f"{self.base_url}/generations/{handle.job_id}"
        )
        if status != 200:
            raise BackendLogicalFailure(
                provider_detail(body, "error", "message", "detail")
                or f"Status check failed (HTTP {status})"
            )

        state = str(body.get("status", "")).lower()
        if state in SUCCEEDED_STATES:
            return StatusReport(
                state=JobStatus.SUCCEEDED, artifact_url=first_video_url(body)
            )
        if state in FAILED_STATES:
            return StatusReport(
                state=JobStatus.FAILED,
                error_detail=provider_detail(body, "error", "message")
                or f"Generation {state}",
            )
        if state not in RUNNING_STATES:
            self.logger.warning(
                "Unknown generation status", job_id=handle.job_id, status=state
            )
        return StatusReport(state=JobStatus.RUNNING)
