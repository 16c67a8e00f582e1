"""fal.ai synchronous run endpoint adapter."""

from clipforge.modules.generation.backends.base import (
    BackendLogicalFailure,
    ImmediateBackend,
    ImmediateResult,
    provider_detail,
)


class FalBackend(ImmediateBackend):
    name = "fal"

    @property
    def api_key(self) -> str:
        return self.settings.FAL_API_KEY.get_secret_value()

    def _auth_headers(self, api_key: str) -> dict[str, str]:
        return {"Authorization": f"Key {api_key}"}

    async def submit(self, prompt: str, seed: int) -> ImmediateResult:
        self._require_api_key()

        url = f"{self.settings.FAL_API_URL.rstrip('/')}/{self.settings.FAL_MODEL}"
        status, body = await self._request_json(
            "POST", url, {"prompt": prompt, "seed": seed}
        )
        if status != 200:
            raise BackendLogicalFailure(
                provider_detail(body, "detail", "error")
                or f"fal refused the request (HTTP {status})"
            )

        video = body.get("video") or {}
        artifact_url = video.get("url") if isinstance(video, dict) else None
        if not artifact_url:
            raise BackendLogicalFailure("fal response did not include a video url")

        return ImmediateResult(artifact_url=artifact_url, seed=body.get("seed", seed))
