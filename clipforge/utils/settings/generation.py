"""Generation backend and orchestration settings."""

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from clipforge.modules.generation.constants import DebitPolicy


class GenerationSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    GENERATION_BACKEND: str = "replicate"
    GENERATION_DEBIT_POLICY: DebitPolicy = DebitPolicy.POST_SUCCESS

    # Orchestrator timings
    GENERATION_POLL_INTERVAL_SECONDS: float = 1.0
    GENERATION_TIMEOUT_SECONDS: float = 300.0
    GENERATION_STATUS_RETRIES: int = 3
    # Per HTTP call made by an adapter
    GENERATION_REQUEST_TIMEOUT_SECONDS: int = 60

    # Replicate (poll-based)
    REPLICATE_API_KEY: SecretStr = SecretStr("")
    REPLICATE_API_URL: str = "https://api.replicate.com/v1"
    REPLICATE_MODEL: str = "google/veo-3"

    # Queue-style video API (poll-based, artifact at videos[0].url)
    VIDEO_QUEUE_API_KEY: SecretStr = SecretStr("")
    VIDEO_QUEUE_API_URL: str = ""
    VIDEO_QUEUE_MODEL: str = ""

    # fal.ai synchronous endpoint (immediate)
    FAL_API_KEY: SecretStr = SecretStr("")
    FAL_API_URL: str = "https://fal.run"
    FAL_MODEL: str = "fal-ai/ltx-video"
