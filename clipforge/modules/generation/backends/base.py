"""Uniform contract over third-party video generation providers."""

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

import aiohttp

from clipforge.api.core.exceptions.base import ConfigurationError
from clipforge.modules.generation.constants import BackendShape, JobStatus
from clipforge.utils.logger import get_logger
from clipforge.utils.settings.generation import GenerationSettings

# Statuses that mean "try again later" rather than "the provider said no"
RETRYABLE_HTTP_STATUSES = frozenset({408, 429, 500, 502, 503, 504})


class BackendTransportError(Exception):
    """The provider could not be reached or answered with a transient error."""


class BackendLogicalFailure(Exception):
    """The provider answered and explicitly rejected or failed the request."""


@dataclass(frozen=True)
class ImmediateResult:
    artifact_url: str
    seed: int


@dataclass(frozen=True)
class JobHandle:
    job_id: str
    status_url: str | None = None


@dataclass(frozen=True)
class StatusReport:
    state: JobStatus
    artifact_url: str | None = None
    error_detail: str | None = None


def provider_detail(body: dict[str, Any], *keys: str) -> str | None:
    """Pull the first non-empty error text out of a provider payload."""
    for key in keys:
        value = body.get(key)
        if isinstance(value, dict):
            value = value.get("message") or value.get("detail")
        if value:
            return str(value)
    return None


class GenerationBackend(ABC):
    """Base adapter holding provider settings and the shared HTTP call."""

    name: str = ""
    shape: BackendShape

    def __init__(self, settings: GenerationSettings):
        self.settings = settings
        self.timeout = settings.GENERATION_REQUEST_TIMEOUT_SECONDS
        self.logger = get_logger(self.__class__.__name__)

    @property
    @abstractmethod
    def api_key(self) -> str:
        """Provider credential from settings, empty when not configured."""

    @abstractmethod
    def _auth_headers(self, api_key: str) -> dict[str, str]:
        pass

    def _require_api_key(self) -> str:
        api_key = self.api_key
        if not api_key:
            raise ConfigurationError(
                f"API key for generation backend '{self.name}' is not configured",
                backend=self.name,
            )
        return api_key

    async def _request_json(
        self, method: str, url: str, payload: dict | None = None
    ) -> tuple[int, dict[str, Any]]:
        """Perform one HTTP call and return (status, decoded JSON object).

        Raises BackendTransportError for network failures, client timeouts,
        retryable statuses and successful responses without a JSON object.
        """
        headers = {
            **self._auth_headers(self._require_api_key()),
            "Content-Type": "application/json",
        }

        async with aiohttp.ClientSession() as session:
            try:
                async with session.request(
                    method,
                    url,
                    json=payload,
                    headers=headers,
                    timeout=aiohttp.ClientTimeout(total=self.timeout),
                ) as response:
                    status = response.status
                    try:
                        body = await response.json(content_type=None)
                    except ValueError:
                        body = None
            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                self.logger.warning(
                    "Generation backend request failed",
                    backend=self.name,
                    method=method,
                    error=str(e),
                )
                raise BackendTransportError(f"{self.name} unavailable: {e}") from e

        if status in RETRYABLE_HTTP_STATUSES:
            raise BackendTransportError(f"{self.name} returned HTTP {status}")

        if not isinstance(body, dict):
            if 200 <= status < 300:
                raise BackendTransportError(
                    f"{self.name} returned an undecodable response body"
                )
            body = {}

        return status, body


class ImmediateBackend(GenerationBackend):
    """Provider whose single request returns the final artifact."""

    shape = BackendShape.IMMEDIATE

    @abstractmethod
    async def submit(self, prompt: str, seed: int) -> ImmediateResult:
        pass


class PollingBackend(GenerationBackend):
    """Provider that accepts a job and must be polled until terminal."""

    shape = BackendShape.POLLING

    @abstractmethod
    async def submit(self, prompt: str, seed: int) -> JobHandle:
        pass

    @abstractmethod
    async def check_status(self, handle: JobHandle) -> StatusReport:
        pass
