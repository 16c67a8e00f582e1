"""Drives a generation job from submission to a terminal state."""

import asyncio
import time
from typing import Awaitable, Callable

from clipforge.core.base import BaseService
from clipforge.modules.generation.backends import (
    BackendLogicalFailure,
    BackendTransportError,
    GenerationBackend,
    ImmediateBackend,
    PollingBackend,
)
from clipforge.modules.generation.constants import FailureKind, JobStatus
from clipforge.modules.generation.models import GenerationJob
from clipforge.utils.settings.generation import GenerationSettings


class JobOrchestrator(BaseService):
    """Submits a job and, for poll-based providers, polls until it settles.

    ``sleep`` and ``clock`` are injectable so tests can run the loop on a
    manual clock.
    """

    def __init__(
        self,
        poll_interval: float = 1.0,
        timeout: float = 300.0,
        max_status_retries: int = 3,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        super().__init__()
        self.poll_interval = poll_interval
        self.timeout = timeout
        self.max_status_retries = max_status_retries
        self._sleep = sleep
        self._clock = clock

    @classmethod
    def from_settings(cls, settings: GenerationSettings) -> "JobOrchestrator":
        return cls(
            poll_interval=settings.GENERATION_POLL_INTERVAL_SECONDS,
            timeout=settings.GENERATION_TIMEOUT_SECONDS,
            max_status_retries=settings.GENERATION_STATUS_RETRIES,
        )

    async def run(
        self, backend: GenerationBackend, prompt: str, seed: int
    ) -> GenerationJob:
        job = GenerationJob(prompt=prompt, seed=seed, shape=backend.shape)
        log = self.logger.bind(backend=backend.name, seed=seed)

        if isinstance(backend, ImmediateBackend):
            await self._run_immediate(backend, job, log)
        elif isinstance(backend, PollingBackend):
            await self._run_polling(backend, job, log)
        else:
            raise TypeError(f"Unsupported backend type: {type(backend).__name__}")

        return job

    async def _run_immediate(self, backend: ImmediateBackend, job, log) -> None:
        job.mark_running()
        try:
            result = await backend.submit(job.prompt, job.seed)
        except BackendTransportError as e:
            self._fail(job, FailureKind.TRANSPORT, str(e), log)
            return
        except BackendLogicalFailure as e:
            self._fail(job, FailureKind.PROVIDER, str(e), log)
            return

        job.succeed(result.artifact_url)
        log.info("Generation succeeded", artifact_url=result.artifact_url)

    async def _run_polling(self, backend: PollingBackend, job, log) -> None:
        deadline = self._clock() + self.timeout

        try:
            handle = await backend.submit(job.prompt, job.seed)
        except BackendTransportError as e:
            self._fail(job, FailureKind.TRANSPORT, str(e), log)
            return
        except BackendLogicalFailure as e:
            self._fail(job, FailureKind.PROVIDER, str(e), log)
            return

        job.mark_running(handle.job_id)
        log = log.bind(job_id=handle.job_id)
        log.info("Generation job submitted")

        consecutive_failures = 0
        while True:
            if self._clock() >= deadline:
                self._fail(
                    job,
                    FailureKind.TIMEOUT,
                    f"Generation did not finish within {self.timeout:g} seconds",
                    log,
                )
                return

            await self._sleep(self.poll_interval)

            try:
                report = await backend.check_status(handle)
            except BackendTransportError as e:
                consecutive_failures += 1
                log.warning(
                    "Status check failed",
                    attempt=consecutive_failures,
                    error=str(e),
                )
                if consecutive_failures > self.max_status_retries:
                    self._fail(
                        job,
                        FailureKind.TRANSPORT,
                        f"Status unavailable after {consecutive_failures} attempts: {e}",
                        log,
                    )
                    return
                continue
            except BackendLogicalFailure as e:
                self._fail(job, FailureKind.PROVIDER, str(e), log)
                return

            consecutive_failures = 0

            if report.state == JobStatus.SUCCEEDED:
                if not report.artifact_url:
                    self._fail(
                        job,
                        FailureKind.PROVIDER,
                        "Provider reported success without an artifact",
                        log,
                    )
                    return
                job.succeed(report.artifact_url)
                log.info("Generation succeeded", artifact_url=report.artifact_url)
                return

            if report.state == JobStatus.FAILED:
                self._fail(job, FailureKind.PROVIDER, report.error_detail, log)
                return

    @staticmethod
    def _fail(job: GenerationJob, kind: FailureKind, detail: str | None, log) -> None:
        job.fail(kind, detail)
        log.warning("Generation failed", failure_kind=kind.value, detail=detail)
