"""Credit-gated video generation."""

import asyncio
import secrets
from typing import Callable

from clipforge.api.core.exceptions.base import (
    ClipforgeException,
    GenerationFailedError,
    InputValidationError,
    InsufficientCreditError,
)
from clipforge.core.base import BaseService
from clipforge.modules.generation.backends import GenerationBackend
from clipforge.modules.generation.constants import (
    GENERATION_CREDIT_COST,
    MAX_SEED,
    DebitPolicy,
    FailureKind,
    JobStatus,
)
from clipforge.modules.generation.models import GenerationOutcome
from clipforge.modules.generation.orchestrator import JobOrchestrator
from clipforge.modules.ledger import LedgerStore

# Jobs still settling after their request went away
_inflight: set[asyncio.Task] = set()


def random_seed() -> int:
    return secrets.randbelow(MAX_SEED + 1)


async def drain_inflight_jobs(timeout: float) -> int:
    """Wait up to ``timeout`` seconds for detached jobs; returns how many were left."""
    pending = set(_inflight)
    if not pending:
        return 0
    _, still_running = await asyncio.wait(pending, timeout=timeout)
    return len(still_running)


class GenerationService(BaseService):
    """Checks the ledger, runs one generation job and settles the credit."""

    def __init__(
        self,
        ledger: LedgerStore,
        backend: GenerationBackend,
        orchestrator: JobOrchestrator,
        debit_policy: DebitPolicy = DebitPolicy.POST_SUCCESS,
        seed_factory: Callable[[], int] = random_seed,
    ):
        super().__init__()
        self.ledger = ledger
        self.backend = backend
        self.orchestrator = orchestrator
        self.debit_policy = DebitPolicy(debit_policy)
        self.seed_factory = seed_factory

    async def generate(
        self, user_id: str, prompt: str | None, seed: int | None = None
    ) -> GenerationOutcome:
        if prompt is None or not prompt.strip():
            raise InputValidationError("Prompt is required", field="prompt")

        if seed is not None and (
            isinstance(seed, bool) or not isinstance(seed, int) or not 0 <= seed <= MAX_SEED
        ):
            raise InputValidationError(
                f"Seed must be an integer between 0 and {MAX_SEED}", field="seed"
            )

        balance = await self.ledger.get_balance(user_id)
        if balance <= 0:
            self.logger.info("Generation refused, no credits", user_id=user_id)
            raise InsufficientCreditError(balance)

        if seed is None:
            seed = self.seed_factory()

        # A disconnecting client cancels this coroutine but not the job
        task = asyncio.create_task(self._run_and_settle(user_id, prompt, seed))
        _inflight.add(task)
        task.add_done_callback(_inflight.discard)
        return await asyncio.shield(task)

    async def _run_and_settle(
        self, user_id: str, prompt: str, seed: int
    ) -> GenerationOutcome:
        log = self.logger.bind(
            user_id=user_id, seed=seed, debit_policy=self.debit_policy.value
        )

        reserved = False
        remaining = None
        if self.debit_policy == DebitPolicy.RESERVE:
            remaining = await self.ledger.debit(user_id, GENERATION_CREDIT_COST)
            if remaining is None:
                raise InsufficientCreditError(await self.ledger.get_balance(user_id))
            reserved = True
            log.info("Credit reserved")

        try:
            job = await self.orchestrator.run(self.backend, prompt, seed)
        except ClipforgeException:
            await self._release(user_id, reserved, log)
            raise
        except Exception as e:
            log.exception("Unexpected error from generation backend")
            await self._release(user_id, reserved, log)
            raise GenerationFailedError(FailureKind.PROVIDER.value, str(e), seed) from e

        if job.status == JobStatus.FAILED:
            await self._release(user_id, reserved, log)
            raise GenerationFailedError(job.failure_kind.value, job.error_detail, seed)

        if not reserved:
            remaining = await self.ledger.debit(user_id, GENERATION_CREDIT_COST)
        debit_applied = remaining is not None
        if not debit_applied:
            # Balance was spent concurrently; the artifact is still delivered
            log.warning("Post-success debit refused", artifact_url=job.artifact_url)
            remaining = await self.ledger.get_balance(user_id)
        log.info(
            "Generation delivered",
            debit_applied=debit_applied,
            remaining_balance=remaining,
        )
        return GenerationOutcome(
            artifact_url=job.artifact_url,
            seed=seed,
            remaining_balance=remaining,
            debit_applied=debit_applied,
        )

    async def _release(self, user_id: str, reserved: bool, log) -> None:
        if not reserved:
            return
        await self.ledger.credit(user_id, GENERATION_CREDIT_COST)
        log.info("Reserved credit released")
