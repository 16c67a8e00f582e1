"""In-memory generation job state."""

from dataclasses import dataclass

from clipforge.modules.generation.constants import (
    BackendShape,
    FailureKind,
    JobStatus,
)


class InvalidJobTransition(RuntimeError):
    pass


@dataclass
class GenerationJob:
    """One generation request from acceptance to a terminal state.

    Transitions are driven only by provider responses (or the orchestrator's
    timeout); once SUCCEEDED or FAILED the job no longer changes.
    """

    prompt: str
    seed: int
    shape: BackendShape
    status: JobStatus = JobStatus.PENDING
    handle: str | None = None
    artifact_url: str | None = None
    error_detail: str | None = None
    failure_kind: FailureKind | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status in (JobStatus.SUCCEEDED, JobStatus.FAILED)

    def _ensure_open(self, target: JobStatus) -> None:
        if self.is_terminal:
            raise InvalidJobTransition(
                f"Job already {self.status.value}, cannot move to {target.value}"
            )

    def mark_running(self, handle: str | None = None) -> None:
        self._ensure_open(JobStatus.RUNNING)
        self.status = JobStatus.RUNNING
        self.handle = handle

    def succeed(self, artifact_url: str) -> None:
        self._ensure_open(JobStatus.SUCCEEDED)
        self.status = JobStatus.SUCCEEDED
        self.artifact_url = artifact_url

    def fail(self, kind: FailureKind, detail: str | None) -> None:
        self._ensure_open(JobStatus.FAILED)
        self.status = JobStatus.FAILED
        self.failure_kind = kind
        self.error_detail = detail


@dataclass(frozen=True)
class GenerationOutcome:
    """What a caller gets back from a successful generation."""

    artifact_url: str
    seed: int
    remaining_balance: int
    debit_applied: bool
