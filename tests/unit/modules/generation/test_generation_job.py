import pytest

from clipforge.modules.generation.constants import BackendShape, FailureKind, JobStatus
from clipforge.modules.generation.models import GenerationJob, InvalidJobTransition


def make_job() -> GenerationJob:
    return GenerationJob(prompt="a cat surfing", seed=3, shape=BackendShape.POLLING)


def test_new_job_is_pending():
    job = make_job()

    assert job.status == JobStatus.PENDING
    assert not job.is_terminal


def test_running_then_succeeded():
    job = make_job()
    job.mark_running("pred-1")
    job.succeed("https://cdn.example.com/v.mp4")

    assert job.status == JobStatus.SUCCEEDED
    assert job.handle == "pred-1"
    assert job.is_terminal


def test_terminal_job_rejects_transitions():
    job = make_job()
    job.fail(FailureKind.TIMEOUT, "too slow")

    with pytest.raises(InvalidJobTransition):
        job.succeed("https://cdn.example.com/v.mp4")
    with pytest.raises(InvalidJobTransition):
        job.mark_running()

    assert job.status == JobStatus.FAILED
    assert job.failure_kind == FailureKind.TIMEOUT
