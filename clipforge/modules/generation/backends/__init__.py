from clipforge.api.core.exceptions.base import ConfigurationError
from clipforge.utils.settings.generation import GenerationSettings

from .base import (
    BackendLogicalFailure,
    BackendTransportError,
    GenerationBackend,
    ImmediateBackend,
    ImmediateResult,
    JobHandle,
    PollingBackend,
    StatusReport,
)
from .fal import FalBackend
from .replicate import ReplicateBackend
from .video_queue import VideoQueueBackend

BACKENDS: dict[str, type[GenerationBackend]] = {
    ReplicateBackend.name: ReplicateBackend,
    VideoQueueBackend.name: VideoQueueBackend,
    FalBackend.name: FalBackend,
}


def build_backend(settings: GenerationSettings) -> GenerationBackend:
    """Instantiate the adapter named by GENERATION_BACKEND."""
    name = settings.GENERATION_BACKEND.strip().lower()
    backend_cls = BACKENDS.get(name)
    if backend_cls is None:
        raise ConfigurationError(
            f"Unknown generation backend '{settings.GENERATION_BACKEND}'",
            available=sorted(BACKENDS),
        )
    return backend_cls(settings)


__all__ = [
    "BACKENDS",
    "build_backend",
    "BackendLogicalFailure",
    "BackendTransportError",
    "GenerationBackend",
    "ImmediateBackend",
    "ImmediateResult",
    "JobHandle",
    "PollingBackend",
    "StatusReport",
    "FalBackend",
    "ReplicateBackend",
    "VideoQueueBackend",
]
