from enum import Enum

# Largest seed accepted or generated; 32-bit unsigned, up to 10 digits
MAX_SEED = 2**32 - 1

# Credits consumed by one successful generation
GENERATION_CREDIT_COST = 1


class DebitPolicy(str, Enum):
    """When the generation credit is taken from the ledger."""

    # Debit after the provider reports success
    POST_SUCCESS = "post_success"
    # Hold the credit before submitting, release it if the job fails
    RESERVE = "reserve"


class BackendShape(str, Enum):
    IMMEDIATE = "immediate"
    POLLING = "polling"


class JobStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class FailureKind(str, Enum):
    """Why a job ended in FAILED."""

    # Provider explicitly reported failure or returned an unusable result
    PROVIDER = "provider"
    # We could not learn the job status (network, 5xx) after bounded retries
    TRANSPORT = "transport"
    # Wall-clock deadline exceeded; provider job abandoned
    TIMEOUT = "timeout"
