"""Authenticated identity handed to endpoints."""

from dataclasses import dataclass


@dataclass(frozen=True)
class Identity:
    """Verified end-user identity from the external identity provider."""

    user_id: str
    email: str | None = None

    def __post_init__(self):
        if not self.user_id:
            raise ValueError("user_id is required in an identity")
