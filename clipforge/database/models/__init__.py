"""Database models for Clipforge API."""

from .accounts import Account
from .base import Base
from .payment_events import PaymentEvent

__all__ = [
    "Base",
    "Account",
    "PaymentEvent",
]
