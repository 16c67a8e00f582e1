"""Test factories for Clipforge models."""

from .base import AsyncSQLAlchemyModelFactory
from .accounts import AccountFactory, PaymentEventFactory

__all__ = [
    "AsyncSQLAlchemyModelFactory",
    "AccountFactory",
    "PaymentEventFactory",
]
