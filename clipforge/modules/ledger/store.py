"""Credit ledger contract shared by every storage backend."""

from abc import ABC, abstractmethod

from clipforge.api.core.exceptions.base import (
    InvalidCreditAmountError,
    LedgerInvariantViolation,
)
from clipforge.core.base import BaseService


class LedgerStore(BaseService, ABC):
    """Durable user -> credit balance mapping with atomic mutation primitives.

    Callers never read a balance and write it back; every change goes through
    ``debit`` or ``credit``, which are atomic in the backing store. No
    external locking is needed for concurrent requests on the same user.
    """

    @abstractmethod
    async def get_balance(self, user_id: str, email: str | None = None) -> int:
        """Return the balance, creating a zero-balance account if absent."""

    @abstractmethod
    async def debit(self, user_id: str, amount: int = 1) -> int | None:
        """Decrement by ``amount`` only if the result stays >= 0.

        Returns the balance written by that same atomic step, or None when
        the debit was refused.
        """

    async def try_debit(self, user_id: str, amount: int = 1) -> bool:
        return await self.debit(user_id, amount) is not None

    @abstractmethod
    async def credit(
        self, user_id: str, amount: int, event_id: str | None = None
    ) -> bool:
        """Increment by ``amount``.

        With ``event_id`` the increment is applied at most once per id;
        returns False when that id was already applied.
        """

    @staticmethod
    def _validate_amount(amount) -> None:
        if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
            raise InvalidCreditAmountError(amount)

    def _check_balance(self, user_id: str, balance: int) -> int:
        if balance < 0:
            self.logger.critical(
                "Negative balance observed", user_id=user_id, balance=balance
            )
            raise LedgerInvariantViolation(user_id, balance)
        return balance
