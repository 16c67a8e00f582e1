"""SQLAlchemy-backed credit ledger."""

from sqlalchemy import or_, select, update
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from clipforge.api.core.exceptions.base import ConfigurationError
from clipforge.database.models import Account, PaymentEvent
from clipforge.modules.ledger.store import LedgerStore

_INSERT_BY_DIALECT = {
    "postgresql": postgresql_insert,
    "sqlite": sqlite_insert,
}


class SqlLedgerStore(LedgerStore):
    """Ledger over the ``accounts`` and ``payment_events`` tables.

    Each operation runs in its own session and transaction so a request-scoped
    session is never shared between concurrent ledger calls.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        super().__init__()
        self.session_factory = session_factory

    async def _ensure_account(
        self, session: AsyncSession, user_id: str, email: str | None = None
    ) -> None:
        dialect = session.get_bind().dialect.name
        insert = _INSERT_BY_DIALECT.get(dialect)
        if insert is None:
            raise ConfigurationError(
                "Unsupported database dialect for the credit ledger",
                dialect=dialect,
            )

        stmt = (
            insert(Account)
            .values(user_id=user_id, email=email, credits=0)
            .on_conflict_do_nothing(index_elements=["user_id"])
        )
        await session.execute(stmt)

    async def get_balance(self, user_id: str, email: str | None = None) -> int:
        async with self.session_factory() as session, session.begin():
            await self._ensure_account(session, user_id, email)

            if email:
                await session.execute(
                    update(Account)
                    .where(
                        Account.user_id == user_id,
                        or_(Account.email.is_(None), Account.email != email),
                    )
                    .values(email=email)
                    .execution_options(synchronize_session=False)
                )

            balance = await session.scalar(
                select(Account.credits).where(Account.user_id == user_id)
            )

        return self._check_balance(user_id, balance)

    async def debit(self, user_id: str, amount: int = 1) -> int | None:
        self._validate_amount(amount)

        async with self.session_factory() as session, session.begin():
            # Single conditional UPDATE; the row lock serializes concurrent debits
            result = await session.execute(
                update(Account)
                .where(Account.user_id == user_id, Account.credits >= amount)
                .values(credits=Account.credits - amount)
                .returning(Account.credits)
                .execution_options(synchronize_session=False)
            )
            remaining = result.scalar_one_or_none()

            if remaining is None:
                self.logger.info("Debit refused", user_id=user_id, amount=amount)
                return None

            # Raising inside the transaction rolls the debit back
            self._check_balance(user_id, remaining)

        self.logger.info(
            "Credits debited", user_id=user_id, amount=amount, balance=remaining
        )
        return remaining

    async def credit(
        self, user_id: str, amount: int, event_id: str | None = None
    ) -> bool:
        self._validate_amount(amount)

        async with self.session_factory() as session:
            try:
                async with session.begin():
                    if event_id is not None:
                        applied = await session.scalar(
                            select(PaymentEvent.event_id).where(
                                PaymentEvent.event_id == event_id
                            )
                        )
                        if applied is not None:
                            self.logger.info(
                                "Payment event already applied",
                                event_id=event_id,
                                user_id=user_id,
                            )
                            return False

                    await self._ensure_account(session, user_id)

                    if event_id is not None:
                        session.add(
                            PaymentEvent(
                                event_id=event_id, user_id=user_id, credits=amount
                            )
                        )
                        await session.flush()

                    result = await session.execute(
                        update(Account)
                        .where(Account.user_id == user_id)
                        .values(credits=Account.credits + amount)
                        .returning(Account.credits)
                        .execution_options(synchronize_session=False)
                    )
                    balance = result.scalar_one()
            except IntegrityError:
                if event_id is None:
                    raise
                # A concurrent delivery of the same event committed first
                self.logger.info(
                    "Payment event applied concurrently",
                    event_id=event_id,
                    user_id=user_id,
                )
                return False

        self.logger.info(
            "Credits added",
            user_id=user_id,
            amount=amount,
            balance=balance,
            event_id=event_id,
        )
        return True
