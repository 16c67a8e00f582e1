"""Redis-backed credit ledger."""

import redis.asyncio as redis

from clipforge.modules.ledger.store import LedgerStore

# Returns -1 when the debit would overdraw, else the new balance
DEBIT_SCRIPT = """
local balance = tonumber(redis.call('GET', KEYS[1]) or '0')
local amount = tonumber(ARGV[1])
if balance < amount then
    return -1
end
return redis.call('DECRBY', KEYS[1], amount)
"""

# Returns -1 when the event id was already recorded, else the new balance
CREDIT_ONCE_SCRIPT = """
if not redis.call('SET', KEYS[2], ARGV[2], 'NX') then
    return -1
end
return redis.call('INCRBY', KEYS[1], ARGV[1])
"""


class LedgerKeys:
    """Typed ledger key generators."""

    @staticmethod
    def balance(user_id: str) -> str:
        return f"ledger:balance:{user_id}"

    @staticmethod
    def email(user_id: str) -> str:
        return f"ledger:email:{user_id}"

    @staticmethod
    def event(event_id: str) -> str:
        return f"ledger:event:{event_id}"


class RedisLedgerStore(LedgerStore):
    """Ledger kept in Redis; conditional updates run as Lua scripts."""

    def __init__(self, redis_client: redis.Redis):
        super().__init__()
        self.redis = redis_client

    async def get_balance(self, user_id: str, email: str | None = None) -> int:
        await self.redis.set(LedgerKeys.balance(user_id), 0, nx=True)
        if email:
            await self.redis.set(LedgerKeys.email(user_id), email)

        balance = int(await self.redis.get(LedgerKeys.balance(user_id)) or 0)
        return self._check_balance(user_id, balance)

    async def debit(self, user_id: str, amount: int = 1) -> int | None:
        self._validate_amount(amount)

        remaining = int(
            await self.redis.eval(DEBIT_SCRIPT, 1, LedgerKeys.balance(user_id), amount)
        )
        if remaining == -1:
            self.logger.info("Debit refused", user_id=user_id, amount=amount)
            return None

        self._check_balance(user_id, remaining)
        self.logger.info(
            "Credits debited", user_id=user_id, amount=amount, balance=remaining
        )
        return remaining

    async def credit(
        self, user_id: str, amount: int, event_id: str | None = None
    ) -> bool:
        self._validate_amount(amount)

        if event_id is None:
            balance = int(await self.redis.incrby(LedgerKeys.balance(user_id), amount))
        else:
            balance = int(
                await self.redis.eval(
                    CREDIT_ONCE_SCRIPT,
                    2,
                    LedgerKeys.balance(user_id),
                    LedgerKeys.event(event_id),
                    amount,
                    user_id,
                )
            )
            if balance == -1:
                self.logger.info(
                    "Payment event already applied",
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
