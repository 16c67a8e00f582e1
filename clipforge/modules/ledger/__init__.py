from .redis_store import RedisLedgerStore
from .sql_store import SqlLedgerStore
from .store import LedgerStore

__all__ = ["LedgerStore", "SqlLedgerStore", "RedisLedgerStore"]
