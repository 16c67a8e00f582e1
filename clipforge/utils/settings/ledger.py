"""Ledger backend selection."""

from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class LedgerSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    LEDGER_BACKEND: Literal["sql", "redis"] = "sql"
    # Only read when LEDGER_BACKEND is "redis"
    LEDGER_REDIS_URL: str = "redis://localhost:6379/0"
    LEDGER_REDIS_MAX_CONNECTIONS: int = 20
