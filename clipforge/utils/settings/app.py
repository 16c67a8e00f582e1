from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    DEBUG: bool = False
    ENVIRONMENT: str = "DEV"
    API_VERSION: str = "0.1.0"
    LOG_LEVEL: str = "INFO"
    # Seconds shutdown waits for generation jobs whose request already ended
    SHUTDOWN_GRACE_SECONDS: float = 30.0
    CORS_ORIGINS: list[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
    ]

    # Security settings
    MAX_REQUEST_SIZE: int = 1 * 1024 * 1024  # 1MB

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.upper() == "PROD"

    def validate_prod(self) -> None:
        """Sanity checks for production environment."""
        if self.is_production:
            # Secrets are checked by their own settings at use time
            if not self.CORS_ORIGINS:
                raise ValueError("CORS_ORIGINS must be set in production")
