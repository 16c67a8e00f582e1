from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class AuthSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Identity provider tenant, e.g. "example.eu.auth0.com"
    AUTH_DOMAIN: str = ""
    AUTH_AUDIENCE: str = ""
    # When set, tokens are verified with HS256 against this secret instead of JWKS
    AUTH_JWT_SECRET: SecretStr = SecretStr("")
    AUTH_EMAIL_CLAIM: str = "email"
    AUTH_JWKS_CACHE_SECONDS: int = 3600
    AUTH_JWKS_TIMEOUT_SECONDS: int = 10

    @property
    def issuer(self) -> str:
        return f"https://{self.AUTH_DOMAIN}/"

    @property
    def jwks_url(self) -> str:
        return f"https://{self.AUTH_DOMAIN}/.well-known/jwks.json"
