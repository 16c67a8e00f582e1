"""Bearer token verification against the external identity provider."""

import asyncio
import time

import aiohttp
from fastapi import status
from jose import JWTError, jwt

from clipforge.api.core.constants import JWKS_ALGORITHM, JWT_SECRET_ALGORITHM
from clipforge.api.core.exceptions.base import (
    ClipforgeException,
    ConfigurationError,
    ExternalServiceError,
)
from clipforge.api.core.messages import MessageCode
from clipforge.core.base import BaseService
from clipforge.core.context import Identity
from clipforge.utils.settings.auth import AuthSettings

# jwks_url -> (fetched_at, key set)
_jwks_cache: dict[str, tuple[float, dict]] = {}


def invalid_token(description: str) -> ClipforgeException:
    return ClipforgeException(
        MessageCode.INVALID_TOKEN,
        status.HTTP_401_UNAUTHORIZED,
        {"description": description},
        headers={"WWW-Authenticate": "Bearer"},
    )


class IdentityVerifier(BaseService):
    """Turns a bearer token into an :class:`Identity`.

    Tokens are checked with HS256 when ``AUTH_JWT_SECRET`` is set, otherwise
    with RS256 against the provider's published key set.
    """

    def __init__(self, settings: AuthSettings):
        super().__init__()
        self.settings = settings

    async def verify(self, token: str) -> Identity:
        secret = self.settings.AUTH_JWT_SECRET.get_secret_value()
        if secret:
            key, algorithm, issuer = secret, JWT_SECRET_ALGORITHM, None
        elif self.settings.AUTH_DOMAIN:
            key = await self._get_jwks()
            algorithm, issuer = JWKS_ALGORITHM, self.settings.issuer
        else:
            raise ConfigurationError(
                "Neither AUTH_JWT_SECRET nor AUTH_DOMAIN is configured"
            )

        audience = self.settings.AUTH_AUDIENCE or None
        try:
            payload = jwt.decode(
                token,
                key,
                algorithms=[algorithm],
                audience=audience,
                issuer=issuer,
                options={"verify_aud": audience is not None},
            )
        except JWTError as e:
            self.logger.warning("JWT decoding failed", error=str(e))
            raise invalid_token("Invalid or expired authentication token")

        user_id = payload.get("sub")
        if not user_id:
            raise invalid_token("Token has no subject")

        return Identity(
            user_id=str(user_id),
            email=payload.get(self.settings.AUTH_EMAIL_CLAIM),
        )

    async def _get_jwks(self) -> dict:
        url = self.settings.jwks_url
        cached = _jwks_cache.get(url)
        if cached and time.monotonic() - cached[0] < self.settings.AUTH_JWKS_CACHE_SECONDS:
            return cached[1]

        timeout = aiohttp.ClientTimeout(total=self.settings.AUTH_JWKS_TIMEOUT_SECONDS)
        async with aiohttp.ClientSession() as session:
            try:
                async with session.get(url, timeout=timeout) as response:
                    if response.status != 200:
                        raise ExternalServiceError(
                            "identity provider",
                            f"JWKS request returned HTTP {response.status}",
                        )
                    jwks = await response.json(content_type=None)
            except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
                self.logger.error("Failed to fetch JWKS", url=url, error=str(e))
                raise ExternalServiceError(
                    "identity provider", f"Failed to fetch signing keys: {e}"
                )

        if not isinstance(jwks, dict) or not jwks.get("keys"):
            raise ExternalServiceError("identity provider", "JWKS has no keys")

        _jwks_cache[url] = (time.monotonic(), jwks)
        return jwks
