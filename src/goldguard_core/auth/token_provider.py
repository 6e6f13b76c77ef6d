"""Bearer credential providers for the remote case API.

The case API requires `Authorization: Bearer <token>` on every call except
report submission. A provider returning None means "no credential", which the
reconciler treats as remote-unavailable rather than an error.
"""

import asyncio
import logging
import time
from typing import Optional

import httpx

logger = logging.getLogger(__name__)


class TokenProvider:
    """Base provider: never has a credential"""

    async def get_token(self) -> Optional[str]:
        return None

    async def invalidate_token(self) -> None:
        """Forget any cached credential (e.g. after a 401)"""
        pass


class StaticTokenProvider(TokenProvider):
    """Provider for a token obtained elsewhere (admin session, env var)"""

    def __init__(self, token: Optional[str]):
        self._token = token or None

    async def get_token(self) -> Optional[str]:
        return self._token

    async def invalidate_token(self) -> None:
        logger.info("Discarding static admin token")
        self._token = None


class AdminTokenProvider(TokenProvider):
    """Logs in to the case API and caches the session token.

    This class handles:
    1. POST {api_url}/api/auth/login with email/password
    2. Caching the returned token for `token_ttl_seconds`
    3. Refreshing `refresh_buffer_seconds` before the TTL runs out
    4. Serializing concurrent refreshes behind an asyncio.Lock

    Login failures are logged and yield None; the caller degrades to
    local-only mode.

    Usage:
        provider = AdminTokenProvider(
            api_url="http://localhost:5000",
            email="admin@goldguard.gov.gh",
            password="...",
        )
        token = await provider.get_token()
    """

    def __init__(
        self,
        api_url: str,
        email: str,
        password: str,
        token_ttl_seconds: int = 24 * 3600,  # backend JWT_EXPIRES_IN default
        refresh_buffer_seconds: int = 300,
        timeout_seconds: float = 8.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_url = api_url.rstrip("/")
        self.email = email
        self._password = password
        self.token_ttl_seconds = token_ttl_seconds
        self.refresh_buffer_seconds = refresh_buffer_seconds
        self.timeout_seconds = timeout_seconds
        self._transport = transport

        self._token: Optional[str] = None
        self._token_expires_at: float = 0
        self._lock = asyncio.Lock()

        logger.info(f"Initialized AdminTokenProvider: email={email}, api_url={api_url}")

    def _needs_refresh(self) -> bool:
        return self._token is None or time.time() >= (
            self._token_expires_at - self.refresh_buffer_seconds
        )

    async def get_token(self) -> Optional[str]:
        if self._needs_refresh():
            async with self._lock:
                # Another waiter may have refreshed while we queued for the lock
                if self._needs_refresh():
                    await self._login()
        return self._token

    async def _login(self) -> None:
        logger.info(f"Logging in to case API as {self.email}")
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout_seconds, transport=self._transport
            ) as client:
                response = await client.post(
                    f"{self.api_url}/api/auth/login",
                    json={"email": self.email, "password": self._password},
                )
                response.raise_for_status()
                token = response.json()["data"]["token"]
        except (httpx.HTTPError, KeyError, TypeError, ValueError) as e:
            logger.error(f"Admin login failed: {e}")
            self._token = None
            self._token_expires_at = 0
            return

        self._token = token
        self._token_expires_at = time.time() + self.token_ttl_seconds
        logger.info(f"Admin token refreshed (valid for {self.token_ttl_seconds}s)")

    async def invalidate_token(self) -> None:
        async with self._lock:
            logger.info(f"Invalidating cached token for {self.email}")
            self._token = None
            self._token_expires_at = 0

    @property
    def is_token_valid(self) -> bool:
        return not self._needs_refresh()
