"""Base HTTP client for the remote case API."""

import logging
from typing import Any, Optional

import httpx

from goldguard_core.exceptions import RemoteUnavailable

logger = logging.getLogger(__name__)


class BaseApiClient:
    """Base class for async clients of the GoldGuard backend.

    Every call opens a short-lived AsyncClient bounded by `timeout`. Any
    transport error, timeout, non-2xx response or non-JSON body is raised as
    RemoteUnavailable so callers deal with a single failure type.

    Usage:
        class CaseApiClient(BaseApiClient):
            async def list_cases(self, token: str) -> List[Case]:
                body = await self._request("GET", "/api/cases", token=token)
                ...
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 8.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize API client.

        Args:
            base_url: Backend base URL (e.g., http://localhost:5000)
            timeout: Request timeout in seconds (default: 8.0)
            transport: Optional httpx transport (tests pass a MockTransport)
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

        logger.info(f"Initialized {self.__class__.__name__} with base_url={base_url}")

    def _headers(self, token: Optional[str] = None) -> dict:
        """Request headers, with a bearer credential when one is given"""
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    def _get_client(self) -> httpx.AsyncClient:
        """Get HTTP client instance with configured timeout.

        Returns:
            Configured AsyncClient ready for use with async context manager
        """
        return httpx.AsyncClient(timeout=self.timeout, transport=self._transport)

    async def _request(
        self,
        method: str,
        path: str,
        token: Optional[str] = None,
        json: Optional[dict] = None,
    ) -> Any:
        """Send one request and return the decoded JSON body (None if empty).

        Raises:
            RemoteUnavailable: On any transport, HTTP status or decoding failure
        """
        url = f"{self.base_url}{path}"
        try:
            async with self._get_client() as client:
                response = await client.request(
                    method, url, json=json, headers=self._headers(token)
                )
                response.raise_for_status()
        except httpx.TimeoutException as e:
            raise RemoteUnavailable(f"{method} {path} timed out after {self.timeout}s") from e
        except httpx.HTTPStatusError as e:
            raise RemoteUnavailable(
                f"{method} {path} returned HTTP {e.response.status_code}",
                status_code=e.response.status_code,
            ) from e
        except httpx.HTTPError as e:
            raise RemoteUnavailable(f"{method} {path} failed: {e}") from e

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise RemoteUnavailable(f"{method} {path} returned a non-JSON body") from e

    async def close(self):
        """Close any persistent connections.

        Override this if your client maintains a persistent httpx.AsyncClient.
        """
        pass
