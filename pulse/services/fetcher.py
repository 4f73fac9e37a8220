"""Upstream data source client.

The core only needs one capability: fetch a named resource and return its
list of items, or fail with FetchError. HttpFetcher implements it over
httpx with:
- a configured base URL
- an opaque bearer credential on every request
- a per-request timeout

No retries: a failed fetch is terminal for that call.
"""

from __future__ import annotations

from collections.abc import Mapping
import logging
from typing import Any, Protocol

import httpx

from pulse.errors import FetchError

logger = logging.getLogger("uvicorn.error")


class Fetcher(Protocol):
    """Anything that can fetch a resource's item list."""

    async def fetch(self, resource_id: str, field: str) -> list[Any]:
        ...


class HttpFetcher:
    """Fetcher backed by an httpx.AsyncClient.

    GET {base_url}/{resource_id} returns a JSON envelope such as
    {"numbers": [...]} or {"users": {"1": "John"}}; `field` selects the
    collection. Mapping collections come back as (key, value) pairs in
    upstream order.
    """

    def __init__(
        self,
        base_url: str,
        auth_token: str = "",
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._auth_token = auth_token
        self._http_client = client
        self._owns_client = client is None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient()
        return self._http_client

    async def close(self) -> None:
        """Close the HTTP client if this fetcher created it."""
        if self._http_client and self._owns_client:
            await self._http_client.aclose()
            self._http_client = None

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self._auth_token:
            headers["Authorization"] = f"Bearer {self._auth_token}"
        return headers

    async def fetch(self, resource_id: str, field: str) -> list[Any]:
        """Fetch a resource and extract its item collection.

        Args:
            resource_id: Path below the base URL (e.g. "primes", "users/1/posts").
            field: Envelope key holding the items (e.g. "numbers", "posts").

        Returns:
            Items in upstream order.

        Raises:
            FetchError: On transport error, timeout, non-2xx status or bad payload.
        """
        url = f"{self.base_url}/{resource_id.lstrip('/')}"
        client = await self._get_client()
        try:
            response = await client.get(url, headers=self._headers(), timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except httpx.TimeoutException as e:
            raise FetchError(resource_id, f"timed out after {self.timeout}s") from e
        except httpx.HTTPStatusError as e:
            raise FetchError(resource_id, f"HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise FetchError(resource_id, e) from e
        except ValueError as e:
            raise FetchError(resource_id, "response is not valid JSON") from e

        return _extract_items(resource_id, data, field)


def _extract_items(resource_id: str, data: Any, field: str) -> list[Any]:
    if not isinstance(data, Mapping) or field not in data:
        raise FetchError(resource_id, f"missing '{field}' in response")

    items = data[field]
    if items is None:
        return []
    if isinstance(items, Mapping):
        return list(items.items())
    if isinstance(items, list):
        return items
    raise FetchError(resource_id, f"unexpected '{field}' payload: {type(items).__name__}")
