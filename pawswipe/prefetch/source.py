"""
Image Sources - Where prefetched payloads come from.

The source contract:
- fetch() returns raw bytes or raises FetchFailure
- nothing guarantees distinct images unless the caller passes a fresh
  cache-busting token on every request
- fallback_reference() is static and deterministic per slot
"""

from __future__ import annotations
from abc import ABC, abstractmethod
import secrets
import time

import httpx

from ..errors import FetchFailure


def cache_bust_token() -> str:
    """Millisecond timestamp plus a random suffix; unique per call."""
    return f"{int(time.time() * 1000)}-{secrets.token_hex(4)}"


class ImageSource(ABC):
    """Abstract image provider."""

    @abstractmethod
    async def fetch(self, cache_bust: str) -> bytes:
        """Fetch one image payload."""

    @abstractmethod
    def fallback_reference(self, slot_index: int) -> str:
        """Static reference used when every attempt for a slot failed."""

    async def aclose(self) -> None:
        """Release any connections held by the source."""


class HttpImageSource(ImageSource):
    """
    Fetches images over HTTP with httpx.

    The same AsyncClient serves all concurrent slot fetches of a batch.
    """

    def __init__(
        self,
        base_url: str = "https://cataas.com/cat",
        width: int = 400,
        height: int = 400,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ):
        self.base_url = base_url
        self.width = width
        self.height = height
        self.timeout = timeout
        self._client = client
        self._owns_client = client is None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.timeout,
                follow_redirects=True,
                headers={"Cache-Control": "no-cache"},
            )
        return self._client

    def request_params(self, cache_bust: str) -> dict[str, str | int]:
        t, _, r = cache_bust.partition("-")
        return {"width": self.width, "height": self.height, "t": t, "r": r}

    async def fetch(self, cache_bust: str) -> bytes:
        client = self._get_client()
        try:
            response = await client.get(self.base_url, params=self.request_params(cache_bust))
        except httpx.HTTPError as e:
            raise FetchFailure(f"Request failed: {e!r}") from e

        if not response.is_success:
            raise FetchFailure(f"Unexpected status {response.status_code}")
        if not response.content:
            raise FetchFailure("Empty response body")
        return response.content

    def fallback_reference(self, slot_index: int) -> str:
        return str(
            httpx.URL(
                self.base_url,
                params={"width": self.width, "height": self.height, "fallback": slot_index},
            )
        )

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None
