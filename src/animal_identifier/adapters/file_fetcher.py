"""Binary download client."""

from dataclasses import dataclass
from typing import Protocol

import httpx


class FileFetcher(Protocol):
    """Interface for downloading a payload by URL."""

    async def fetch(self, url: str) -> bytes:
        """Return the body of the resource at ``url``."""


@dataclass
class HttpxFileFetcher(FileFetcher):
    """File fetcher using httpx."""

    http_client: httpx.AsyncClient

    @classmethod
    def create(cls) -> "HttpxFileFetcher":
        """Create a fetcher with a managed httpx session."""
        return cls(http_client=httpx.AsyncClient(follow_redirects=True))

    async def fetch(self, url: str) -> bytes:
        response = await self.http_client.get(url, timeout=20)
        response.raise_for_status()
        return response.content

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
