"""iNaturalist taxa API client."""

from dataclasses import dataclass
from typing import Protocol

import httpx


class TaxonomyClient(Protocol):
    """Interface for taxonomy keyword search."""

    async def search_taxa(self, query: str, per_page: int = 1) -> dict[str, object]:
        """Search taxa by name and return raw API data."""


@dataclass
class HttpxINaturalistClient(TaxonomyClient):
    """HTTPX-backed iNaturalist client."""

    base_url: str
    http_client: httpx.AsyncClient

    @classmethod
    def create(cls, base_url: str) -> "HttpxINaturalistClient":
        """Create an iNaturalist client with a managed httpx session."""
        return cls(base_url=base_url, http_client=httpx.AsyncClient())

    async def search_taxa(self, query: str, per_page: int = 1) -> dict[str, object]:
        """Search taxa by query."""
        response = await self.http_client.get(
            f"{self.base_url}/taxa",
            params={"q": query, "per_page": per_page},
            timeout=15,
        )
        response.raise_for_status()
        return response.json()

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
