"""Reference photo lookup against the taxonomy provider."""

import logging
from dataclasses import dataclass

from animal_identifier.adapters.inaturalist_client import TaxonomyClient
from animal_identifier.services.cache import Cache

_logger = logging.getLogger(__name__)


@dataclass
class ReferencePhotoService:
    """Find an exemplar photo for a species name, never raising."""

    taxonomy_client: TaxonomyClient
    cache: Cache
    ttl_seconds: int = 86400

    async def find_photo_url(self, common_name: str) -> str | None:
        """Return the first matching taxon's medium photo URL, if any."""
        cache_key = f"inat:photo:{common_name.strip().lower()}"
        cached = self.cache.get(cache_key)
        if isinstance(cached, str):
            return cached

        try:
            payload = await self.taxonomy_client.search_taxa(common_name, per_page=1)
        except Exception as exc:
            _logger.warning(
                "Reference photo lookup failed for %s: %s", common_name, exc
            )
            return None

        url = _first_photo_url(payload)
        if url is not None:
            self.cache.set(cache_key, url, ttl_seconds=self.ttl_seconds)
        return url


def _first_photo_url(payload: object) -> str | None:
    """Pull ``results[0].default_photo.medium_url`` out of a taxa response."""
    if not isinstance(payload, dict):
        return None
    results = payload.get("results")
    if not isinstance(results, list) or not results:
        return None
    taxon = results[0]
    if not isinstance(taxon, dict):
        return None
    photo = taxon.get("default_photo")
    if not isinstance(photo, dict):
        return None
    url = photo.get("medium_url")
    return url if isinstance(url, str) and url else None
