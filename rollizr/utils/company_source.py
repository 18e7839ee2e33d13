"""Company source abstraction for target ingestion.

Raw company records come from public business directories. To support both
real and mock environments, this module defines a common interface with
concrete implementations.

* ``BaseCompanySource`` defines the async ``search`` method returning a list
  of normalized company dicts. The orchestrator treats these records as
  opaque payloads.
* ``MockCompanySource`` returns a fixed sample record without any network
  access.
* ``YelpCompanySource`` pages through the Yelp Fusion business search.
* ``GoogleMapsCompanySource`` uses the Google Places text search.

Both HTTP sources respect a configurable request rate; the delay is advisory
and applied client side only.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional
from urllib.parse import urlparse

import requests

from ..exceptions import ConfigError

logger = logging.getLogger(__name__)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def estimate_employees(review_count: int) -> int:
    """Rough headcount bucket from public review volume."""
    if review_count < 30:
        return 3
    if review_count < 100:
        return 5
    if review_count < 200:
        return 10
    if review_count < 400:
        return 15
    return 20


class BaseCompanySource:
    """Abstract base class for company sources."""

    name = "base"

    async def search(self, location: str, term: str = "HVAC") -> List[Dict[str, Any]]:
        raise NotImplementedError


class MockCompanySource(BaseCompanySource):
    """A mock source that returns one sample company for any query."""

    name = "mock"

    async def search(self, location: str, term: str = "HVAC") -> List[Dict[str, Any]]:
        city, _, state = location.partition(",")
        return [
            {
                "company_id": "mock_001",
                "legal_name": f"Sample {term} Services LLC",
                "dba": f"Sample {term}",
                "city": city.strip() or "N/A",
                "state": state.strip() or "N/A",
                "vertical": term,
                "data_source": self.name,
                "scraped_at": _now_iso(),
            }
        ]


class _ThrottledSource(BaseCompanySource):
    """Shared throttling for HTTP-backed sources."""

    def __init__(self, api_key: str, rate_limit: int = 60):
        if not api_key:
            raise ValueError(f"{self.__class__.__name__} requires an API key")
        self.api_key = api_key
        self.rate_limit = rate_limit
        self._lock = asyncio.Lock()
        self._last_request: Optional[float] = None

    async def _throttle(self) -> None:
        """Ensures no more than `rate_limit` requests per minute are made."""
        async with self._lock:
            if self.rate_limit <= 0:
                return
            loop = asyncio.get_running_loop()
            now = loop.time()
            if self._last_request is not None:
                elapsed = now - self._last_request
                min_interval = 60 / self.rate_limit
                if elapsed < min_interval:
                    await asyncio.sleep(min_interval - elapsed)
            self._last_request = loop.time()

    async def _get(self, url: str, **kwargs: Any) -> Dict[str, Any]:
        await self._throttle()
        # Perform the HTTP request in a thread to avoid blocking the event loop
        response = await asyncio.to_thread(requests.get, url, timeout=10, **kwargs)
        response.raise_for_status()
        return response.json()


class YelpCompanySource(_ThrottledSource):
    """Company source backed by the Yelp Fusion business search API."""

    name = "yelp"
    SEARCH_ENDPOINT = "https://api.yelp.com/v3/businesses/search"
    PAGE_SIZE = 50
    MAX_RESULTS = 200

    async def search(self, location: str, term: str = "HVAC") -> List[Dict[str, Any]]:
        headers = {"Authorization": f"Bearer {self.api_key}"}
        businesses: List[Dict[str, Any]] = []
        offset = 0
        while offset < self.MAX_RESULTS:
            data = await self._get(
                self.SEARCH_ENDPOINT,
                headers=headers,
                params={
                    "term": term,
                    "location": location,
                    "limit": self.PAGE_SIZE,
                    "offset": offset,
                    "sort_by": "rating",
                },
            )
            page = data.get("businesses", []) or []
            businesses.extend(page)
            logger.debug("Retrieved %d businesses from Yelp (offset %d)", len(page), offset)
            if len(page) < self.PAGE_SIZE:
                break
            offset += self.PAGE_SIZE
        logger.info("Yelp returned %d businesses for %s in %s", len(businesses), term, location)
        return [self.normalize(b, term) for b in businesses]

    def normalize(self, business: Dict[str, Any], vertical: str) -> Dict[str, Any]:
        location = business.get("location") or {}
        coordinates = business.get("coordinates") or {}
        url = business.get("url")
        review_count = business.get("review_count") or 0
        host = urlparse(url).hostname if url else None
        return {
            "company_id": f"yelp_{business.get('id')}",
            "yelp_id": business.get("id"),
            "legal_name": business.get("name"),
            "dba": business.get("name"),
            "domain": host.replace("www.", "") if host else None,
            "phone": business.get("phone") or business.get("display_phone"),
            "address": location.get("address1"),
            "city": location.get("city"),
            "state": location.get("state"),
            "zip": location.get("zip_code"),
            "latitude": coordinates.get("latitude"),
            "longitude": coordinates.get("longitude"),
            "vertical": vertical,
            "business_status": "CLOSED" if business.get("is_closed") else "OPERATIONAL",
            "yelp_reviews": {"count": review_count, "average_rating": business.get("rating") or 0},
            "categories": [c.get("title") for c in business.get("categories") or []],
            "price_range": business.get("price"),
            "estimated_employees": estimate_employees(review_count),
            "data_source": self.name,
            "scraped_at": _now_iso(),
            "raw_data": business,
        }


class GoogleMapsCompanySource(_ThrottledSource):
    """Company source backed by the Google Places text search API."""

    name = "google_maps"
    SEARCH_ENDPOINT = "https://maps.googleapis.com/maps/api/place/textsearch/json"

    async def search(self, location: str, term: str = "HVAC") -> List[Dict[str, Any]]:
        data = await self._get(
            self.SEARCH_ENDPOINT,
            params={"query": f"{term} companies in {location}", "key": self.api_key},
        )
        status = data.get("status")
        if status not in ("OK", "ZERO_RESULTS"):
            raise RuntimeError(f"Google Places search failed: {status}")
        places = data.get("results", []) or []
        logger.info("Google Maps returned %d places for %s in %s", len(places), term, location)
        return [self.normalize(p, term) for p in places]

    def normalize(self, place: Dict[str, Any], vertical: str) -> Dict[str, Any]:
        address = place.get("formatted_address") or ""
        parts = [p.strip() for p in address.split(",")]
        city = parts[-3] if len(parts) >= 3 else None
        state = parts[-2].split()[0] if len(parts) >= 2 and parts[-2] else None
        review_count = place.get("user_ratings_total") or 0
        geometry = (place.get("geometry") or {}).get("location") or {}
        return {
            "company_id": f"gmaps_{place.get('place_id')}",
            "google_place_id": place.get("place_id"),
            "legal_name": place.get("name"),
            "dba": place.get("name"),
            "address": address or None,
            "city": city,
            "state": state,
            "latitude": geometry.get("lat"),
            "longitude": geometry.get("lng"),
            "vertical": vertical,
            "business_status": place.get("business_status"),
            "google_reviews": {"count": review_count, "average_rating": place.get("rating") or 0},
            "categories": place.get("types") or [],
            "estimated_employees": estimate_employees(review_count),
            "data_source": self.name,
            "scraped_at": _now_iso(),
            "raw_data": place,
        }


def get_company_source(provider: str, api_key: Optional[str], rate_limit: int = 60) -> BaseCompanySource:
    """Factory function that returns an appropriate company source.

    Parameters
    ----------
    provider: str
        Provider name. Supported values are ``"mock"``, ``"yelp"`` and
        ``"google_maps"``.
    api_key: Optional[str]
        API key for the provider. Required when provider is not ``"mock"``.
    rate_limit: int
        Maximum number of requests per minute allowed by the provider.
    """
    provider = (provider or "mock").lower()
    if provider == "yelp":
        return YelpCompanySource(api_key=api_key or "", rate_limit=rate_limit)
    if provider == "google_maps":
        return GoogleMapsCompanySource(api_key=api_key or "", rate_limit=rate_limit)
    return MockCompanySource()


PROVIDERS = ("mock", "yelp", "google_maps")


def build_company_sources(section: Mapping[str, Any]) -> List[BaseCompanySource]:
    """Build every source named in the ``company_source`` config section.

    ``providers`` maps provider names to their own ``api_key`` and optional
    ``rate_limit`` (a plain list of names is accepted for keyless sources).
    Without ``providers`` the single ``provider``/``api_key`` form is used.
    The section-level ``rate_limit`` is the default for every provider.

    Raises
    ------
    ConfigError
        If a provider is unknown or lacks a required API key.
    """
    default_rate = int(section.get("rate_limit", 60))
    providers = section.get("providers")
    if providers is None:
        providers = {section.get("provider") or "mock": {"api_key": section.get("api_key")}}
    elif isinstance(providers, list):
        providers = {name: {} for name in providers}
    if not isinstance(providers, dict) or not providers:
        raise ConfigError("company_source.providers must be a non-empty mapping or list")

    sources: List[BaseCompanySource] = []
    for name, settings in providers.items():
        settings = settings or {}
        if name not in PROVIDERS:
            raise ConfigError(f"Unknown company source '{name}'; expected one of {', '.join(PROVIDERS)}")
        try:
            sources.append(
                get_company_source(name, settings.get("api_key"), int(settings.get("rate_limit", default_rate)))
            )
        except ValueError as exc:
            raise ConfigError(f"Company source '{name}': {exc}") from exc
    return sources
