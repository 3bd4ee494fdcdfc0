"""Per-city event sources over The Events Calendar REST API."""

from __future__ import annotations

import logging
import random
from typing import Any, Sequence

import httpx

from listings.models import City

log = logging.getLogger(__name__)

_USER_AGENTS = [
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/131.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 14_5) AppleWebKit/605.1.15 (KHTML, like Gecko) Version/18.0 Safari/605.1.15",
    "Mozilla/5.0 (X11; Linux x86_64; rv:132.0) Gecko/20100101 Firefox/132.0",
]


class SourceError(RuntimeError):
    """An upstream request failed or returned something that is not JSON."""


class BaseSource:
    """Async client for one city's events site.

    Subclasses set ``name``, ``city`` and ``base_url``. The base URL is the
    ``/wp-json/tribe/events/v1`` root; the ``events/``, ``categories/`` and
    ``venues/`` endpoints hang off it.
    """

    #: Lower-case lookup key, e.g. "kelowna".
    name: str = ""

    city: City = City.KELOWNA

    base_url: str = ""

    #: Seconds before an upstream request is abandoned.
    timeout: float = 30.0

    #: Page size for the offset-paginated categories/venues listings.
    listing_page_size: int = 50

    def __init__(
        self,
        *,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not self.name or not self.base_url:
            raise ValueError("Source subclass must set 'name' and 'base_url'")
        if timeout is not None:
            self.timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    # ------------------------------------------------------------------
    # HTTP helpers
    # ------------------------------------------------------------------

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                headers={"User-Agent": random.choice(_USER_AGENTS)},
                follow_redirects=True,
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    async def fetch(self, url: str) -> dict[str, Any]:
        """GET *url* and return the decoded JSON body."""
        client = self._ensure_client()
        try:
            resp = await client.get(url)
            resp.raise_for_status()
            data = resp.json()
        except httpx.HTTPError as exc:
            raise SourceError(f"[{self.name}] {url} failed: {exc}") from exc
        except ValueError as exc:
            raise SourceError(f"[{self.name}] {url} returned invalid JSON") from exc
        if not isinstance(data, dict):
            raise SourceError(f"[{self.name}] {url} returned {type(data).__name__}, expected object")
        return data

    async def aclose(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def build_events_url(
        self,
        page: int,
        per_page: int,
        start_date: str,
        end_date: str,
        category_ids: Sequence[str] = (),
        venue_ids: Sequence[str] = (),
    ) -> str:
        """Build the events query string.

        Dates go out as ``YYYY-MM-DD HH:MM:SS`` local time, which is how the
        plugin interprets them. Array filters repeat the ``[]`` parameter.
        """
        url = (
            f"{self.base_url}/events/?page={page}&per_page={per_page}"
            f"&start_date={start_date}&end_date={end_date}"
            "&strict_dates=true&status=publish"
        )
        for cat_id in category_ids:
            url += f"&categories[]={cat_id}"
        for venue_id in venue_ids:
            url += f"&venue[]={venue_id}"
        return url

    async def fetch_events_page(
        self,
        page: int,
        per_page: int,
        start_date: str,
        end_date: str,
        category_ids: Sequence[str] = (),
        venue_ids: Sequence[str] = (),
    ) -> dict[str, Any]:
        """Fetch one raw page: ``{"events": [...], "total": n, "total_pages": n, ...}``."""
        url = self.build_events_url(
            page, per_page, start_date, end_date, category_ids, venue_ids
        )
        log.debug("[%s] GET %s", self.name, url)
        return await self.fetch(url)

    # ------------------------------------------------------------------
    # Categories / venues
    # ------------------------------------------------------------------

    async def fetch_listing(self, endpoint: str) -> list[dict[str, Any]]:
        """Follow an offset-paginated listing until ``next_rest_url`` runs out.

        *endpoint* is also the key of the item array in each response, e.g.
        ``"categories"`` or ``"venues"``.
        """
        items: list[dict[str, Any]] = []
        page = 1
        while True:
            url = (
                f"{self.base_url}/{endpoint}/?page={page}"
                f"&per_page={self.listing_page_size}&status=publish"
            )
            data = await self.fetch(url)
            batch = data.get(endpoint) or []
            if not batch:
                break
            items.extend(batch)
            log.debug("[%s] %s page %d: %d item(s)", self.name, endpoint, page, len(batch))
            if not data.get("next_rest_url"):
                break
            page += 1
        return items


# ------------------------------------------------------------------
# Registry
# ------------------------------------------------------------------

_registry: dict[str, type[BaseSource]] = {}

DEFAULT_SOURCE = "kelowna"


def register(cls: type[BaseSource]) -> type[BaseSource]:
    """Class decorator that registers a source by its *name*."""
    _registry[cls.name] = cls
    return cls


def get_sources() -> dict[str, type[BaseSource]]:
    """Return a copy of the source registry."""
    return dict(_registry)


def get_source(city: str) -> type[BaseSource]:
    """Look up a source by city name, case-insensitively.

    Unknown cities get the Kelowna source.
    """
    key = city.strip().lower()
    if key in _registry:
        return _registry[key]
    log.debug("Unknown city %r, using %s", city, DEFAULT_SOURCE)
    return _registry[DEFAULT_SOURCE]
