"""Show feed: picks a pagination strategy per query and returns one page.

Without a time-of-day filter the upstream API pages for us. With one, every
page is fetched, normalized and filtered locally, the result is cached, and
pages are cut from the cached list.
"""

from __future__ import annotations

import asyncio
import logging
import math
import time
from collections import Counter
from datetime import datetime
from typing import Any, Callable, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

import listings.sources  # noqa: F401
from listings.base import BaseSource, SourceError, get_source
from listings.cache import ResultCache
from listings.dates import resolve_date_window
from listings.models import CacheKey, Category, EventsPage, FilterParams, Show, Venue
from listings.normalize import map_events
from listings.timefilter import filter_all_day, filter_by_time

log = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

#: Shows per page, for both upstream paging and local re-pagination.
PAGE_SIZE = 10

#: Upstream page size when every page is needed.
EXHAUSTIVE_PAGE_SIZE = 100

#: Maximum page requests in flight during an exhaustive fetch.
MAX_CONCURRENCY = 5

#: Marker for ``next_rest_url`` when a locally paginated page has a successor.
HAS_NEXT = "has-next"


class EventFeed:
    """Entry point used by the CLI and the HTTP API.

    Construct one per process; the :class:`ResultCache` it holds is shared by
    every query made through it.
    """

    def __init__(
        self,
        cache: ResultCache | None = None,
        *,
        page_size: int = PAGE_SIZE,
        exhaustive_page_size: int = EXHAUSTIVE_PAGE_SIZE,
        max_concurrency: int = MAX_CONCURRENCY,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        now: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.cache = cache if cache is not None else ResultCache()
        self.page_size = page_size
        self.exhaustive_page_size = exhaustive_page_size
        self.max_concurrency = max_concurrency
        self.stats: Counter[str] = Counter()
        self._timeout = timeout
        self._transport = transport
        self._now = now
        self._sources: dict[str, BaseSource] = {}

    def source_for(self, city: str) -> BaseSource:
        cls = get_source(city)
        if cls.name not in self._sources:
            self._sources[cls.name] = cls(timeout=self._timeout, transport=self._transport)
        return self._sources[cls.name]

    async def aclose(self) -> None:
        for source in self._sources.values():
            await source.aclose()
        self._sources.clear()

    async def __aenter__(self) -> "EventFeed":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    # ------------------------------------------------------------------
    # Shows
    # ------------------------------------------------------------------

    async def fetch_events(
        self,
        city: str,
        page: int = 1,
        filters: FilterParams | None = None,
    ) -> EventsPage:
        """Return one page of shows for *city*.

        Never raises for upstream failures: the page comes back empty with
        ``error`` set.
        """
        filters = filters or FilterParams()
        page = max(1, page)
        source = self.source_for(city)
        window = resolve_date_window(filters.date_from, filters.date_to, now=self._now())

        if not filters.needs_exhaustive_fetch:
            return await self._fetch_api_page(source, page, window, filters)

        key = CacheKey(city=source.name, filters=filters)
        shows = self.cache.get(key)
        if shows is not None:
            self.stats["cache_hits"] += 1
            log.info("[%s] Using cached %r results (page %d)", source.name, filters.time_filter, page)
        else:
            try:
                shows = await self._fetch_filtered(source, window, filters)
            except SourceError as exc:
                log.error("[%s] Exhaustive fetch failed: %s", source.name, exc)
                return EventsPage(error=str(exc))
            if shows is None:
                return EventsPage()
            self.cache.put(key, shows)
        return self.paginate(shows, page)

    async def _fetch_api_page(
        self,
        source: BaseSource,
        page: int,
        window: tuple[str, str],
        filters: FilterParams,
    ) -> EventsPage:
        try:
            data = await source.fetch_events_page(
                page,
                self.page_size,
                *window,
                category_ids=filters.category_ids,
                venue_ids=filters.venue_ids,
            )
        except SourceError as exc:
            log.error("[%s] Page %d failed: %s", source.name, page, exc)
            return EventsPage(error=str(exc))

        shows = map_events(data.get("events") or [])
        log.info("[%s] Fetched page %d: %d show(s)", source.name, page, len(shows))
        return EventsPage(
            events=shows,
            total=int(data.get("total") or 0),
            total_pages=int(data.get("total_pages") or 0),
            rest_url=data.get("rest_url") or "",
            next_rest_url=data.get("next_rest_url"),
        )

    async def _fetch_filtered(
        self,
        source: BaseSource,
        window: tuple[str, str],
        filters: FilterParams,
    ) -> list[Show] | None:
        """Fetch every page, normalize, and apply the time filter.

        Returns ``None`` when page 1 has no events. A page 1 failure raises
        :class:`SourceError`; later page failures only drop that page.
        """
        self.stats["exhaustive_fetches"] += 1
        started = time.monotonic()

        first = await self._fetch_raw(source, 1, window, filters)
        raw_events: list[dict[str, Any]] = list(first.get("events") or [])
        if not raw_events:
            log.info("[%s] No events found", source.name)
            return None

        total_pages = int(first.get("total_pages") or 1)
        if total_pages > 1:
            pages = await self._fetch_remaining(source, range(2, total_pages + 1), window, filters)
            for events in pages:
                raw_events.extend(events)
        log.info(
            "[%s] Fetched %d page(s), %d event(s) in %.2fs",
            source.name,
            total_pages,
            len(raw_events),
            time.monotonic() - started,
        )

        shows = map_events(raw_events)
        if filters.is_all_day:
            matched = filter_all_day(shows)
        else:
            matched = filter_by_time(shows, filters.time_filter or "", self.stats)
        log.info(
            "[%s] %r filter: %d/%d show(s) match",
            source.name,
            filters.time_filter,
            len(matched),
            len(shows),
        )
        return matched

    async def _fetch_raw(
        self,
        source: BaseSource,
        page: int,
        window: tuple[str, str],
        filters: FilterParams,
    ) -> dict[str, Any]:
        return await source.fetch_events_page(
            page,
            self.exhaustive_page_size,
            *window,
            category_ids=filters.category_ids,
            venue_ids=filters.venue_ids,
        )

    async def _fetch_remaining(
        self,
        source: BaseSource,
        pages: range,
        window: tuple[str, str],
        filters: FilterParams,
    ) -> list[list[dict[str, Any]]]:
        """Fetch *pages* with bounded concurrency, results in page order."""
        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def fetch_one(page: int) -> list[dict[str, Any]]:
            async with semaphore:
                try:
                    data = await self._fetch_raw(source, page, window, filters)
                except SourceError as exc:
                    self.stats["page_failures"] += 1
                    log.error("[%s] Page %d failed, skipping: %s", source.name, page, exc)
                    return []
                return list(data.get("events") or [])

        return await asyncio.gather(*(fetch_one(p) for p in pages))

    def paginate(self, shows: list[Show], page: int) -> EventsPage:
        """Cut page *page* out of an already filtered list."""
        start = (max(1, page) - 1) * self.page_size
        end = start + self.page_size
        return EventsPage(
            events=shows[start:end],
            total=len(shows),
            total_pages=math.ceil(len(shows) / self.page_size),
            rest_url="",
            next_rest_url=HAS_NEXT if end < len(shows) else None,
        )

    # ------------------------------------------------------------------
    # Filter options
    # ------------------------------------------------------------------

    async def fetch_genres(self, city: str) -> list[Category]:
        """All event categories for *city*; empty on failure."""
        source = self.source_for(city)
        try:
            items = await source.fetch_listing("categories")
        except SourceError as exc:
            log.error("[%s] Fetching categories failed: %s", source.name, exc)
            return []
        categories = _validate_records(Category, items, source.name)
        log.info("[%s] Fetched %d categories", source.name, len(categories))
        return categories

    async def fetch_venues(self, city: str) -> list[Venue]:
        """All venues for *city*, sorted by name; empty on failure."""
        source = self.source_for(city)
        try:
            items = await source.fetch_listing("venues")
        except SourceError as exc:
            log.error("[%s] Fetching venues failed: %s", source.name, exc)
            return []
        venues = _validate_records(Venue, items, source.name)
        venues.sort(key=lambda v: v.venue.casefold())
        log.info("[%s] Fetched %d venues", source.name, len(venues))
        return venues


def _validate_records(model: type[M], items: list[Any], source_name: str) -> list[M]:
    """Validate listing records, skipping the malformed ones."""
    records: list[M] = []
    for item in items:
        try:
            records.append(model.model_validate(item))
        except ValidationError as exc:
            log.warning(
                "[%s] Skipping %s record: %d validation error(s)",
                source_name,
                model.__name__,
                exc.error_count(),
            )
    return records
