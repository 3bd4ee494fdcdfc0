"""Live Music show feed API."""

from __future__ import annotations

import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware

from listings.cache import DEFAULT_TTL, ResultCache
from listings.dates import DATE_PRESETS, resolve_date_preset
from listings.feed import EventFeed
from listings.models import Category, EventsPage, FilterParams, Venue
from listings.timefilter import TIME_FILTERS, time_filter_strings


def _default_feed() -> EventFeed:
    ttl = float(os.getenv("LIVEMUSIC_CACHE_TTL", DEFAULT_TTL))
    timeout = os.getenv("LIVEMUSIC_HTTP_TIMEOUT")
    return EventFeed(
        cache=ResultCache(ttl=ttl),
        timeout=float(timeout) if timeout else None,
    )


def create_app(feed: EventFeed | None = None) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.feed = feed or _default_feed()
        yield
        await app.state.feed.aclose()

    app = FastAPI(title="Live Music BC", version="0.1.0", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[os.getenv("FRONTEND_ORIGIN", "*")],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    @app.get("/api/time-filters")
    async def list_time_filters():
        filters = []
        for tf in TIME_FILTERS:
            start_time, end_time = time_filter_strings(tf.value)
            filters.append(
                {
                    "value": tf.value,
                    "label": tf.label,
                    "start_hour": tf.start_hour,
                    "end_hour": tf.end_hour,
                    "start_time": start_time,
                    "end_time": end_time,
                }
            )
        return filters

    @app.get("/api/date-presets")
    async def list_date_presets():
        presets = []
        for value, label in DATE_PRESETS.items():
            date_from, date_to = resolve_date_preset(value)
            presets.append({"value": value, "label": label, "from": date_from, "to": date_to})
        return presets

    @app.get("/api/{city}/events", response_model=EventsPage)
    async def list_events(
        request: Request,
        city: str,
        page: int = Query(1, ge=1),
        category: list[str] = Query(default=[]),
        venue: list[str] = Query(default=[]),
        time_filter: str | None = None,
        date_from: str | None = None,
        date_to: str | None = None,
        preset: str | None = None,
    ):
        """One page of shows; time filters are applied across all upstream pages."""
        if preset:
            try:
                date_from, date_to = resolve_date_preset(preset)
            except ValueError as exc:
                raise HTTPException(status_code=400, detail=str(exc)) from exc
        filters = FilterParams(
            category_ids=tuple(category),
            venue_ids=tuple(venue),
            time_filter=time_filter or None,
            date_from=date_from,
            date_to=date_to,
        )
        return await request.app.state.feed.fetch_events(city, page, filters)

    @app.get("/api/{city}/genres", response_model=list[Category])
    async def list_genres(request: Request, city: str):
        return await request.app.state.feed.fetch_genres(city)

    @app.get("/api/{city}/venues", response_model=list[Venue])
    async def list_venues(request: Request, city: str):
        return await request.app.state.feed.fetch_venues(city)

    return app


app = create_app()
