from __future__ import annotations

import asyncio
from datetime import datetime

import httpx
import pytest

from listings.feed import EventFeed


def make_event(event_id: int, start: str = "2026-11-06 20:00:00", **overrides) -> dict:
    """A trimmed-down Events Calendar record."""
    event = {
        "id": event_id,
        "author": "7",
        "status": "publish",
        "date_utc": "2026-10-01 17:30:00",
        "modified_utc": "2026-10-02 09:15:00",
        "title": f"Band {event_id}",
        "description": "<p>Live on the patio</p>",
        "all_day": False,
        "start_date": start,
        "end_date": start,
        "cost": "20",
        "categories": [{"id": 3, "name": "Rock"}],
        "venue": {
            "id": 11,
            "venue": "Spiritbar",
            "address": "422 Vernon St",
            "city": "Nelson",
            "province": "BC",
            "zip": "V1L 4E5",
        },
    }
    event.update(overrides)
    return event


class FakeUpstream:
    """Serves ``pages`` as an Events Calendar ``/events/`` endpoint."""

    def __init__(
        self,
        pages: dict[int, list[dict]],
        *,
        total_pages: int | None = None,
        fail_pages: tuple[int, ...] = (),
        delays: dict[int, float] | None = None,
    ) -> None:
        self.pages = pages
        self.total_pages = total_pages if total_pages is not None else len(pages)
        self.fail_pages = fail_pages
        self.delays = delays or {}
        self.requests: list[httpx.Request] = []
        self.completed: list[int] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        page = int(request.url.params["page"])
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delays.get(page, 0))
        finally:
            self.in_flight -= 1
        self.completed.append(page)
        if page in self.fail_pages:
            return httpx.Response(500, text="upstream exploded")
        events = self.pages.get(page, [])
        return httpx.Response(
            200,
            json={
                "events": events,
                "rest_url": str(request.url),
                "total": sum(len(p) for p in self.pages.values()),
                "total_pages": self.total_pages,
            },
        )

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def pages_requested(self) -> list[int]:
        return [int(r.url.params["page"]) for r in self.requests]


@pytest.fixture()
def fixed_now():
    return lambda: datetime(2026, 10, 19, 9, 30, 0)


@pytest.fixture()
def make_feed(fixed_now):
    def _make(upstream: FakeUpstream, **kwargs) -> EventFeed:
        return EventFeed(transport=upstream.transport, now=fixed_now, **kwargs)

    return _make
