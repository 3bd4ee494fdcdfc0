"""Shared Pydantic models for the live-music show feed."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class City(str, Enum):
    KELOWNA = "Kelowna"
    NELSON = "Nelson"


class ImageVariant(BaseModel):
    url: str
    width: int | None = None
    height: int | None = None


class Show(BaseModel):
    """One normalized event record, built fresh from every upstream fetch."""

    id: str
    title: str
    artist: str
    venue: str = "TBA"
    venue_address: str = ""
    city: City = City.KELOWNA
    date: str
    time: str
    start_hour: int | None = None
    all_day: bool = False
    genre: list[str] = Field(default_factory=lambda: ["General"])
    description: str = ""
    image_url: str | None = None
    image_width: int | None = None
    image_height: int | None = None
    mobile_image: ImageVariant | None = None
    hd_image: ImageVariant | None = None
    price: str = "Free"
    capacity: int | None = None
    popularity: float = 4.0
    is_public: bool = True
    creator: str = "system"
    created_at: datetime | None = None
    updated_at: datetime | None = None


class FilterParams(BaseModel):
    """Immutable set of optional filters for one show query."""

    model_config = ConfigDict(frozen=True)

    category_ids: tuple[str, ...] = ()
    venue_ids: tuple[str, ...] = ()
    time_filter: str | None = None
    date_from: str | None = None
    date_to: str | None = None

    @property
    def is_all_day(self) -> bool:
        return self.time_filter == "all-day"

    @property
    def has_time_filter(self) -> bool:
        return bool(self.time_filter) and not self.is_all_day

    @property
    def needs_exhaustive_fetch(self) -> bool:
        # The upstream API cannot filter by hour of day.
        return self.has_time_filter or self.is_all_day


class CacheKey(BaseModel):
    model_config = ConfigDict(frozen=True)

    city: str
    filters: FilterParams


class EventsPage(BaseModel):
    """One page of shows plus pagination metadata."""

    events: list[Show] = Field(default_factory=list)
    total: int = 0
    total_pages: int = 0
    rest_url: str = ""
    next_rest_url: str | None = None
    #: Set when the upstream fetch failed and the page is empty because of it.
    error: str | None = None


class Category(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int
    name: str
    slug: str = ""
    count: int = 0


class Venue(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int
    venue: str
    slug: str = ""
    address: str | None = None
    city: str | None = None
    province: str | None = None
    zip: str | None = None
