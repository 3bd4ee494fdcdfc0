"""livemusicnelson.ca – Nelson show listings."""

from __future__ import annotations

from listings.base import BaseSource, register
from listings.models import City


@register
class NelsonSource(BaseSource):
    name = "nelson"
    city = City.NELSON
    base_url = "https://livemusicnelson.ca/wp-json/tribe/events/v1"
