"""livemusickelowna.ca – Kelowna show listings."""

from __future__ import annotations

from listings.base import BaseSource, register
from listings.models import City


@register
class KelownaSource(BaseSource):
    name = "kelowna"
    city = City.KELOWNA
    base_url = "https://livemusickelowna.ca/wp-json/tribe/events/v1"
