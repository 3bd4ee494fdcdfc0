"""Map raw Events Calendar records onto :class:`Show`."""

from __future__ import annotations

import logging
import random
import re
from datetime import datetime, timezone
from typing import Any

from listings.models import City, ImageVariant, Show

log = logging.getLogger(__name__)

#: Responsive image size preferred for list cards.
PHONE_IMAGE_SIZE = "et-pb-image--responsive--phone"

# Order matters: "&amp;lt;" decodes all the way to "<".
_ENTITIES = (
    ("&#8217;", "'"),
    ("&#8211;", "–"),
    ("&#8212;", "—"),
    ("&#8220;", '"'),
    ("&#8221;", '"'),
    ("&#8230;", "…"),
    ("&#038;", "&"),
    ("&amp;", "&"),
    ("&lt;", "<"),
    ("&gt;", ">"),
    ("&quot;", '"'),
    ("&#39;", "'"),
    ("&apos;", "'"),
    ("\u00a0", " "),
    ("\u2009", " "),
    ("\u2002", " "),
    ("\u2003", " "),
)

_TAG_RE = re.compile(r"<[^>]+>")

_WP_DATETIME = "%Y-%m-%d %H:%M:%S"


def decode_html_entities(text: str) -> str:
    """Replace the entities WordPress emits most often; others pass through."""
    for entity, char in _ENTITIES:
        text = text.replace(entity, char)
    return text.strip()


def strip_tags(html: str) -> str:
    return _TAG_RE.sub("", html).strip()


def parse_wp_datetime(value: str) -> datetime:
    """Parse ``YYYY-MM-DD HH:MM:SS`` as naive local time."""
    return datetime.strptime(value.strip(), _WP_DATETIME)


def format_display_time(dt: datetime) -> str:
    """``20:00`` -> ``"8:00 PM"``."""
    hour12 = dt.hour % 12 or 12
    period = "AM" if dt.hour < 12 else "PM"
    return f"{hour12}:{dt.minute:02d} {period}"


def _parse_utc(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        return parse_wp_datetime(value).replace(tzinfo=timezone.utc)
    except ValueError:
        return None


def _select_images(
    image: dict[str, Any] | None,
) -> tuple[str | None, int | None, int | None, ImageVariant | None, ImageVariant | None]:
    if not image:
        return None, None, None, None, None

    phone = (image.get("sizes") or {}).get(PHONE_IMAGE_SIZE)
    mobile = (
        ImageVariant(url=phone["url"], width=phone.get("width"), height=phone.get("height"))
        if phone and phone.get("url")
        else None
    )
    hd = (
        ImageVariant(url=image["url"], width=image.get("width"), height=image.get("height"))
        if image.get("url")
        else None
    )

    # Dimensions follow whichever tier supplied the URL.
    chosen = mobile or hd
    if chosen is None:
        return None, None, None, None, None
    return chosen.url, chosen.width, chosen.height, mobile, hd


def _venue_address(venue: dict[str, Any]) -> str:
    parts = [venue.get(k) for k in ("address", "city", "province", "zip")]
    return ", ".join(p for p in parts if p)


def _price(cost: str | None) -> str:
    if cost and cost != "Free":
        return f"${cost}"
    return "Free"


def map_event(item: dict[str, Any]) -> Show:
    """Build a :class:`Show` from one upstream event record.

    Raises ``KeyError``/``ValueError`` when ``id`` or ``start_date`` is missing
    or malformed.
    """
    start = parse_wp_datetime(item["start_date"])
    venue = item.get("venue") or {}
    # The API returns [] instead of {} for events without a venue.
    if not isinstance(venue, dict):
        venue = {}
    title = decode_html_entities(item.get("title") or "")
    description = item.get("description") or ""
    image_url, width, height, mobile, hd = _select_images(item.get("image") or None)
    categories = item.get("categories") or []

    return Show(
        id=str(item["id"]),
        title=title,
        artist=title,
        venue=decode_html_entities(venue.get("venue") or "TBA"),
        venue_address=_venue_address(venue),
        city=City.NELSON if venue.get("city") == "Nelson" else City.KELOWNA,
        date=start.date().isoformat(),
        time=format_display_time(start),
        start_hour=start.hour,
        all_day=bool(item.get("all_day")),
        genre=[c["name"] for c in categories if c.get("name")] or ["General"],
        description=decode_html_entities(strip_tags(description)) if description else "",
        image_url=image_url,
        image_width=width,
        image_height=height,
        mobile_image=mobile,
        hd_image=hd,
        price=_price(item.get("cost")),
        capacity=None,
        # Placeholder rating until real popularity data exists.
        popularity=4.0 + random.random(),
        is_public=item.get("status") == "publish",
        creator=str(item.get("author") or "system"),
        created_at=_parse_utc(item.get("date_utc")),
        updated_at=_parse_utc(item.get("modified_utc")),
    )


def map_events(items: list[dict[str, Any]]) -> list[Show]:
    """Map a list of raw records, skipping the ones that cannot be parsed."""
    shows: list[Show] = []
    for item in items:
        if not isinstance(item, dict):
            log.warning("Skipping non-object event record: %r", item)
            continue
        try:
            shows.append(map_event(item))
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            log.warning("Skipping event %r: %s", item.get("id"), exc)
    return shows
