"""CLI entry-point: python -m listings [shows|genres|venues|filters]."""

from __future__ import annotations

import asyncio
import json
import logging

import typer

from listings.base import get_sources
from listings.dates import DATE_PRESETS, resolve_date_preset
from listings.feed import EventFeed
from listings.models import FilterParams
from listings.timefilter import TIME_FILTERS, time_filter_strings

app = typer.Typer(help="Live music show feed – Kelowna & Nelson")


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log debug output."),
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


async def _with_feed(call):
    async with EventFeed() as feed:
        return await call(feed)


@app.command()
def shows(
    city: str = typer.Argument(help="Kelowna or Nelson"),
    page: int = typer.Option(1, "--page", "-p", min=1),
    time_filter: str | None = typer.Option(
        None, "--time", "-t", help="all-day, morning, afternoon, evening or night"
    ),
    category: list[str] | None = typer.Option(None, "--category", "-c", help="Category id(s)."),
    venue: list[str] | None = typer.Option(None, "--venue", help="Venue id(s)."),
    date_from: str | None = typer.Option(None, "--from", help="YYYY-MM-DD"),
    date_to: str | None = typer.Option(None, "--to", help="YYYY-MM-DD"),
    when: str | None = typer.Option(None, "--when", help="Date preset, overrides --from/--to."),
    as_json: bool = typer.Option(False, "--json", help="Print the page as JSON."),
) -> None:
    """List one page of shows."""
    if when:
        try:
            date_from, date_to = resolve_date_preset(when)
        except ValueError as exc:
            raise typer.BadParameter(str(exc), param_hint="--when") from exc

    filters = FilterParams(
        category_ids=tuple(category or ()),
        venue_ids=tuple(venue or ()),
        time_filter=time_filter or None,
        date_from=date_from,
        date_to=date_to,
    )
    result = asyncio.run(_with_feed(lambda feed: feed.fetch_events(city, page, filters)))

    if as_json:
        typer.echo(json.dumps(result.model_dump(mode="json"), indent=2))
    else:
        for show in result.events:
            typer.echo(f"{show.date} {show.time:>8}  {show.title} @ {show.venue}")
        typer.echo(f"Page {page}/{result.total_pages} – {result.total} show(s).")
    if result.error:
        typer.echo(f"Fetch failed: {result.error}", err=True)
        raise typer.Exit(1)


@app.command()
def genres(city: str = typer.Argument(help="Kelowna or Nelson")) -> None:
    """List event categories."""
    categories = asyncio.run(_with_feed(lambda feed: feed.fetch_genres(city)))
    if not categories:
        typer.echo("No categories found.")
        raise typer.Exit(1)
    for cat in categories:
        typer.echo(f"  {cat.id:>5}  {cat.name} ({cat.count})")


@app.command()
def venues(city: str = typer.Argument(help="Kelowna or Nelson")) -> None:
    """List venues, alphabetically."""
    found = asyncio.run(_with_feed(lambda feed: feed.fetch_venues(city)))
    if not found:
        typer.echo("No venues found.")
        raise typer.Exit(1)
    for v in found:
        typer.echo(f"  {v.id:>5}  {v.venue}")


@app.command(name="filters")
def list_filters() -> None:
    """List time-of-day filters and date presets."""
    typer.echo("Time filters:")
    for tf in TIME_FILTERS:
        start_time, end_time = time_filter_strings(tf.value)
        typer.echo(f"  {tf.value:<10} {tf.label} ({start_time}-{end_time})")
    typer.echo("Date presets:")
    for value, label in DATE_PRESETS.items():
        typer.echo(f"  {value:<10} {label}")


@app.command()
def cities() -> None:
    """List registered city sources."""
    for name, source in sorted(get_sources().items()):
        typer.echo(f"  {name:<10} {source.base_url}")


if __name__ == "__main__":
    app()
