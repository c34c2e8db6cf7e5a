"""CLI entry point.

Provides three commands:
  - vizsync snapshot: warm up, fetch once, print the dashboard series
  - vizsync insert: post records from a JSON file
  - vizsync watch: keep the dashboard state in sync and report updates
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any

import click

from vizsync import __version__
from vizsync.client import ApiClient
from vizsync.config import AppConfig, load_config
from vizsync.errors import VizSyncError
from vizsync.sync import SyncController, SyncPhase, SyncState
from vizsync.views import assemble_views, build_snapshot, write_snapshot

logger = logging.getLogger("vizsync")

_ENV_OPTION = click.option(
    "--env", type=click.Choice(["dev", "staging", "prod"]), default=None,
    help="Environment (default: dev or VIZSYNC_ENV)",
)


def _setup_logging(level: str, fmt: str) -> None:
    """Configure logging for the client."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=fmt,
        stream=sys.stderr,
    )


def _load(env: str | None) -> AppConfig:
    try:
        config = load_config(env=env)
    except (ValueError, FileNotFoundError) as exc:
        raise click.ClickException(str(exc)) from exc
    _setup_logging(config.logging.level, config.logging.format)
    return config


def _selection_from_options(
    topics: tuple[str, ...],
    regions: tuple[str, ...],
    sectors: tuple[str, ...],
    countries: tuple[str, ...],
    pestles: tuple[str, ...],
    sources: tuple[str, ...],
    end_year: str | None,
    intensity_min: float | None,
    intensity_max: float | None,
) -> dict[str, Any]:
    return {
        "topics": list(topics),
        "regions": list(regions),
        "sectors": list(sectors),
        "countries": list(countries),
        "pestles": list(pestles),
        "sources": list(sources),
        "end_year": end_year,
        "intensity_min": intensity_min,
        "intensity_max": intensity_max,
    }


async def _run_snapshot(
    config: AppConfig, selection: dict[str, Any], warm_up: bool
) -> SyncState:
    async with SyncController(config) as controller:
        return await controller.start(selection=selection, warm_up=warm_up, background=False)


@click.group()
@click.version_option(version=__version__)
def main() -> None:
    """Insights dashboard sync client."""


@main.command()
@_ENV_OPTION
@click.option("--topic", "topics", multiple=True, help="Topic facet (repeatable)")
@click.option("--region", "regions", multiple=True, help="Region facet (repeatable)")
@click.option("--sector", "sectors", multiple=True, help="Sector facet (repeatable)")
@click.option("--country", "countries", multiple=True, help="Country facet (repeatable)")
@click.option("--pestle", "pestles", multiple=True, help="PESTLE facet (repeatable)")
@click.option("--source", "sources", multiple=True, help="Source facet (repeatable)")
@click.option("--end-year", default=None, help="End year facet")
@click.option("--intensity-min", type=float, default=None, help="Lower intensity bound")
@click.option("--intensity-max", type=float, default=None, help="Upper intensity bound")
@click.option("--output", "output_path", type=click.Path(dir_okay=False), default=None,
              help="Write the snapshot JSON here instead of stdout")
@click.option("--no-warmup", is_flag=True, default=False, help="Skip liveness probing")
def snapshot(
    env: str | None,
    topics: tuple[str, ...],
    regions: tuple[str, ...],
    sectors: tuple[str, ...],
    countries: tuple[str, ...],
    pestles: tuple[str, ...],
    sources: tuple[str, ...],
    end_year: str | None,
    intensity_min: float | None,
    intensity_max: float | None,
    output_path: str | None,
    no_warmup: bool,
) -> None:
    """Fetch once and print the bar, scatter and map series."""
    config = _load(env)
    selection = _selection_from_options(
        topics, regions, sectors, countries, pestles, sources,
        end_year, intensity_min, intensity_max,
    )

    state = asyncio.run(_run_snapshot(config, selection, warm_up=not no_warmup))
    if state.error:
        raise click.ClickException(f"Fetch failed: {state.error}")

    views = assemble_views(state.records)
    result = build_snapshot(state, views)

    if output_path:
        path = write_snapshot(result, output_path)
        click.echo(f"Snapshot written to {path}")
        click.echo(f"  Records:   {len(state.records)}")
        click.echo(f"  Topics:    {len(views.bar)}")
        click.echo(f"  Countries: {len(views.geo.countries)}")
    else:
        click.echo(json.dumps(result, ensure_ascii=False, indent=2))


@main.command()
@_ENV_OPTION
@click.argument("records_file", type=click.Path(exists=True, dir_okay=False))
def insert(env: str | None, records_file: str) -> None:
    """Post the JSON array of records in RECORDS_FILE to the service."""
    config = _load(env)

    try:
        with open(Path(records_file), encoding="utf-8") as f:
            records = json.load(f)
    except (json.JSONDecodeError, OSError) as exc:
        raise click.ClickException(f"Cannot read {records_file}: {exc}") from exc

    if not isinstance(records, list) or not all(isinstance(r, dict) for r in records):
        raise click.ClickException("Records file must contain a JSON array of objects")

    client = ApiClient(config.api)
    try:
        message = client.insert(records)
    except VizSyncError as exc:
        raise click.ClickException(f"Insert failed: {exc}") from exc
    finally:
        client.close()

    click.echo(message)


def _report(state: SyncState) -> None:
    if state.phase is SyncPhase.SUCCEEDED:
        views = assemble_views(state.records)
        click.echo(
            f"{state.last_synced_at:%H:%M:%S} synced {len(state.records)} records, "
            f"{len(views.bar)} topics, {len(views.geo.countries)} countries"
        )
    elif state.phase is SyncPhase.FAILED:
        click.echo(f"sync failed: {state.error}", err=True)


async def _run_watch(config: AppConfig, duration: float | None) -> None:
    async with SyncController(config) as controller:
        controller.subscribe(_report)
        await controller.start()
        if duration is None:
            await asyncio.Event().wait()
        else:
            await asyncio.sleep(duration)


@main.command()
@_ENV_OPTION
@click.option("--duration", type=float, default=None,
              help="Stop after this many seconds (default: run until interrupted)")
def watch(env: str | None, duration: float | None) -> None:
    """Keep syncing with the configured polling or push refresh."""
    config = _load(env)
    logger.info("Watching %s (refresh: %s)", config.api.base_url, config.sync.refresh_mode)
    try:
        asyncio.run(_run_watch(config, duration))
    except KeyboardInterrupt:
        click.echo("Stopped.")


if __name__ == "__main__":
    main()
