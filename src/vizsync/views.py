"""Dashboard view assembly and snapshot output.

Builds the three chart series the dashboard renders from one record
snapshot, and serialises a sync state plus its views as JSON for the CLI.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from vizsync.aggregator import (
    CategoryTotal,
    GeoAggregate,
    ScatterPoint,
    extract_pairs,
    mean_by_country,
    sum_by_category,
    unmatched_countries,
)
from vizsync.sync import SyncState

logger = logging.getLogger(__name__)


@dataclass
class DashboardViews:
    """Chart-ready series for the bar chart, scatter plot and world map."""

    bar: list[CategoryTotal] = field(default_factory=list)
    scatter: list[ScatterPoint] = field(default_factory=list)
    geo: GeoAggregate = field(default_factory=GeoAggregate)
    unmatched_countries: list[tuple[str, int]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "bar": [b.to_dict() for b in self.bar],
            "scatter": [p.to_dict() for p in self.scatter],
            "geo": self.geo.to_dict(),
            "unmatched_countries": [
                {"label": label, "records": count} for label, count in self.unmatched_countries
            ],
        }


def assemble_views(
    records: Any,
    bar_group: str = "topic",
    bar_value: str = "intensity",
    scatter_x: str = "intensity",
    scatter_y: str = "likelihood",
    scatter_weight: str = "relevance",
    geo_value: str = "intensity",
) -> DashboardViews:
    """Aggregate one record snapshot into every dashboard series.

    Defaults match the dashboard layout: intensity by topic, intensity vs
    likelihood weighted by relevance, and mean intensity by country.
    """
    return DashboardViews(
        bar=sum_by_category(records, bar_group, bar_value),
        scatter=extract_pairs(records, scatter_x, scatter_y, scatter_weight),
        geo=mean_by_country(records, geo_value),
        unmatched_countries=unmatched_countries(records),
    )


def build_snapshot(state: SyncState, views: DashboardViews) -> dict[str, Any]:
    """Combine a sync state and its views into one JSON-ready dict."""
    selection: dict[str, Any] = {}
    for facet, value in state.selection.items():
        if isinstance(value, (tuple, list)):
            selection[facet] = list(value)
        elif isinstance(value, (set, frozenset)):
            selection[facet] = sorted(value)
        else:
            selection[facet] = value

    return {
        "phase": state.phase.value,
        "error": state.error,
        "warning": state.warning,
        "backend_status": state.backend_status,
        "last_synced_at": state.last_synced_at.isoformat() if state.last_synced_at else None,
        "selection": selection,
        "record_count": len(state.records),
        "filter_options": dict(state.filter_options),
        "views": views.to_dict(),
    }


def write_snapshot(snapshot: dict[str, Any], path: str | Path) -> Path:
    """Write a snapshot as pretty-printed JSON, creating parent directories."""
    file_path = Path(path)
    file_path.parent.mkdir(parents=True, exist_ok=True)
    with open(file_path, "w", encoding="utf-8") as f:
        json.dump(snapshot, f, ensure_ascii=False, indent=2)
    logger.info("Wrote snapshot to %s", file_path)
    return file_path
