"""Chart-ready aggregation of dashboard records.

Three modes over the same record list:
  - categorical sum (bar chart): group by a categorical field, sum a
    numeric field; missing or non-numeric values count as 0
  - pairwise extraction (scatter plot): project two numeric fields plus a
    weight channel; records with a non-numeric x or y are dropped
  - geo mean (choropleth): mean intensity per reconciled country, with the
    color scale domain derived from the largest mean

The zero-fill and drop policies differ on purpose: a missing value adds
nothing to a bar, but plotting it at the origin would misrepresent it.

No function here raises on a malformed record. A non-sequence input logs a
warning and yields an empty result.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from vizsync.geo.aliases import reconcile_country
from vizsync.geo.reference import REFERENCE_COUNTRY_NAMES

logger = logging.getLogger(__name__)

DEFAULT_DOMAIN_MAX = 10.0
WEIGHT_SCALE = 100.0


@dataclass(frozen=True)
class CategoryTotal:
    """One bar: a distinct group value and its summed field."""

    key: str
    value: float

    def to_dict(self) -> dict[str, Any]:
        return {"key": self.key, "value": self.value}


@dataclass(frozen=True)
class ScatterPoint:
    """One scatter point with its opacity weight in [0, 1]."""

    x: float
    y: float
    weight: float

    def to_dict(self) -> dict[str, Any]:
        return {"x": self.x, "y": self.y, "weight": self.weight}


@dataclass(frozen=True)
class CountryMean:
    """Mean intensity for one reconciled country."""

    country_key: str
    mean_intensity: float
    record_count: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "countryKey": self.country_key,
            "meanIntensity": self.mean_intensity,
            "recordCount": self.record_count,
        }


@dataclass
class GeoAggregate:
    """Per-country means plus the color scale domain for the map."""

    countries: list[CountryMean] = field(default_factory=list)
    domain: tuple[float, float] = (0.0, DEFAULT_DOMAIN_MAX)

    def get(self, country_key: str) -> float | None:
        """Mean intensity for a country, or None when it has no data."""
        for entry in self.countries:
            if entry.country_key == country_key:
                return entry.mean_intensity
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "countries": [c.to_dict() for c in self.countries],
            "domain": list(self.domain),
        }


def _is_sequence(records: Any) -> bool:
    return isinstance(records, (list, tuple))


def to_number(value: Any) -> float | None:
    """Coerce a record field to a finite float, or None if it is not numeric.

    Numbers and numeric strings qualify; booleans, blanks, NaN and
    infinities do not.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    else:
        return None
    if not math.isfinite(number):
        return None
    return number


def stringify(value: Any) -> str:
    """Render a categorical field as its group label."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and math.isfinite(value) and value.is_integer():
        return str(int(value))
    return str(value)


def sum_by_category(
    records: Any,
    group_field: str,
    value_field: str,
) -> list[CategoryTotal]:
    """Sum ``value_field`` per distinct ``group_field`` value.

    Groups appear in first-encounter order. Records without the group
    field fall into the ``""`` group, so the sum of all groups always
    equals the field total over the input.

    Args:
        records: Sequence of record dicts.
        group_field: Categorical field to group by (e.g. "topic").
        value_field: Numeric field to sum (e.g. "intensity").

    Returns:
        One CategoryTotal per distinct group value.
    """
    if not _is_sequence(records):
        logger.warning("sum_by_category expected a sequence, got %s", type(records).__name__)
        return []

    totals: dict[str, float] = {}
    for record in records:
        if not isinstance(record, dict):
            logger.debug("Skipping non-dict record: %r", record)
            continue
        key = stringify(record.get(group_field))
        amount = to_number(record.get(value_field)) or 0.0
        totals[key] = totals.get(key, 0.0) + amount

    return [CategoryTotal(key=k, value=v) for k, v in totals.items()]


def extract_pairs(
    records: Any,
    x_field: str,
    y_field: str,
    weight_field: str,
) -> list[ScatterPoint]:
    """Project each record onto a scatter point.

    The weight is ``weight_field / 100`` clamped to [0, 1]; a non-numeric
    weight becomes 0. Records whose x or y is not numeric are dropped.
    """
    if not _is_sequence(records):
        logger.warning("extract_pairs expected a sequence, got %s", type(records).__name__)
        return []

    points: list[ScatterPoint] = []
    dropped = 0
    for record in records:
        if not isinstance(record, dict):
            dropped += 1
            continue
        x = to_number(record.get(x_field))
        y = to_number(record.get(y_field))
        if x is None or y is None:
            dropped += 1
            continue
        raw_weight = to_number(record.get(weight_field))
        weight = 0.0 if raw_weight is None else min(max(raw_weight / WEIGHT_SCALE, 0.0), 1.0)
        points.append(ScatterPoint(x=x, y=y, weight=weight))

    if dropped:
        logger.debug("Dropped %d records without numeric %s/%s", dropped, x_field, y_field)
    return points


def mean_by_country(
    records: Any,
    value_field: str = "intensity",
    reconcile: Callable[[str], str] = reconcile_country,
) -> GeoAggregate:
    """Average ``value_field`` per reconciled country.

    Records with an empty country, or whose value is not numeric, are left
    out rather than bucketed as "unknown". The color domain is
    ``(0, largest mean)``, falling back to ``(0, DEFAULT_DOMAIN_MAX)`` when
    no country has data.

    Args:
        records: Sequence of record dicts.
        value_field: Numeric field to average.
        reconcile: Maps a raw country label to the geometry's name.

    Returns:
        GeoAggregate with countries in first-encounter order.
    """
    if not _is_sequence(records):
        logger.warning("mean_by_country expected a sequence, got %s", type(records).__name__)
        return GeoAggregate()

    sums: dict[str, float] = {}
    counts: dict[str, int] = {}
    for record in records:
        if not isinstance(record, dict):
            continue
        label = stringify(record.get("country")).strip()
        if not label:
            continue
        country_key = reconcile(label)
        if not country_key:
            continue
        value = to_number(record.get(value_field))
        if value is None:
            continue
        sums[country_key] = sums.get(country_key, 0.0) + value
        counts[country_key] = counts.get(country_key, 0) + 1

    countries = [
        CountryMean(country_key=key, mean_intensity=sums[key] / counts[key], record_count=counts[key])
        for key in sums
    ]
    if countries:
        domain = (0.0, max(c.mean_intensity for c in countries))
    else:
        domain = (0.0, DEFAULT_DOMAIN_MAX)
    return GeoAggregate(countries=countries, domain=domain)


def unmatched_countries(
    records: Any,
    reference: frozenset[str] = REFERENCE_COUNTRY_NAMES,
    reconcile: Callable[[str], str] = reconcile_country,
) -> list[tuple[str, int]]:
    """List reconciled country labels that match no geometry feature.

    Returns:
        (label, record count) pairs in first-encounter order.
    """
    if not _is_sequence(records):
        return []

    missing: dict[str, int] = {}
    for record in records:
        if not isinstance(record, dict):
            continue
        label = stringify(record.get("country")).strip()
        if not label:
            continue
        country_key = reconcile(label)
        if country_key not in reference:
            missing[country_key] = missing.get(country_key, 0) + 1

    if missing:
        logger.debug("Countries without a geometry match: %s", ", ".join(missing))
    return list(missing.items())
