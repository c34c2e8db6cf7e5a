"""Facet catalogue, filter selections and filter options.

A filter selection maps facet names to a single string, a collection of
strings, or a number (the intensity bounds). Selections are never mutated:
every update returns a new dict, so consumers can detect a change by
identity alone.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from vizsync.errors import UnknownFacetError
from vizsync.record_types import FilterOptions

logger = logging.getLogger(__name__)

# Order matters: the query encoder emits facets in this order.
FACETS: tuple[str, ...] = (
    "end_year",
    "topics",
    "sectors",
    "regions",
    "pestles",
    "sources",
    "countries",
    "intensity_min",
    "intensity_max",
)

RANGE_FACETS: frozenset[str] = frozenset({"intensity_min", "intensity_max"})

# Facet name -> key of the matching catalogue in FilterOptions.
OPTION_KEYS: dict[str, str] = {
    "end_year": "end_years",
    "topics": "topics",
    "sectors": "sectors",
    "regions": "regions",
    "pestles": "pestles",
    "sources": "sources",
    "countries": "countries",
}


def _check_facet(facet: str) -> None:
    if facet not in FACETS:
        raise UnknownFacetError(
            f"Unknown facet '{facet}'. Must be one of {FACETS}"
        )


def is_empty_value(value: Any) -> bool:
    """Return True when a facet value means "no constraint"."""
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    if isinstance(value, (list, tuple, set, frozenset)):
        return all(is_empty_value(v) for v in value)
    return False


def build_selection(facets: Mapping[str, Any] | None = None, **kwargs: Any) -> dict[str, Any]:
    """Build a fresh selection from a mapping and/or keyword arguments.

    Empty values are dropped so an absent key and an empty value mean the
    same thing.

    Raises:
        UnknownFacetError: If a key is not a known facet.
    """
    merged: dict[str, Any] = dict(facets or {})
    merged.update(kwargs)

    selection: dict[str, Any] = {}
    for facet, value in merged.items():
        _check_facet(facet)
        if is_empty_value(value):
            continue
        selection[facet] = _freeze(value)
    return selection


def update_selection(selection: Mapping[str, Any], facet: str, value: Any) -> dict[str, Any]:
    """Return a new selection with one facet replaced (or removed if empty)."""
    _check_facet(facet)
    updated = dict(selection)
    if is_empty_value(value):
        updated.pop(facet, None)
    else:
        updated[facet] = _freeze(value)
    return updated


def clear_facet(selection: Mapping[str, Any], facet: str) -> dict[str, Any]:
    """Return a new selection without the given facet."""
    return update_selection(selection, facet, None)


def _freeze(value: Any) -> Any:
    """Copy list values so later edits by the caller cannot leak in."""
    if isinstance(value, list):
        return tuple(value)
    if isinstance(value, set):
        return frozenset(value)
    return value


def empty_filter_options() -> FilterOptions:
    """FilterOptions with every catalogue present and empty."""
    return FilterOptions(
        end_years=[],
        topics=[],
        sectors=[],
        regions=[],
        pestles=[],
        sources=[],
        countries=[],
    )


def normalize_filter_options(raw: Any) -> FilterOptions:
    """Coerce a ``filters`` payload into a complete FilterOptions.

    Missing catalogues become empty lists, values are stringified and
    blank values dropped. Anything that is not a mapping yields empty
    options.
    """
    options = empty_filter_options()
    if not isinstance(raw, Mapping):
        if raw is not None:
            logger.debug("Ignoring non-mapping filter options: %r", type(raw))
        return options

    for key in options:
        values = raw.get(key) or []
        if not isinstance(values, (list, tuple)):
            logger.debug("Ignoring non-list filter option %s", key)
            continue
        cleaned: list[str] = []
        for v in values:
            if v is None:
                continue
            text = str(v).strip()
            if text:
                cleaned.append(text)
        options[key] = cleaned  # type: ignore[literal-required]

    return options
