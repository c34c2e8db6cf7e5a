"""Structured type definitions for payloads exchanged with the insights service.

TypedDict keeps records as plain dicts, exactly as they arrive from the
service's JSON body. These types document the expected shapes only; every
field is optional because the service does not guarantee any of them.
"""

from __future__ import annotations

from typing import Any, TypedDict


class Record(TypedDict, total=False):
    """One observational row as returned by ``GET /data``."""

    intensity: float | int | str | None
    likelihood: float | int | str | None
    relevance: float | int | str | None
    topic: str
    sector: str
    region: str
    pestle: str
    source: str
    country: str
    end_year: str  # 4-digit year or "" for unspecified
    start_year: str
    title: str
    insight: str
    url: str
    added: str
    published: str


class FilterOptions(TypedDict):
    """Catalogue of selectable values per facet, supplied alongside the data."""

    end_years: list[str]
    topics: list[str]
    sectors: list[str]
    regions: list[str]
    pestles: list[str]
    sources: list[str]
    countries: list[str]


class DataResponse(TypedDict):
    """Body of a successful data fetch, and of every push message."""

    data: list[dict[str, Any]]
    filters: FilterOptions


class HealthResponse(TypedDict, total=False):
    """Body of the liveness probe."""

    status: str
