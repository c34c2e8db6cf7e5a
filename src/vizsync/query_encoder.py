"""Canonical query-string encoding of filter selections.

The encoded string doubles as the dedup key for requests, so the same
selection must always produce the same string:

  - facets are emitted in the fixed ``FACETS`` order, unknown keys after
    them in sorted order
  - lists and tuples keep their element order, one parameter per element
  - sets have no stable iteration order, so their elements are sorted
  - empty strings, empty collections and None are omitted entirely
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from typing import Any
from urllib.parse import parse_qsl, urlencode

from vizsync.filters import FACETS, is_empty_value


def _format_scalar(value: Any) -> str:
    """Render one parameter value as text."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and math.isfinite(value) and value.is_integer():
        return str(int(value))
    return str(value)


def _ordered_keys(selection: Mapping[str, Any]) -> list[str]:
    known = [k for k in FACETS if k in selection]
    extra = sorted(k for k in selection if k not in FACETS)
    return known + extra


def encode_params(selection: Mapping[str, Any] | None) -> list[tuple[str, str]]:
    """Flatten a selection into ordered (facet, value) pairs.

    Args:
        selection: Facet name -> str, number, or collection of those.

    Returns:
        One pair per emitted query parameter occurrence.
    """
    if not selection:
        return []

    params: list[tuple[str, str]] = []
    for key in _ordered_keys(selection):
        value = selection[key]
        if is_empty_value(value):
            continue
        if isinstance(value, (set, frozenset)):
            items = sorted((_format_scalar(v) for v in value if not is_empty_value(v)))
            params.extend((key, item) for item in items)
        elif isinstance(value, (list, tuple)):
            params.extend(
                (key, _format_scalar(v)) for v in value if not is_empty_value(v)
            )
        else:
            params.append((key, _format_scalar(value)))
    return params


def encode_query(selection: Mapping[str, Any] | None) -> str:
    """Encode a selection as a URL query string (without the leading '?').

    An empty selection encodes to ``""``.
    """
    return urlencode(encode_params(selection))


def decode_query(query: str) -> dict[str, list[str]]:
    """Inverse of :func:`encode_query`.

    Returns a dict of facet -> values, keeping first-seen facet order and
    the order of repeated parameters.
    """
    decoded: dict[str, list[str]] = {}
    for key, value in parse_qsl(query.lstrip("?"), keep_blank_values=False):
        decoded.setdefault(key, []).append(value)
    return decoded
