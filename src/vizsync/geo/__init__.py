"""Country name reconciliation against the reference world geometry."""

from vizsync.geo.aliases import COUNTRY_ALIASES, reconcile_country
from vizsync.geo.reference import REFERENCE_COUNTRY_NAMES, is_known_country

__all__ = [
    "COUNTRY_ALIASES",
    "REFERENCE_COUNTRY_NAMES",
    "is_known_country",
    "reconcile_country",
]
