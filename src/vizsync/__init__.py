"""Data synchronisation and aggregation client for the insights dashboard."""

__version__ = "0.1.0"
