"""Exception taxonomy for the sync pipeline.

Only transport-level problems are worth retrying; everything the service
rejects outright (4xx, unparseable bodies) is surfaced on the first attempt.
Country reconciliation misses and malformed records never raise.
"""

from __future__ import annotations


class VizSyncError(Exception):
    """Base class for all errors raised by vizsync."""


class TransientError(VizSyncError):
    """Network failure, timeout or 5xx response. Retried with backoff."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ClientError(VizSyncError):
    """4xx response or malformed body. Never retried."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class UnknownFacetError(VizSyncError, ValueError):
    """A filter selection names a facet outside the fixed catalogue."""
