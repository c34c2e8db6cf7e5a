"""Blocking HTTP transport for the insights service.

Wraps a ``requests.Session`` and maps every failure onto the error
taxonomy in ``vizsync.errors``:

  - connection errors, timeouts and 5xx responses -> TransientError
  - 4xx responses and bodies that are not the expected JSON -> ClientError

The sync controller runs these calls in a worker thread; nothing here
retries on its own.
"""

from __future__ import annotations

import json
import logging
from typing import Any

import requests

from vizsync.config import ApiConfig
from vizsync.errors import ClientError, TransientError
from vizsync.filters import normalize_filter_options
from vizsync.record_types import DataResponse

logger = logging.getLogger(__name__)

_HEADERS = {"Content-Type": "application/json", "Accept": "application/json"}


def parse_data_payload(body: Any) -> DataResponse:
    """Validate a data body (fetch response or push message).

    Raises:
        ClientError: If the body is not ``{"data": [...], "filters": {...}}``.
    """
    if not isinstance(body, dict):
        raise ClientError(f"Malformed data payload: expected object, got {type(body).__name__}")
    data = body.get("data")
    if not isinstance(data, list):
        raise ClientError("Malformed data payload: 'data' must be a list")

    records = [r for r in data if isinstance(r, dict)]
    if len(records) != len(data):
        logger.debug("Dropped %d non-object records from payload", len(data) - len(records))

    return DataResponse(data=records, filters=normalize_filter_options(body.get("filters")))


def _error_message(resp: requests.Response, fallback: str) -> str:
    """Prefer the service's own ``{"error": ...}`` message."""
    try:
        body = resp.json()
    except ValueError:
        return f"{fallback} (HTTP {resp.status_code})"
    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])
    return f"{fallback} (HTTP {resp.status_code})"


def _raise_for_status(resp: requests.Response, fallback: str) -> None:
    if resp.status_code >= 500:
        raise TransientError(_error_message(resp, fallback), status_code=resp.status_code)
    if resp.status_code >= 400:
        raise ClientError(_error_message(resp, fallback), status_code=resp.status_code)


def _json_body(resp: requests.Response) -> Any:
    try:
        return resp.json()
    except ValueError as exc:
        raise ClientError(f"Response is not valid JSON: {exc}", status_code=resp.status_code) from exc


class ApiClient:
    """Thin client over the insights service endpoints."""

    def __init__(self, api: ApiConfig, session: requests.Session | None = None) -> None:
        self.api = api
        self.session = session or requests.Session()

    def _url(self, path: str) -> str:
        return f"{self.api.base_url.rstrip('/')}/{path.lstrip('/')}"

    def _send(self, method: str, path: str, timeout: float, **kwargs: Any) -> requests.Response:
        url = self._url(path)
        try:
            return self.session.request(method, url, headers=_HEADERS, timeout=timeout, **kwargs)
        except requests.Timeout as exc:
            raise TransientError(f"{method} {url} timed out after {timeout}s") from exc
        except requests.RequestException as exc:
            raise TransientError(f"{method} {url} failed: {exc}") from exc

    def probe(self) -> str:
        """Hit the liveness endpoint with the short warm-up deadline.

        Returns:
            The ``status`` reported by the service, or "ok" when the body
            carries none.
        """
        resp = self._send("GET", self.api.health_path, timeout=self.api.warmup_timeout)
        _raise_for_status(resp, "Health check failed")
        try:
            body = resp.json()
        except ValueError:
            return "ok"
        if isinstance(body, dict) and body.get("status"):
            return str(body["status"])
        return "ok"

    def fetch_data(self, query: str = "") -> DataResponse:
        """Fetch records and filter options for an encoded selection."""
        path = self.api.data_path
        if query:
            path = f"{path}?{query}"
        resp = self._send("GET", path, timeout=self.api.request_timeout)
        _raise_for_status(resp, "Failed to fetch data")
        return parse_data_payload(_json_body(resp))

    def insert(self, records: list[dict[str, Any]]) -> str:
        """Post new records; returns the service's confirmation message."""
        resp = self._send(
            "POST",
            self.api.insert_path,
            timeout=self.api.request_timeout,
            data=json.dumps(records),
        )
        _raise_for_status(resp, "Failed to insert data")
        body = _json_body(resp)
        if isinstance(body, dict) and body.get("message"):
            return str(body["message"])
        return "Inserted"

    def close(self) -> None:
        self.session.close()
