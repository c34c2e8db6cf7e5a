"""Shared fixtures for vizsync tests."""

from __future__ import annotations

import threading
import time
from pathlib import Path
from typing import Any

import pytest

from vizsync.config import ApiConfig, AppConfig, RetryConfig, SyncSettings, WarmupConfig
from vizsync.filters import normalize_filter_options
from vizsync.record_types import DataResponse

_NO_JSON = object()


def make_payload(records: list[dict[str, Any]], **filters: list[str]) -> DataResponse:
    """Build a data response body as the service would return it."""
    return DataResponse(data=list(records), filters=normalize_filter_options(filters))


class FakeResponse:
    """Minimal stand-in for requests.Response."""

    def __init__(self, status_code: int = 200, body: Any = _NO_JSON) -> None:
        self.status_code = status_code
        self._body = body

    def json(self) -> Any:
        if self._body is _NO_JSON:
            raise ValueError("No JSON object could be decoded")
        return self._body


class FakeClient:
    """Scripted replacement for ApiClient.

    ``responses`` and ``probe_results`` are consumed in call order, the
    last entry repeating. Exceptions are raised, payloads returned.
    ``delays`` maps a fetch call index to seconds of blocking sleep.
    """

    def __init__(
        self,
        responses: list[Any] | None = None,
        probe_results: list[Any] | None = None,
        delays: dict[int, float] | None = None,
    ) -> None:
        self.responses = list(responses or [make_payload([])])
        self.probe_results = list(probe_results or ["ok"])
        self.delays = dict(delays or {})
        self.fetch_queries: list[str] = []
        self.probe_calls = 0
        self.inserted: list[dict[str, Any]] = []
        self.closed = False
        self._lock = threading.Lock()

    def probe(self) -> str:
        with self._lock:
            idx = self.probe_calls
            self.probe_calls += 1
        result = self.probe_results[min(idx, len(self.probe_results) - 1)]
        if isinstance(result, Exception):
            raise result
        return result

    def fetch_data(self, query: str = "") -> DataResponse:
        with self._lock:
            idx = len(self.fetch_queries)
            self.fetch_queries.append(query)
        delay = self.delays.get(idx)
        if delay:
            time.sleep(delay)
        result = self.responses[min(idx, len(self.responses) - 1)]
        if isinstance(result, Exception):
            raise result
        return result

    def insert(self, records: list[dict[str, Any]]) -> str:
        self.inserted.extend(records)
        return "Data inserted successfully"

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).resolve().parent.parent


@pytest.fixture
def config_dir(project_root: Path) -> Path:
    """Return the config directory."""
    return project_root / "config"


@pytest.fixture
def fast_config() -> AppConfig:
    """Config with millisecond timings so controller tests run quickly."""
    return AppConfig(
        env="dev",
        api=ApiConfig(base_url="http://api.test", request_timeout=2.0, warmup_timeout=0.5),
        retry=RetryConfig(max_attempts=3, backoff_seconds=0.01, backoff_factor=2.0),
        warmup=WarmupConfig(attempts=3, delay_seconds=0.01),
        sync=SyncSettings(debounce_seconds=0.05),
    )


@pytest.fixture
def sample_records() -> list[dict[str, Any]]:
    """Records shaped like the insights dataset, including messy ones."""
    return [
        {
            "topic": "Energy", "sector": "Energy", "region": "Northern America",
            "country": "USA", "pestle": "Industries", "source": "EIA",
            "end_year": "2030", "intensity": 40, "likelihood": 3, "relevance": 60,
        },
        {
            "topic": "Energy", "sector": "Energy", "region": "Northern America",
            "country": "United States of America", "pestle": "Economic",
            "source": "Reuters", "end_year": "", "intensity": 60, "likelihood": 4,
            "relevance": 150,
        },
        {
            "topic": "Oil", "sector": "Energy", "region": "Western Asia",
            "country": "Saudi Arabia", "pestle": "Economic", "source": "OPEC",
            "end_year": "2025", "intensity": 10, "likelihood": 2, "relevance": 20,
        },
        {
            "topic": "Gas", "sector": "Energy", "region": "Eastern Europe",
            "country": "Russian Federation", "pestle": "Political", "source": "TASS",
            "end_year": "2026", "intensity": "", "likelihood": "n/a", "relevance": None,
        },
        {
            "topic": "Oil", "sector": "Energy", "region": "World", "country": "",
            "pestle": "Economic", "source": "IEA", "end_year": "2027",
            "intensity": 16, "likelihood": 3, "relevance": 30,
        },
    ]
