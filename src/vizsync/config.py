"""Environment-aware configuration loader.

Loads YAML config from config/vizsync.{env}.yaml, then applies the
environment variables that make up the deployment surface:

  VIZSYNC_API_URL  base URL of the insights service
  VIZSYNC_POLLING_ENABLED  "true"/"false", periodic refresh on/off
  VIZSYNC_POLL_INTERVAL  seconds between periodic refreshes
  VIZSYNC_PUSH_URL  websocket URL of the push channel
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

import yaml

VALID_ENVS = ("dev", "staging", "prod")
PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent

_TRUE_VALUES = ("1", "true", "yes", "on")
_FALSE_VALUES = ("0", "false", "no", "off", "")


@dataclass(frozen=True)
class ApiConfig:
    """Insights service endpoints and request deadlines."""

    base_url: str = "http://localhost:5000"
    data_path: str = "/api/data"
    health_path: str = "/health"
    insert_path: str = "/api/insert"
    request_timeout: float = 15.0
    warmup_timeout: float = 3.0


@dataclass(frozen=True)
class RetryConfig:
    """Backoff policy for transient fetch failures."""

    max_attempts: int = 3
    backoff_seconds: float = 0.5
    backoff_factor: float = 2.0


@dataclass(frozen=True)
class WarmupConfig:
    """Liveness probing of a possibly cold backend."""

    attempts: int = 3
    delay_seconds: float = 2.0


@dataclass(frozen=True)
class SyncSettings:
    """Debounce window and background refresh mode."""

    debounce_seconds: float = 0.3
    polling_enabled: bool = False
    poll_interval: float = 60.0
    push_url: str | None = None
    push_reconnect_seconds: float = 5.0

    @property
    def refresh_mode(self) -> str:
        """One of "push", "poll" or "none"."""
        if self.push_url:
            return "push"
        if self.polling_enabled:
            return "poll"
        return "none"


@dataclass(frozen=True)
class LoggingConfig:
    """Logging settings."""

    level: str = "INFO"
    format: str = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


@dataclass(frozen=True)
class AppConfig:
    """Top-level application configuration."""

    env: str = "dev"
    api: ApiConfig = field(default_factory=ApiConfig)
    retry: RetryConfig = field(default_factory=RetryConfig)
    warmup: WarmupConfig = field(default_factory=WarmupConfig)
    sync: SyncSettings = field(default_factory=SyncSettings)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def detect_env(cli_env: str | None = None) -> str:
    """Detect the runtime environment.

    Priority:
      1. Explicit CLI flag
      2. VIZSYNC_ENV environment variable
      3. Default to 'dev'
    """
    env = cli_env or os.environ.get("VIZSYNC_ENV", "dev")
    if env not in VALID_ENVS:
        raise ValueError(f"Invalid environment '{env}'. Must be one of {VALID_ENVS}")
    return env


def _load_yaml(path: Path) -> dict[str, Any]:
    """Load a YAML file and return its contents as a dict."""
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")
    with open(path, encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def _parse_bool(name: str, raw: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ValueError(f"Invalid boolean for {name}: '{raw}'")


def _parse_float(name: str, raw: str) -> float:
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"Invalid number for {name}: '{raw}'") from None


def _yaml_bool(name: str, value: Any) -> bool:
    """YAML booleans pass through; quoted strings go through _parse_bool."""
    if isinstance(value, str):
        return _parse_bool(name, value)
    return bool(value)


def apply_env_overrides(config: AppConfig, environ: dict[str, str] | None = None) -> AppConfig:
    """Return a copy of ``config`` with VIZSYNC_* environment overrides applied."""
    env = os.environ if environ is None else environ

    api = config.api
    if env.get("VIZSYNC_API_URL"):
        api = replace(api, base_url=env["VIZSYNC_API_URL"].rstrip("/"))

    sync = config.sync
    if "VIZSYNC_POLLING_ENABLED" in env:
        sync = replace(
            sync,
            polling_enabled=_parse_bool("VIZSYNC_POLLING_ENABLED", env["VIZSYNC_POLLING_ENABLED"]),
        )
    if env.get("VIZSYNC_POLL_INTERVAL"):
        sync = replace(
            sync,
            poll_interval=_parse_float("VIZSYNC_POLL_INTERVAL", env["VIZSYNC_POLL_INTERVAL"]),
        )
    if "VIZSYNC_PUSH_URL" in env:
        sync = replace(sync, push_url=env["VIZSYNC_PUSH_URL"] or None)

    return replace(config, api=api, sync=sync)


def validate_config(config: AppConfig) -> None:
    """Reject settings the sync controller cannot run with."""
    if config.sync.polling_enabled and config.sync.push_url:
        raise ValueError("Polling and push updates are mutually exclusive; enable only one")
    if config.sync.polling_enabled and config.sync.poll_interval <= 0:
        raise ValueError("poll_interval must be positive when polling is enabled")
    if config.retry.max_attempts < 1:
        raise ValueError("retry.max_attempts must be at least 1")
    if config.warmup.attempts < 0:
        raise ValueError("warmup.attempts must not be negative")
    if config.sync.debounce_seconds < 0:
        raise ValueError("debounce_seconds must not be negative")


def load_config(
    env: str | None = None,
    config_dir: Path | None = None,
    environ: dict[str, str] | None = None,
) -> AppConfig:
    """Load and parse the YAML config for the given environment.

    Args:
        env: The environment name (dev/staging/prod). Auto-detected if None.
        config_dir: Override the config directory path.
        environ: Environment mapping used for overrides (default: os.environ).

    Returns:
        Fully resolved AppConfig instance.
    """
    resolved_env = detect_env(env)
    resolved_config_dir = config_dir or PROJECT_ROOT / "config"
    config_path = resolved_config_dir / f"vizsync.{resolved_env}.yaml"

    raw = _load_yaml(config_path)

    api_raw = raw.get("api", {})
    api = ApiConfig(
        base_url=str(api_raw.get("base_url", ApiConfig.base_url)).rstrip("/"),
        data_path=api_raw.get("data_path", ApiConfig.data_path),
        health_path=api_raw.get("health_path", ApiConfig.health_path),
        insert_path=api_raw.get("insert_path", ApiConfig.insert_path),
        request_timeout=float(api_raw.get("request_timeout", ApiConfig.request_timeout)),
        warmup_timeout=float(api_raw.get("warmup_timeout", ApiConfig.warmup_timeout)),
    )

    retry_raw = raw.get("retry", {})
    retry = RetryConfig(
        max_attempts=int(retry_raw.get("max_attempts", RetryConfig.max_attempts)),
        backoff_seconds=float(retry_raw.get("backoff_seconds", RetryConfig.backoff_seconds)),
        backoff_factor=float(retry_raw.get("backoff_factor", RetryConfig.backoff_factor)),
    )

    warmup_raw = raw.get("warmup", {})
    warmup = WarmupConfig(
        attempts=int(warmup_raw.get("attempts", WarmupConfig.attempts)),
        delay_seconds=float(warmup_raw.get("delay_seconds", WarmupConfig.delay_seconds)),
    )

    sync_raw = raw.get("sync", {})
    sync = SyncSettings(
        debounce_seconds=float(sync_raw.get("debounce_seconds", SyncSettings.debounce_seconds)),
        polling_enabled=_yaml_bool(
            "sync.polling_enabled", sync_raw.get("polling_enabled", SyncSettings.polling_enabled)
        ),
        poll_interval=float(sync_raw.get("poll_interval", SyncSettings.poll_interval)),
        push_url=sync_raw.get("push_url") or None,
        push_reconnect_seconds=float(
            sync_raw.get("push_reconnect_seconds", SyncSettings.push_reconnect_seconds)
        ),
    )

    logging_raw = raw.get("logging", {})
    logging_cfg = LoggingConfig(
        level=logging_raw.get("level", "INFO"),
        format=logging_raw.get("format", "%(asctime)s [%(levelname)s] %(name)s: %(message)s"),
    )

    config = AppConfig(
        env=resolved_env,
        api=api,
        retry=retry,
        warmup=warmup,
        sync=sync,
        logging=logging_cfg,
    )
    config = apply_env_overrides(config, environ)
    validate_config(config)
    return config
