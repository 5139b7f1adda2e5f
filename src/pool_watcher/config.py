"""Configuration loading: TOML file + environment variables."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Callable, TypeVar

try:
    import tomllib  # Python 3.11+
except ModuleNotFoundError:
    import tomli as tomllib  # type: ignore[no-redef]

from pool_watcher.errors import ConfigurationError
from pool_watcher.evm.events import EventCatalog
from pool_watcher.models.config import SinkBackend, WatcherConfig

T = TypeVar("T")

LOG_LEVELS = ("debug", "info", "warning", "error", "critical")


def _coerce(section: str, key: str, value: Any, kind: Callable[[Any], T]) -> T:
    try:
        return kind(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"[{section}] {key}: invalid value {value!r}") from exc


def _bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.lower() in ("1", "true", "yes", "on"):
        return True
    if isinstance(value, str) and value.lower() in ("0", "false", "no", "off", ""):
        return False
    raise ValueError(value)


def load_config(
    config_path: str | Path | None = None,
    env_prefix: str = "POOL_WATCHER_",
) -> WatcherConfig:
    """Load watcher configuration from a TOML file and env vars.

    Priority (highest wins):
        1. Environment variables (ALCHEMY_API_KEY, SUPABASE_URL, ...)
        2. TOML config file
        3. Defaults from WatcherConfig
    """
    raw: dict = {}
    if config_path is not None:
        p = Path(config_path).expanduser()
        if p.exists():
            try:
                with open(p, "rb") as f:
                    raw = tomllib.load(f)
            except tomllib.TOMLDecodeError as exc:
                raise ConfigurationError(f"{p}: {exc}") from exc

    cfg = WatcherConfig()

    # ── Watcher section ────────────────────────────────────
    watcher = raw.get("watcher", {})
    if v := watcher.get("targets_path"):
        cfg.targets_path = str(v)
    if (v := watcher.get("max_concurrent_networks")) is not None:
        cfg.max_concurrent_networks = _coerce("watcher", "max_concurrent_networks", v, int)
    if (v := watcher.get("max_block_range")) is not None:
        cfg.max_block_range = _coerce("watcher", "max_block_range", v, int) or None
    if v := watcher.get("log_level"):
        level = str(v).lower()
        if level not in LOG_LEVELS:
            raise ConfigurationError(
                f"[watcher] log_level: invalid value {v!r} (expected one of {', '.join(LOG_LEVELS)})"
            )
        cfg.log_level = level
    if "log_file" in watcher:
        cfg.log_file = str(watcher["log_file"]) or None

    schedule = cfg.schedule
    for key in ("poll_interval", "error_backoff", "max_backoff", "jitter"):
        if (v := watcher.get(key)) is not None:
            setattr(schedule, key, _coerce("watcher", key, v, float))

    # ── RPC section ────────────────────────────────────────
    rpc = raw.get("rpc", {})
    if v := rpc.get("alchemy_api_key"):
        cfg.rpc.alchemy_api_key = str(v)
    if (v := rpc.get("timeout")) is not None:
        cfg.rpc.timeout = _coerce("rpc", "timeout", v, float)
    endpoints = rpc.get("endpoints", {})
    if not isinstance(endpoints, dict):
        raise ConfigurationError("[rpc.endpoints] must be a table of network = url")
    cfg.rpc.endpoints = {str(k): str(v) for k, v in endpoints.items()}

    # ── Events section ─────────────────────────────────────
    events = raw.get("events", {})
    if not isinstance(events, dict):
        raise ConfigurationError("[events] must be a table of name = topic")
    cfg.events = {str(k): str(v) for k, v in events.items()}
    EventCatalog(cfg.events)  # raises ConfigurationError on a malformed topic

    # ── Storage section ────────────────────────────────────
    storage = raw.get("storage", {})
    if v := storage.get("backend"):
        cfg.storage.backend = _coerce("storage", "backend", v, SinkBackend)
    if v := storage.get("db_path"):
        cfg.storage.db_path = str(v)
    if (v := storage.get("persist_cursors")) is not None:
        cfg.storage.persist_cursors = _coerce("storage", "persist_cursors", v, _bool)
    if v := storage.get("supabase_url"):
        cfg.storage.supabase_url = str(v)
    if v := storage.get("supabase_key"):
        cfg.storage.supabase_key = str(v)
    if v := storage.get("supabase_table"):
        cfg.storage.supabase_table = str(v)

    # ── Environment variable overrides (highest priority) ──
    if key := os.environ.get("ALCHEMY_API_KEY"):
        cfg.rpc.alchemy_api_key = key
    if url := os.environ.get("SUPABASE_URL"):
        cfg.storage.supabase_url = url
    if key := os.environ.get("SUPABASE_KEY"):
        cfg.storage.supabase_key = key
    if path := os.environ.get(f"{env_prefix}TARGETS"):
        cfg.targets_path = path
    if path := os.environ.get(f"{env_prefix}DB_PATH"):
        cfg.storage.db_path = path
    if backend := os.environ.get(f"{env_prefix}BACKEND"):
        cfg.storage.backend = _coerce("env", f"{env_prefix}BACKEND", backend, SinkBackend)
    if interval := os.environ.get(f"{env_prefix}POLL_INTERVAL"):
        schedule.poll_interval = _coerce("env", f"{env_prefix}POLL_INTERVAL", interval, float)

    if cfg.max_concurrent_networks < 1:
        raise ConfigurationError("[watcher] max_concurrent_networks must be >= 1")
    if cfg.max_block_range is not None and cfg.max_block_range < 1:
        raise ConfigurationError("[watcher] max_block_range must be >= 1")
    for key in ("poll_interval", "error_backoff", "max_backoff", "jitter"):
        if getattr(schedule, key) < 0:
            raise ConfigurationError(f"[watcher] {key} must be >= 0")

    # Expand ~ in paths
    if cfg.storage.db_path != ":memory:":
        cfg.storage.db_path = str(Path(cfg.storage.db_path).expanduser())

    return cfg
