"""Configuration models for the watcher daemon."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class SinkBackend(str, Enum):
    """Where normalized log records are written."""

    SQLITE = "sqlite"
    SUPABASE = "supabase"


@dataclass
class ScheduleConfig:
    """Poll loop pacing."""

    poll_interval: float = 5.0  # seconds between healthy iterations
    error_backoff: float = 5.0  # first delay after a failed iteration
    max_backoff: float = 300.0  # cap for the exponential backoff
    jitter: float = 0.1  # fraction of the delay added at random


@dataclass
class RpcConfig:
    """JSON-RPC endpoint settings."""

    alchemy_api_key: str = ""  # loaded from env var ALCHEMY_API_KEY
    timeout: float = 30.0  # seconds per request
    endpoints: dict[str, str] = field(default_factory=dict)  # network -> URL override


@dataclass
class StorageConfig:
    """Sink and cursor persistence settings."""

    backend: SinkBackend = SinkBackend.SQLITE
    db_path: str = "~/.pool_watcher/logs.db"
    persist_cursors: bool = False
    supabase_url: str = ""  # loaded from env var SUPABASE_URL
    supabase_key: str = ""  # loaded from env var SUPABASE_KEY
    supabase_table: str = "logs"


@dataclass
class WatcherConfig:
    """Complete watcher configuration."""

    # Watcher
    targets_path: str = "events.csv"
    max_concurrent_networks: int = 1
    max_block_range: int | None = None  # None: fetch [from, latest] in one call
    log_level: str = "info"
    log_file: str | None = "process.log"

    schedule: ScheduleConfig = field(default_factory=ScheduleConfig)
    rpc: RpcConfig = field(default_factory=RpcConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)

    # Extra event name -> topic hash entries
    events: dict[str, str] = field(default_factory=dict)
