"""Data models for the pool_watcher daemon."""

from pool_watcher.models.targets import Strategy, Target, TrackingKey
from pool_watcher.models.records import (
    IterationReport,
    LogRecord,
    NetworkReport,
    RawLogEntry,
    TargetReport,
)
from pool_watcher.models.config import (
    RpcConfig,
    ScheduleConfig,
    SinkBackend,
    StorageConfig,
    WatcherConfig,
)

__all__ = [
    "Strategy", "Target", "TrackingKey",
    "IterationReport", "LogRecord", "NetworkReport", "RawLogEntry", "TargetReport",
    "RpcConfig", "ScheduleConfig", "SinkBackend", "StorageConfig", "WatcherConfig",
]
