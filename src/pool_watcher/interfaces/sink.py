"""LogSink protocol - durable storage for normalized log records."""

from __future__ import annotations

from typing import Protocol

from pool_watcher.models.records import LogRecord


class LogSink(Protocol):
    """Insert-only destination for LogRecords."""

    async def initialize(self) -> None:
        ...

    async def close(self) -> None:
        ...

    async def insert(self, record: LogRecord) -> None:
        """Write one record. Raises SinkError on failure."""
        ...
