"""Normalized log records and per-iteration reports."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Mapping

from pool_watcher.models.targets import Strategy, TrackingKey

# A log object exactly as returned by eth_getLogs (hex-encoded fields).
RawLogEntry = Mapping[str, Any]


@dataclass(frozen=True)
class LogRecord:
    """A pool/pair creation log ready for the sink."""

    transaction_index: int
    transaction_hash: str
    log_index: int
    removed: bool
    block_number: int
    block_hash: str
    exchange: str
    network: str
    strategy: str

    def to_row(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class TargetReport:
    """Outcome of one poll of one tracking key."""

    key: TrackingKey
    from_block: int | None = None
    to_block: int | None = None
    skipped: bool = False
    logs_found: int = 0
    inserted: int = 0
    failed: int = 0
    error: str | None = None


@dataclass
class NetworkReport:
    """Outcome of one iteration over a single network."""

    network: str
    latest_blocks: dict[Strategy, int] = field(default_factory=dict)
    targets: list[TargetReport] = field(default_factory=list)
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class IterationReport:
    """Outcome of one pass over every network."""

    networks: list[NetworkReport] = field(default_factory=list)
    duration_ms: int = 0

    @property
    def inserted(self) -> int:
        return sum(t.inserted for n in self.networks for t in n.targets)

    @property
    def failed_inserts(self) -> int:
        return sum(t.failed for n in self.networks for t in n.targets)

    @property
    def logs_found(self) -> int:
        return sum(t.logs_found for n in self.networks for t in n.targets)

    @property
    def all_failed(self) -> bool:
        """True when there was work to do and every network errored."""
        return bool(self.networks) and all(not n.ok for n in self.networks)
