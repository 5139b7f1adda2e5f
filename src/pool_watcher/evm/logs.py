"""Normalization of raw eth_getLogs entries into LogRecords."""

from __future__ import annotations

from pool_watcher.errors import ProtocolError
from pool_watcher.evm.hexutil import hex_to_int
from pool_watcher.models.records import LogRecord, RawLogEntry
from pool_watcher.models.targets import Strategy, Target


def _require(raw: RawLogEntry, field: str) -> object:
    if field not in raw or raw[field] is None:
        raise ProtocolError(f"log entry is missing {field}")
    return raw[field]


def _require_bool(raw: RawLogEntry, field: str) -> bool:
    value = _require(raw, field)
    if not isinstance(value, bool):
        raise ProtocolError(f"log entry {field} is not a boolean: {value!r}")
    return value


def normalize_log(raw: RawLogEntry, target: Target, strategy: Strategy) -> LogRecord:
    """Build a LogRecord from one raw log plus the target that produced it.

    Hex quantities are decoded to ints; hashes and ``removed`` are passed
    through unchanged. Raises ProtocolError for a malformed entry.
    """
    return LogRecord(
        transaction_index=hex_to_int(_require(raw, "transactionIndex"), "transactionIndex"),
        transaction_hash=str(_require(raw, "transactionHash")),
        log_index=hex_to_int(_require(raw, "logIndex"), "logIndex"),
        removed=_require_bool(raw, "removed"),
        block_number=hex_to_int(_require(raw, "blockNumber"), "blockNumber"),
        block_hash=str(_require(raw, "blockHash")),
        exchange=target.exchange_label,
        network=target.network,
        strategy=strategy.value,
    )
