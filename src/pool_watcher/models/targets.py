"""Tracked targets, polling strategies and the keys cursors are stored under."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Strategy(str, Enum):
    """How the "latest known block" of a network is determined.

    The value is the RPC method used, and is what gets recorded on each
    LogRecord so rows from the two strategies can be told apart.
    """

    LATEST = "eth_blockNumber"  # chain head
    FINALIZED = "eth_getBlockByNumber"  # "finalized" block tag


@dataclass(frozen=True)
class Target:
    """One factory contract to watch for one event, loaded from the CSV."""

    network: str
    contract_address: str
    exchange_label: str
    event_name: str

    def key(self, strategy: Strategy) -> TrackingKey:
        return TrackingKey(self.network, self.contract_address, strategy)


@dataclass(frozen=True)
class TrackingKey:
    """(network, contract, strategy) - one cursor per key."""

    network: str
    contract_address: str
    strategy: Strategy

    def __str__(self) -> str:
        return f"{self.network}-{self.contract_address}-{self.strategy.value}"
