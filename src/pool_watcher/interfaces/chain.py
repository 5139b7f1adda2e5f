"""ChainClient protocol - the JSON-RPC calls the sync engine needs."""

from __future__ import annotations

from typing import Protocol

from pool_watcher.models.records import RawLogEntry
from pool_watcher.models.targets import Strategy


class ChainClient(Protocol):
    """Reads block heights and logs from an EVM JSON-RPC endpoint."""

    async def current_block(self, endpoint: str, strategy: Strategy) -> int:
        """Latest known block number under the given strategy."""
        ...

    async def fetch_logs(
        self,
        endpoint: str,
        contract_address: str,
        topic: str,
        from_block: int,
        to_block: int,
    ) -> list[RawLogEntry]:
        """Logs for one address and one topic in [from_block, to_block]."""
        ...
