"""Incremental log synchronization - the per-key poll/fetch/advance cycle."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Iterator, Sequence

from pool_watcher.errors import (
    ChainError,
    ConfigurationError,
    ProtocolError,
    SinkError,
    UnknownEventError,
)
from pool_watcher.evm.events import EventCatalog
from pool_watcher.evm.logs import normalize_log
from pool_watcher.evm.networks import NetworkRegistry
from pool_watcher.interfaces.chain import ChainClient
from pool_watcher.interfaces.sink import LogSink
from pool_watcher.interfaces.store import CursorStore
from pool_watcher.models.records import (
    IterationReport,
    NetworkReport,
    RawLogEntry,
    TargetReport,
)
from pool_watcher.models.targets import Strategy, Target, TrackingKey

log = logging.getLogger(__name__)

STRATEGIES = (Strategy.LATEST, Strategy.FINALIZED)


class SyncEngine:
    """Brings every (network, contract, strategy) cursor up to the latest block.

    One call to :meth:`run_iteration` is one pass over all targets:

    1. Targets are grouped by network.
    2. Per network, the endpoint is resolved and the latest block is read
       once per strategy.
    3. Per strategy and target, logs in ``[cursor + 1, latest]`` are fetched
       (``[latest, latest]`` for a key without a cursor), normalized and
       inserted one by one, and the cursor moves to ``latest``.

    Each tracking key belongs to exactly one network, and a network is
    handled by a single task per iteration, so cursor updates for a key are
    never interleaved even when networks run concurrently.
    """

    def __init__(
        self,
        client: ChainClient,
        catalog: EventCatalog,
        cursors: CursorStore,
        sink: LogSink,
        endpoints: NetworkRegistry,
        targets: Sequence[Target] = (),
        max_concurrent_networks: int = 1,
        max_block_range: int | None = None,
        strategies: Sequence[Strategy] = STRATEGIES,
    ) -> None:
        if max_concurrent_networks < 1:
            raise ValueError("max_concurrent_networks must be >= 1")
        if max_block_range is not None and max_block_range < 1:
            raise ValueError("max_block_range must be >= 1")
        self._client = client
        self._catalog = catalog
        self._cursors = cursors
        self._sink = sink
        self._endpoints = endpoints
        self._targets: tuple[Target, ...] = tuple(targets)
        self._max_concurrent = max_concurrent_networks
        self._max_block_range = max_block_range
        self._strategies = tuple(strategies)

    @property
    def targets(self) -> tuple[Target, ...]:
        return self._targets

    @targets.setter
    def targets(self, targets: Sequence[Target]) -> None:
        self._targets = tuple(targets)

    def targets_by_network(self) -> dict[str, list[Target]]:
        groups: dict[str, list[Target]] = {}
        for target in self._targets:
            groups.setdefault(target.network, []).append(target)
        return groups

    # ── Driver ─────────────────────────────────────────────

    async def run_iteration(self) -> IterationReport:
        """Synchronize every network once."""
        start_time = time.monotonic()
        groups = self.targets_by_network()
        semaphore = asyncio.Semaphore(self._max_concurrent)

        async def _run(network: str, targets: list[Target]) -> NetworkReport:
            async with semaphore:
                return await self.sync_network(network, targets)

        results = await asyncio.gather(
            *(_run(network, targets) for network, targets in groups.items()),
            return_exceptions=True,
        )

        report = IterationReport()
        for network, result in zip(groups, results):
            if isinstance(result, NetworkReport):
                report.networks.append(result)
            elif isinstance(result, Exception):
                log.error("Error processing logs for %s: %s", network, result, exc_info=result)
                report.networks.append(NetworkReport(network, error=str(result)))
            else:
                raise result

        report.duration_ms = int((time.monotonic() - start_time) * 1000)
        log.debug(
            "Iteration complete: %d networks, %d logs found, %d inserted, %d failed in %dms",
            len(report.networks), report.logs_found, report.inserted,
            report.failed_inserts, report.duration_ms,
        )
        return report

    async def sync_network(self, network: str, targets: Sequence[Target]) -> NetworkReport:
        """Run every target of one network under every strategy.

        A transport or protocol failure abandons the rest of this network's
        pass; cursors already advanced stay advanced.
        """
        report = NetworkReport(network)
        try:
            endpoint = self._endpoints.resolve(network)
        except ConfigurationError as exc:
            log.error("Skipping network %s: %s", network, exc)
            report.error = str(exc)
            return report

        strategy: Strategy | None = None
        try:
            for strategy in self._strategies:
                report.latest_blocks[strategy] = await self._client.current_block(
                    endpoint, strategy,
                )
            for strategy in self._strategies:
                latest_block = report.latest_blocks[strategy]
                for target in targets:
                    report.targets.append(
                        await self.sync_target(endpoint, target, strategy, latest_block)
                    )
        except ChainError as exc:
            log.error(
                "Error processing logs for %s (strategy %s): %s",
                network, strategy.value if strategy else "-", exc,
            )
            report.error = f"{type(exc).__name__}: {exc}"
        return report

    # ── Per tracking key ───────────────────────────────────

    async def sync_target(
        self,
        endpoint: str,
        target: Target,
        strategy: Strategy,
        latest_block: int,
    ) -> TargetReport:
        """Fetch, store and advance one tracking key up to ``latest_block``."""
        key = target.key(strategy)
        report = TargetReport(key)

        try:
            topic = self._catalog.topic_for(target.event_name)
        except UnknownEventError as exc:
            log.error("Skipping %s (%s): %s", key, target.exchange_label, exc)
            report.skipped = True
            report.error = str(exc)
            return report

        cursor = await self._cursors.get(key)
        from_block = latest_block if cursor is None else cursor + 1
        report.from_block = from_block
        report.to_block = latest_block

        if from_block > latest_block:
            report.skipped = True
            return report

        log.info(
            "Processing %s - %s | Strategy: %s | Blocks: %d to %d",
            target.network, target.exchange_label, strategy.value,
            from_block, latest_block,
        )

        for start, end in self._block_ranges(from_block, latest_block):
            try:
                raw_logs = await self._client.fetch_logs(
                    endpoint, target.contract_address, topic, start, end,
                )
            except ChainError as exc:
                log.error("eth_getLogs failed for %s blocks %d-%d: %s", key, start, end, exc)
                raise

            if raw_logs:
                log.info(
                    "Found %d logs for %s on %s using %s",
                    len(raw_logs), target.contract_address, target.network, strategy.value,
                )
            report.logs_found += len(raw_logs)
            for raw in raw_logs:
                if await self._store_log(raw, target, strategy, key):
                    report.inserted += 1
                else:
                    report.failed += 1

            # Cursor moves past the chunk even when some inserts failed.
            await self._cursors.set(key, end)

        return report

    async def _store_log(
        self,
        raw: RawLogEntry,
        target: Target,
        strategy: Strategy,
        key: TrackingKey,
    ) -> bool:
        try:
            record = normalize_log(raw, target, strategy)
        except ProtocolError as exc:
            log.error("Dropping malformed log entry for %s: %s", key, exc)
            return False

        try:
            await self._sink.insert(record)
        except SinkError as exc:
            log.error(
                "Error inserting log %s#%d for %s: %s",
                record.transaction_hash, record.log_index, key, exc,
            )
            return False

        log.info(
            "Inserted log: %s block=%d tx=%s index=%d",
            key, record.block_number, record.transaction_hash, record.log_index,
        )
        return True

    def _block_ranges(self, from_block: int, to_block: int) -> Iterator[tuple[int, int]]:
        """Split [from_block, to_block] into inclusive chunks of max_block_range."""
        if self._max_block_range is None:
            yield from_block, to_block
            return
        start = from_block
        while start <= to_block:
            end = min(start + self._max_block_range - 1, to_block)
            yield start, end
            start = end + 1
