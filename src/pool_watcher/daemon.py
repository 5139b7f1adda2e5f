"""Main daemon - wires all components together and runs the poll loop."""

from __future__ import annotations

import asyncio
import logging
import signal

from pool_watcher.errors import ConfigurationError, UnknownEventError
from pool_watcher.evm.client import JsonRpcChainClient
from pool_watcher.evm.events import EventCatalog
from pool_watcher.evm.networks import NetworkRegistry
from pool_watcher.interfaces.loader import TargetLoader
from pool_watcher.interfaces.sink import LogSink
from pool_watcher.interfaces.store import CursorStore
from pool_watcher.loader import CsvTargetLoader
from pool_watcher.models.config import SinkBackend, WatcherConfig
from pool_watcher.models.targets import Target
from pool_watcher.state.cursor import InMemoryCursorStore
from pool_watcher.storage.sqlite import SQLiteStore
from pool_watcher.storage.supabase import SupabaseLogSink
from pool_watcher.sync.engine import SyncEngine
from pool_watcher.sync.scheduler import PollScheduler

log = logging.getLogger(__name__)


def build_sink(cfg: WatcherConfig) -> LogSink:
    storage = cfg.storage
    if storage.backend is SinkBackend.SUPABASE:
        if not storage.supabase_url or not storage.supabase_key:
            raise ConfigurationError(
                "Supabase backend needs SUPABASE_URL and SUPABASE_KEY"
            )
        return SupabaseLogSink(
            storage.supabase_url,
            storage.supabase_key,
            storage.supabase_table,
            timeout=cfg.rpc.timeout,
        )
    return SQLiteStore(storage.db_path)


def build_cursor_store(cfg: WatcherConfig, sink: LogSink) -> CursorStore:
    if not cfg.storage.persist_cursors:
        return InMemoryCursorStore()
    if isinstance(sink, SQLiteStore):
        return sink
    return SQLiteStore(cfg.storage.db_path)


class WatcherDaemon:
    """Pool creation watcher.

    Loads targets once, then lets the PollScheduler drive SyncEngine
    iterations until stopped. Components are plain attributes so they can
    be swapped before :meth:`start`.
    """

    def __init__(self, cfg: WatcherConfig, loader: TargetLoader | None = None) -> None:
        self._cfg = cfg

        # Core components
        self.loader: TargetLoader = loader or CsvTargetLoader(cfg.targets_path)
        self.catalog = EventCatalog(cfg.events)
        self.endpoints = NetworkRegistry(cfg.rpc.alchemy_api_key, cfg.rpc.endpoints)
        self.client = JsonRpcChainClient(timeout=cfg.rpc.timeout)
        self.sink: LogSink = build_sink(cfg)
        self.cursors: CursorStore = build_cursor_store(cfg, self.sink)
        self.scheduler = PollScheduler(
            interval=cfg.schedule.poll_interval,
            error_backoff=cfg.schedule.error_backoff,
            max_backoff=cfg.schedule.max_backoff,
            jitter=cfg.schedule.jitter,
        )
        self.engine: SyncEngine | None = None  # built in start() once targets are loaded

    def build_engine(self, targets: list[Target]) -> SyncEngine:
        return SyncEngine(
            client=self.client,
            catalog=self.catalog,
            cursors=self.cursors,
            sink=self.sink,
            endpoints=self.endpoints,
            targets=targets,
            max_concurrent_networks=self._cfg.max_concurrent_networks,
            max_block_range=self._cfg.max_block_range,
        )

    def check_targets(self, targets: list[Target]) -> None:
        """Warn up front about targets the engine will have to skip."""
        for network in sorted({t.network for t in targets}):
            try:
                self.endpoints.resolve(network)
            except ConfigurationError as exc:
                log.warning("Network %s will be skipped: %s", network, exc)
        for target in targets:
            try:
                self.catalog.topic_for(target.event_name)
            except UnknownEventError as exc:
                log.warning(
                    "Target %s/%s will be skipped: %s",
                    target.network, target.contract_address, exc,
                )
        # Cursors are keyed by (network, contract); a later row finds the
        # cursor already at the head and never fetches.
        first: dict[tuple[str, str], Target] = {}
        for target in targets:
            owner = first.setdefault((target.network, target.contract_address), target)
            if owner is not target:
                log.warning(
                    "Target %s/%s (%s, %s) shares a cursor with (%s, %s) and will be skipped",
                    target.network, target.contract_address,
                    target.exchange_label, target.event_name,
                    owner.exchange_label, owner.event_name,
                )

    async def start(self) -> None:
        """Load targets, initialize storage and run the poll loop."""
        log.info("Starting pool_watcher daemon")
        log.info("  Targets: %s", self._cfg.targets_path)
        log.info("  Sink: %s", self._cfg.storage.backend.value)
        log.info(
            "  Cursors: %s",
            "persistent" if self._cfg.storage.persist_cursors else "in-memory",
        )

        try:
            # Failure to load targets is fatal
            targets = self.loader.load()
            log.info("Loaded %d events", len(targets))
            self.check_targets(targets)

            await self.sink.initialize()
            if self.cursors is not self.sink and isinstance(self.cursors, SQLiteStore):
                await self.cursors.initialize()

            self.engine = self.build_engine(targets)
            log.info("Fetching logs. Press Ctrl+C to stop.")
            await self.scheduler.run(self.engine.run_iteration)
        finally:
            await self.close()
            log.info("Daemon shut down cleanly")

    def stop(self) -> None:
        """Signal the daemon to stop after the current iteration."""
        log.info("Stop requested")
        self.scheduler.stop()

    async def close(self) -> None:
        await self.client.close()
        await self.sink.close()
        if self.cursors is not self.sink and isinstance(self.cursors, SQLiteStore):
            await self.cursors.close()


async def run_daemon(cfg: WatcherConfig) -> None:
    """Entry point for running the daemon."""
    daemon = WatcherDaemon(cfg)

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, daemon.stop)
        except NotImplementedError:
            # Windows doesn't support add_signal_handler
            pass

    await daemon.start()
