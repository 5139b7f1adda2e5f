"""CLI entry point for the pool_watcher daemon."""

from __future__ import annotations

import asyncio
import logging
import sys

import click

from pool_watcher.config import load_config
from pool_watcher.daemon import run_daemon
from pool_watcher.errors import ChainError, ConfigurationError, PoolWatcherError
from pool_watcher.evm.client import JsonRpcChainClient
from pool_watcher.evm.events import EventCatalog
from pool_watcher.evm.networks import NetworkRegistry
from pool_watcher.loader import CsvTargetLoader
from pool_watcher.models.config import SinkBackend, WatcherConfig
from pool_watcher.models.targets import Strategy
from pool_watcher.storage.sqlite import SQLiteStore

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"


def _load(ctx: click.Context) -> WatcherConfig:
    """Load config or exit with the error."""
    try:
        return load_config(ctx.obj["config_path"])
    except ConfigurationError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)


def _add_log_file(path: str) -> None:
    """Mirror the process log to a file, truncating it first."""
    handler = logging.FileHandler(path, mode="w", encoding="utf-8")
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATEFMT))
    logging.getLogger().addHandler(handler)


@click.group()
@click.option("-c", "--config", "config_path", default=None, help="Path to config TOML file")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, config_path: str | None, verbose: bool) -> None:
    """pool_watcher - records pool/pair creation logs from EVM networks."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["verbose"] = verbose

    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format=LOG_FORMAT, datefmt=LOG_DATEFMT)


# ── Daemon ─────────────────────────────────────────────


@cli.command()
@click.option("--log-file", default=None, help="Process log file (default from config)")
@click.option("--no-log-file", is_flag=True, help="Only log to stderr")
@click.pass_context
def run(ctx: click.Context, log_file: str | None, no_log_file: bool) -> None:
    """Start polling for pool creation logs."""
    cfg = _load(ctx)
    if not ctx.obj["verbose"]:
        logging.getLogger().setLevel(cfg.log_level.upper())
    path = log_file or cfg.log_file
    if path and not no_log_file:
        _add_log_file(path)

    click.echo(f"Starting pool_watcher (targets: {cfg.targets_path})")
    try:
        asyncio.run(run_daemon(cfg))
    except PoolWatcherError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)


# ── Info ───────────────────────────────────────────────


@cli.command()
@click.pass_context
def status(ctx: click.Context) -> None:
    """Show watcher configuration."""
    cfg = _load(ctx)
    storage = cfg.storage
    click.echo(f"Targets:      {cfg.targets_path}")
    click.echo(f"Interval:     {cfg.schedule.poll_interval}s "
               f"(backoff {cfg.schedule.error_backoff}s..{cfg.schedule.max_backoff}s, "
               f"jitter {cfg.schedule.jitter:.0%})")
    click.echo(f"Concurrency:  {cfg.max_concurrent_networks} network(s)")
    click.echo(f"Block range:  {cfg.max_block_range or 'unbounded'}")
    click.echo(f"RPC timeout:  {cfg.rpc.timeout}s")
    click.echo(f"Alchemy key:  {'***configured***' if cfg.rpc.alchemy_api_key else '(not set)'}")
    for network, url in sorted(cfg.rpc.endpoints.items()):
        click.echo(f"Endpoint:     {network} -> {url}")
    click.echo(f"Sink:         {storage.backend.value}")
    if storage.backend is SinkBackend.SUPABASE:
        click.echo(f"Supabase:     {storage.supabase_url or '(not set)'} "
                   f"table={storage.supabase_table} "
                   f"key={'***configured***' if storage.supabase_key else '(not set)'}")
    click.echo(f"DB path:      {storage.db_path}")
    click.echo(f"Cursors:      {'persistent' if storage.persist_cursors else 'in-memory'}")
    click.echo(f"Log file:     {cfg.log_file or '(none)'}")


@cli.command()
@click.pass_context
def targets(ctx: click.Context) -> None:
    """List tracked targets with their topic and endpoint status."""
    cfg = _load(ctx)
    try:
        catalog = EventCatalog(cfg.events)
        loaded = CsvTargetLoader(cfg.targets_path).load()
    except PoolWatcherError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)
    registry = NetworkRegistry(cfg.rpc.alchemy_api_key, cfg.rpc.endpoints)

    for t in loaded:
        topic = catalog.topic_for(t.event_name) if t.event_name in catalog else "UNKNOWN EVENT"
        try:
            endpoint = registry.describe(t.network)
        except ConfigurationError as exc:
            endpoint = f"ERROR: {exc}"
        click.echo(f"{t.network:<14} {t.exchange_label:<20} {t.contract_address}")
        click.echo(f"    event:    {t.event_name} {topic}")
        click.echo(f"    endpoint: {endpoint}")
    click.echo(f"{len(loaded)} target(s)")


@cli.command()
@click.argument("network")
@click.pass_context
def head(ctx: click.Context, network: str) -> None:
    """Show the latest block of NETWORK under both strategies."""
    cfg = _load(ctx)
    registry = NetworkRegistry(cfg.rpc.alchemy_api_key, cfg.rpc.endpoints)
    try:
        endpoint = registry.resolve(network)
    except ConfigurationError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)

    async def _head() -> None:
        async with JsonRpcChainClient(timeout=cfg.rpc.timeout) as client:
            for strategy in Strategy:
                try:
                    block = await client.current_block(endpoint, strategy)
                    click.echo(f"{strategy.value:<22} {block}")
                except ChainError as exc:
                    click.echo(f"{strategy.value:<22} ERROR: {exc}")

    asyncio.run(_head())


@cli.command()
@click.pass_context
def cursors(ctx: click.Context) -> None:
    """Show persisted cursors (requires storage.persist_cursors)."""
    cfg = _load(ctx)
    if not cfg.storage.persist_cursors:
        click.echo("Cursors are in-memory; set storage.persist_cursors = true to keep them.")
        return

    async def _cursors() -> None:
        store = SQLiteStore(cfg.storage.db_path)
        await store.initialize()
        try:
            rows = await store.all_cursors()
        finally:
            await store.close()
        for key, block in rows:
            click.echo(f"{key.network:<14} {key.contract_address:<44} {key.strategy.value:<22} {block}")
        click.echo(f"{len(rows)} cursor(s)")

    asyncio.run(_cursors())


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
