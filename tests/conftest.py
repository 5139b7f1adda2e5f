"""Shared fixtures for pool_watcher tests."""

from __future__ import annotations

import pytest
from pytest_metadata.plugin import metadata_key

from pool_watcher.evm.events import EventCatalog
from pool_watcher.evm.networks import NetworkRegistry
from pool_watcher.models.config import (
    RpcConfig,
    ScheduleConfig,
    StorageConfig,
    WatcherConfig,
)
from pool_watcher.state.cursor import InMemoryCursorStore
from pool_watcher.storage.sqlite import SQLiteStore
from pool_watcher.sync.engine import SyncEngine

from tests.factories import make_target
from tests.mocks import MockChainClient, MockSink

ENDPOINTS = {
    "ethereum": "http://rpc.test/ethereum",
    "celo": "http://rpc.test/celo",
    "linea": "http://rpc.test/linea",
}


def pytest_configure(config):
    """Add run info to the HTML report Environment table."""
    meta = config.stash.setdefault(metadata_key, {})
    meta["Networks"] = ", ".join(sorted(ENDPOINTS))
    meta["Strategies"] = "eth_blockNumber, eth_getBlockByNumber"


def make_test_config(**overrides) -> WatcherConfig:
    """Build a WatcherConfig suitable for testing."""
    defaults = dict(
        targets_path="events.csv",
        max_concurrent_networks=1,
        max_block_range=None,
        log_file=None,
        schedule=ScheduleConfig(poll_interval=0, error_backoff=0, max_backoff=0, jitter=0),
        rpc=RpcConfig(alchemy_api_key="test-key", timeout=5, endpoints=dict(ENDPOINTS)),
        storage=StorageConfig(db_path=":memory:"),
    )
    defaults.update(overrides)
    return WatcherConfig(**defaults)


@pytest.fixture
def test_config():
    """Default WatcherConfig for tests."""
    return make_test_config()


@pytest.fixture
def target():
    return make_target()


@pytest.fixture
def catalog():
    return EventCatalog()


@pytest.fixture
def registry():
    return NetworkRegistry(alchemy_api_key="test-key", overrides=ENDPOINTS)


@pytest.fixture
def cursors():
    return InMemoryCursorStore()


@pytest.fixture
def mock_client():
    return MockChainClient(latest=100)


@pytest.fixture
def mock_sink():
    return MockSink()


@pytest.fixture
async def store():
    """Initialized in-memory SQLiteStore."""
    s = SQLiteStore(":memory:")
    await s.initialize()
    yield s
    await s.close()


@pytest.fixture
def make_engine(mock_client, catalog, cursors, mock_sink, registry):
    """Build a SyncEngine over the mock components; kwargs override any of them."""

    def _make(targets=None, **overrides) -> SyncEngine:
        kwargs = dict(
            client=mock_client,
            catalog=catalog,
            cursors=cursors,
            sink=mock_sink,
            endpoints=registry,
            targets=targets if targets is not None else [make_target()],
        )
        kwargs.update(overrides)
        return SyncEngine(**kwargs)

    return _make
