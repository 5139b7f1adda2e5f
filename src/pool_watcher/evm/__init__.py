"""EVM JSON-RPC integration components."""

from pool_watcher.evm.client import JsonRpcChainClient
from pool_watcher.evm.events import EventCatalog
from pool_watcher.evm.logs import normalize_log
from pool_watcher.evm.networks import NetworkRegistry

__all__ = ["JsonRpcChainClient", "EventCatalog", "normalize_log", "NetworkRegistry"]
