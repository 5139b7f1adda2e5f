"""Protocol interfaces for all pool_watcher components."""

from pool_watcher.interfaces.chain import ChainClient
from pool_watcher.interfaces.store import CursorStore
from pool_watcher.interfaces.sink import LogSink
from pool_watcher.interfaces.loader import TargetLoader

__all__ = [
    "ChainClient",
    "CursorStore",
    "LogSink",
    "TargetLoader",
]
