"""Log synchronization engine and its scheduler."""

from pool_watcher.sync.engine import SyncEngine
from pool_watcher.sync.scheduler import PollScheduler

__all__ = ["SyncEngine", "PollScheduler"]
