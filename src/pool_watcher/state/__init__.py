"""Process-local state."""

from pool_watcher.state.cursor import InMemoryCursorStore

__all__ = ["InMemoryCursorStore"]
