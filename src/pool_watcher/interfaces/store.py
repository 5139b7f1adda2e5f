"""CursorStore protocol - last synchronized block per tracking key."""

from __future__ import annotations

from typing import Protocol

from pool_watcher.models.targets import TrackingKey


class CursorStore(Protocol):
    """Key/value mapping from TrackingKey to the last processed block.

    No monotonicity check is done here; the sync engine only ever moves a
    cursor forward.
    """

    async def get(self, key: TrackingKey) -> int | None:
        ...

    async def set(self, key: TrackingKey, block_number: int) -> None:
        ...
