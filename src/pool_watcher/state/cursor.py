"""In-memory CursorStore."""

from __future__ import annotations

from pool_watcher.models.targets import TrackingKey


class InMemoryCursorStore:
    """Dict-backed cursors that live as long as the process."""

    def __init__(self) -> None:
        self._cursors: dict[TrackingKey, int] = {}

    async def get(self, key: TrackingKey) -> int | None:
        return self._cursors.get(key)

    async def set(self, key: TrackingKey, block_number: int) -> None:
        self._cursors[key] = block_number

    def items(self) -> list[tuple[TrackingKey, int]]:
        return list(self._cursors.items())

    def __len__(self) -> int:
        return len(self._cursors)
