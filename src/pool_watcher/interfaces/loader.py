"""TargetLoader protocol - supplies tracked targets at startup."""

from __future__ import annotations

from typing import Protocol

from pool_watcher.models.targets import Target


class TargetLoader(Protocol):
    """Loads the static target list. Raises TargetLoadError on failure."""

    def load(self) -> list[Target]:
        ...
