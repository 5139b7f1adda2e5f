"""CSV target loader."""

from __future__ import annotations

import csv
import logging
from pathlib import Path

from pool_watcher.errors import TargetLoadError
from pool_watcher.models.targets import Target

log = logging.getLogger(__name__)

# CSV column -> Target field
COLUMNS = {
    "chain": "network",
    "factory_address": "contract_address",
    "exchange_name": "exchange_label",
    "event": "event_name",
}


class CsvTargetLoader:
    """Reads tracked targets from a CSV with a header row.

    Required columns: chain, factory_address, exchange_name, event.
    Other columns are ignored.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path).expanduser()

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> list[Target]:
        try:
            with open(self._path, newline="", encoding="utf-8-sig") as f:
                reader = csv.DictReader(f)
                header = [h.strip() for h in reader.fieldnames or []]
                missing = [c for c in COLUMNS if c not in header]
                if missing:
                    raise TargetLoadError(
                        f"{self._path}: missing column(s) {', '.join(missing)}"
                    )
                targets = [
                    t for t in (
                        self._parse_row(lineno, row)
                        for lineno, row in enumerate(reader, start=2)
                    )
                    if t is not None
                ]
        except OSError as exc:
            raise TargetLoadError(f"Cannot read targets from {self._path}: {exc}") from exc
        except csv.Error as exc:
            raise TargetLoadError(f"{self._path}: malformed CSV: {exc}") from exc
        except UnicodeDecodeError as exc:
            raise TargetLoadError(f"{self._path}: not valid UTF-8: {exc}") from exc

        log.info("Loaded %d targets from %s", len(targets), self._path)
        return targets

    def _parse_row(self, lineno: int, row: dict[str | None, str | None]) -> Target | None:
        values = {
            (k or "").strip(): (v or "").strip()
            for k, v in row.items()
            if isinstance(v, str) or v is None
        }
        if not any(values.get(c) for c in COLUMNS):
            return None  # blank line
        fields = {}
        for column, attr in COLUMNS.items():
            value = values.get(column, "")
            if not value:
                raise TargetLoadError(f"{self._path}:{lineno}: empty {column}")
            fields[attr] = value
        return Target(**fields)
