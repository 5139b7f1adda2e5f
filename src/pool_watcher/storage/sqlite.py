"""SQLite implementation of the LogSink and CursorStore protocols."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

import aiosqlite

from pool_watcher.errors import SinkError
from pool_watcher.models.records import LogRecord
from pool_watcher.models.targets import Strategy, TrackingKey

SCHEMA = """
-- Normalized pool/pair creation logs
CREATE TABLE IF NOT EXISTS logs (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    transaction_index INTEGER NOT NULL,
    transaction_hash TEXT NOT NULL,
    log_index INTEGER NOT NULL,
    removed INTEGER NOT NULL,
    block_number INTEGER NOT NULL,
    block_hash TEXT NOT NULL,
    exchange TEXT NOT NULL,
    network TEXT NOT NULL,
    strategy TEXT NOT NULL,
    inserted_at TEXT NOT NULL DEFAULT (datetime('now'))
);
CREATE INDEX IF NOT EXISTS idx_logs_network_block ON logs(network, block_number);

-- Last synchronized block per (network, contract, strategy)
CREATE TABLE IF NOT EXISTS cursors (
    network TEXT NOT NULL,
    contract_address TEXT NOT NULL,
    strategy TEXT NOT NULL,
    last_block INTEGER NOT NULL,
    updated_at TEXT NOT NULL DEFAULT (datetime('now')),
    PRIMARY KEY (network, contract_address, strategy)
);
"""


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class SQLiteStore:
    """SQLite-backed log sink and cursor store.

    The same database can serve as the sink, the cursor store, or both.
    """

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path
        self._db: aiosqlite.Connection | None = None

    async def initialize(self) -> None:
        if self._db is not None:
            return
        Path(self._db_path).parent.mkdir(parents=True, exist_ok=True)
        self._db = await aiosqlite.connect(self._db_path)
        self._db.row_factory = aiosqlite.Row
        await self._db.executescript(SCHEMA)
        await self._db.commit()

    async def close(self) -> None:
        if self._db:
            await self._db.close()
            self._db = None

    @property
    def db(self) -> aiosqlite.Connection:
        assert self._db is not None, "Store not initialized. Call initialize() first."
        return self._db

    # ── Sink ───────────────────────────────────────────────

    async def insert(self, record: LogRecord) -> None:
        try:
            await self.db.execute(
                "INSERT INTO logs (transaction_index, transaction_hash, log_index,"
                " removed, block_number, block_hash, exchange, network, strategy,"
                " inserted_at) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                (
                    record.transaction_index,
                    record.transaction_hash,
                    record.log_index,
                    int(record.removed),
                    record.block_number,
                    record.block_hash,
                    record.exchange,
                    record.network,
                    record.strategy,
                    _now(),
                ),
            )
            await self.db.commit()
        except aiosqlite.Error as exc:
            raise SinkError(f"sqlite insert failed: {exc}") from exc

    async def get_logs(
        self, network: str | None = None, limit: int = 50,
    ) -> list[LogRecord]:
        sql = "SELECT * FROM logs"
        params: tuple = ()
        if network is not None:
            sql += " WHERE network = ?"
            params = (network,)
        sql += " ORDER BY id DESC LIMIT ?"
        async with self.db.execute(sql, params + (limit,)) as cur:
            rows = await cur.fetchall()
        return [
            LogRecord(
                transaction_index=r["transaction_index"],
                transaction_hash=r["transaction_hash"],
                log_index=r["log_index"],
                removed=bool(r["removed"]),
                block_number=r["block_number"],
                block_hash=r["block_hash"],
                exchange=r["exchange"],
                network=r["network"],
                strategy=r["strategy"],
            )
            for r in rows
        ]

    async def count_logs(self) -> int:
        async with self.db.execute("SELECT COUNT(*) AS n FROM logs") as cur:
            row = await cur.fetchone()
            return row["n"] if row else 0

    # ── Cursors ────────────────────────────────────────────

    async def get(self, key: TrackingKey) -> int | None:
        async with self.db.execute(
            "SELECT last_block FROM cursors"
            " WHERE network=? AND contract_address=? AND strategy=?",
            (key.network, key.contract_address, key.strategy.value),
        ) as cur:
            row = await cur.fetchone()
            return row["last_block"] if row else None

    async def set(self, key: TrackingKey, block_number: int) -> None:
        await self.db.execute(
            "INSERT INTO cursors (network, contract_address, strategy, last_block, updated_at)"
            " VALUES (?, ?, ?, ?, ?)"
            " ON CONFLICT(network, contract_address, strategy) DO UPDATE SET"
            " last_block=excluded.last_block, updated_at=excluded.updated_at",
            (key.network, key.contract_address, key.strategy.value, block_number, _now()),
        )
        await self.db.commit()

    async def all_cursors(self) -> list[tuple[TrackingKey, int]]:
        async with self.db.execute(
            "SELECT network, contract_address, strategy, last_block FROM cursors"
            " ORDER BY network, contract_address, strategy"
        ) as cur:
            rows = await cur.fetchall()
        return [
            (
                TrackingKey(r["network"], r["contract_address"], Strategy(r["strategy"])),
                r["last_block"],
            )
            for r in rows
        ]
