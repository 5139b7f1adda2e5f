"""Supabase (PostgREST) implementation of the LogSink protocol."""

from __future__ import annotations

import logging

import httpx

from pool_watcher.errors import SinkError
from pool_watcher.models.records import LogRecord

log = logging.getLogger(__name__)


class SupabaseLogSink:
    """Inserts records into a Supabase table through the REST API.

    Equivalent to ``supabase.from(table).insert(row)``: one POST per record
    to ``/rest/v1/<table>`` authenticated with the project key.
    """

    def __init__(
        self,
        supabase_url: str,
        supabase_key: str,
        table: str = "logs",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._url = f"{supabase_url.rstrip('/')}/rest/v1/{table}"
        self._key = supabase_key
        self._timeout = timeout
        self._transport = transport
        self._http: httpx.AsyncClient | None = None

    async def initialize(self) -> None:
        if self._http is not None:
            return
        self._http = httpx.AsyncClient(
            timeout=httpx.Timeout(self._timeout, connect=10),
            transport=self._transport,
            headers={
                "apikey": self._key,
                "Authorization": f"Bearer {self._key}",
                "Content-Type": "application/json",
                "Prefer": "return=minimal",
            },
        )

    async def close(self) -> None:
        if self._http is not None:
            await self._http.aclose()
            self._http = None

    async def insert(self, record: LogRecord) -> None:
        assert self._http is not None, "Sink not initialized. Call initialize() first."
        try:
            resp = await self._http.post(self._url, json=record.to_row())
            resp.raise_for_status()
        except httpx.HTTPStatusError as exc:
            detail = exc.response.text[:200]
            raise SinkError(
                f"supabase insert failed: HTTP {exc.response.status_code} {detail}"
            ) from exc
        except httpx.HTTPError as exc:
            raise SinkError(f"supabase insert failed: {exc}") from exc
