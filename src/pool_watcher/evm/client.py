"""JSON-RPC 2.0 chain client over httpx."""

from __future__ import annotations

import itertools
import logging
from typing import Any

import httpx

from pool_watcher.errors import ProtocolError, RpcError, TransportError
from pool_watcher.evm.hexutil import hex_to_int, int_to_hex
from pool_watcher.models.records import RawLogEntry
from pool_watcher.models.targets import Strategy

log = logging.getLogger(__name__)


class JsonRpcChainClient:
    """Reads block heights and logs from EVM JSON-RPC endpoints.

    One instance serves every network: the endpoint URL is passed on each
    call, and a single pooled ``httpx.AsyncClient`` carries the requests.
    Request ids come from a sequence owned by the instance.
    """

    def __init__(
        self,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._http = httpx.AsyncClient(
            timeout=httpx.Timeout(timeout, connect=10),
            transport=transport,
        )
        self._ids = itertools.count(1)

    async def __aenter__(self) -> JsonRpcChainClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def close(self) -> None:
        await self._http.aclose()

    async def _call(self, endpoint: str, method: str, params: list[Any]) -> Any:
        """POST one JSON-RPC request and return its ``result`` member."""
        payload = {
            "jsonrpc": "2.0",
            "method": method,
            "params": params,
            "id": next(self._ids),
        }
        try:
            resp = await self._http.post(endpoint, json=payload)
            resp.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise TransportError(
                f"{method}: HTTP {exc.response.status_code}"
            ) from exc
        except httpx.TimeoutException as exc:
            raise TransportError(f"{method}: timed out") from exc
        except httpx.RequestError as exc:
            raise TransportError(f"{method}: {type(exc).__name__}: {exc}") from exc

        try:
            body = resp.json()
        except ValueError as exc:
            raise ProtocolError(f"{method}: response is not JSON") from exc

        if not isinstance(body, dict):
            raise ProtocolError(f"{method}: unexpected response {body!r:.200}")
        if body.get("error") is not None:
            err = body["error"]
            if isinstance(err, dict):
                raise RpcError(method, err.get("code"), str(err.get("message", "")))
            raise RpcError(method, None, str(err))
        if "result" not in body:
            raise ProtocolError(f"{method}: response has no result")
        return body["result"]

    async def current_block(self, endpoint: str, strategy: Strategy) -> int:
        """Latest block number, either the chain head or the finalized block."""
        if strategy is Strategy.LATEST:
            result = await self._call(endpoint, "eth_blockNumber", [])
            return hex_to_int(result, "eth_blockNumber")

        if strategy is Strategy.FINALIZED:
            result = await self._call(
                endpoint, "eth_getBlockByNumber", ["finalized", False],
            )
            if not isinstance(result, dict) or not result.get("number"):
                log.error("Unexpected eth_getBlockByNumber response: %.200r", result)
                raise ProtocolError(
                    "Invalid response structure for eth_getBlockByNumber"
                )
            return hex_to_int(result["number"], "eth_getBlockByNumber.number")

        raise ValueError(f"Unsupported strategy: {strategy}")

    async def fetch_logs(
        self,
        endpoint: str,
        contract_address: str,
        topic: str,
        from_block: int,
        to_block: int,
    ) -> list[RawLogEntry]:
        """eth_getLogs for a single address and topic, bounds inclusive."""
        if from_block > to_block:
            raise ValueError(f"reversed block range: {from_block} > {to_block}")

        result = await self._call(
            endpoint,
            "eth_getLogs",
            [
                {
                    "fromBlock": int_to_hex(from_block),
                    "toBlock": int_to_hex(to_block),
                    "address": [contract_address],
                    "topics": [topic],
                }
            ],
        )
        if result is None:
            return []
        if not isinstance(result, list):
            raise ProtocolError(f"eth_getLogs: expected a list, got {type(result).__name__}")
        return result
