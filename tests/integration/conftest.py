"""Integration fixtures: a local fake JSON-RPC node served by aiohttp."""

from __future__ import annotations

import os

import pytest
from aiohttp import web

FAKE_NODE_PORT = 9310


class FakeNode:
    """Minimal EVM node: block heights plus an in-memory log table."""

    def __init__(self, latest: int = 100, finalized: int = 90) -> None:
        self.latest = latest
        self.finalized = finalized
        self.logs: list[dict] = []
        self.requests: list[dict] = []
        self.fail_next: int = 0  # answer this many requests with HTTP 502

    async def handle(self, request: web.Request) -> web.Response:
        if self.fail_next:
            self.fail_next -= 1
            return web.Response(status=502, text="bad gateway")

        body = await request.json()
        self.requests.append(body)
        method = body["method"]
        if method == "eth_blockNumber":
            result = hex(self.latest)
        elif method == "eth_getBlockByNumber":
            result = {"number": hex(self.finalized), "hash": "0x" + "ab" * 32}
        elif method == "eth_getLogs":
            result = self._get_logs(body["params"][0])
        else:
            return web.json_response({
                "jsonrpc": "2.0", "id": body["id"],
                "error": {"code": -32601, "message": f"method {method} not found"},
            })
        return web.json_response({"jsonrpc": "2.0", "id": body["id"], "result": result})

    def _get_logs(self, query: dict) -> list[dict]:
        start = int(query["fromBlock"], 16)
        end = int(query["toBlock"], 16)
        addresses = {a.lower() for a in query["address"]}
        topic = query["topics"][0]
        return [
            entry for entry in self.logs
            if start <= int(entry["blockNumber"], 16) <= end
            and entry["address"].lower() in addresses
            and entry["topics"][0] == topic
        ]


@pytest.fixture
async def fake_node():
    """Start a FakeNode on localhost and yield (node, url)."""
    node = FakeNode()
    app = web.Application()
    app.router.add_post("/", node.handle)
    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, "127.0.0.1", FAKE_NODE_PORT)
    await site.start()
    try:
        yield node, f"http://127.0.0.1:{FAKE_NODE_PORT}/"
    finally:
        await runner.cleanup()


@pytest.fixture(scope="session")
def alchemy_api_key():
    """Skip live tests unless a provider key is available."""
    key = os.environ.get("ALCHEMY_API_KEY")
    if not key:
        pytest.skip("ALCHEMY_API_KEY not set")
    return key
