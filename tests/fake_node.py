"""Local fake JSON-RPC endpoints for tests.

Both the read node and the injector are served by a small
:py:mod:`aiohttp.web` application that records every request.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import Any, Callable

from aiohttp import web
from aiohttp.test_utils import TestServer as AiohttpTestServer

#: Anvil and Hardhat test account #0
TEST_PRIVATE_KEY = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"

#: Address of :py:data:`TEST_PRIVATE_KEY`
TEST_ADDRESS = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"

#: What the fake injector answers by default
TEST_TX_HASH = "0x" + "ab" * 32

class FakeJsonRpcNode:
    """Answers JSON-RPC calls from a method -> result table.

    - ``results`` values can be callables taking the params list

    - ``errors`` maps a method to a ``(code, message)`` JSON-RPC error

    - ``http_status`` other than 200 makes every request fail at HTTP level

    - ``delay`` makes every request hang for the given seconds

    - ``response_id`` replaces the echoed request id in successful responses
    """

    def __init__(self, results: dict[str, Any] | None = None):
        self.results: dict[str, Any | Callable[[list], Any]] = results or {}
        self.errors: dict[str, tuple[int, str]] = {}
        self.http_status = 200
        self.delay = 0.0
        self.response_id = None
        self.calls: list[dict] = []
        self.headers: list[dict] = []
        self.url: str | None = None

    def get_methods(self) -> list[str]:
        return [c["method"] for c in self.calls]

    def get_calls(self, method: str) -> list[dict]:
        return [c for c in self.calls if c["method"] == method]

    async def handle(self, request: web.Request) -> web.Response:
        body = await request.json()
        self.calls.append(body)
        self.headers.append(dict(request.headers))

        if self.delay:
            await asyncio.sleep(self.delay)

        if self.http_status != 200:
            return web.Response(status=self.http_status, text="Service unavailable")

        method = body["method"]
        if method in self.errors:
            code, message = self.errors[method]
            return web.json_response({"jsonrpc": "2.0", "id": body["id"], "error": {"code": code, "message": message}})

        if method not in self.results:
            return web.json_response({"jsonrpc": "2.0", "id": body["id"], "error": {"code": -32601, "message": f"Method not found: {method}"}})

        result = self.results[method]
        if callable(result):
            result = result(body["params"])

        response_id = body["id"] if self.response_id is None else self.response_id
        return web.json_response({"jsonrpc": "2.0", "id": response_id, "result": result})

    @asynccontextmanager
    async def serve(self):
        app = web.Application()
        app.router.add_post("/", self.handle)
        server = AiohttpTestServer(app)
        await server.start_server()
        try:
            self.url = str(server.make_url("/"))
            yield self
        finally:
            await server.close()
