"""JSON-RPC 2.0 envelope handling and raw transaction broadcast.

- Build the request envelope for ``eth_sendRawTransaction``

- Decode responses strictly into :py:class:`JsonRpcSuccess` or :py:class:`JsonRpcFailure`

- POST the signed transaction to the injector endpoint with :py:mod:`aiohttp`

The read side (nonce, chain id, gas) goes through web3.py,
see :py:mod:`axon_transfer.provider`.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, TypeAlias

import aiohttp
from hexbytes import HexBytes

from axon_transfer.utils import get_url_domain

logger = logging.getLogger(__name__)


#: The only method we call on the injector
SEND_RAW_TRANSACTION_METHOD = "eth_sendRawTransaction"

#: The broadcast is the only request on its connection
BROADCAST_REQUEST_ID = 1

#: JSON-RPC protocol version tag
JSONRPC_VERSION = "2.0"

#: Headers for all outgoing JSON-RPC POSTs
JSONRPC_HEADERS = {
    "Content-Type": "application/json",
}


class NetworkError(Exception):
    """Could not reach a JSON-RPC endpoint.

    DNS failure, connection refused or reset, timeout.
    """


class RpcError(Exception):
    """JSON-RPC endpoint responded, but with a failure.

    - A JSON-RPC error envelope: ``code`` and ``message`` come from the envelope

    - A non-success HTTP status: ``code`` is the HTTP status

    - A malformed envelope: ``code`` is ``None``
    """

    def __init__(self, code: int | None, message: str, data: Any = None):
        super().__init__(code, message, data)
        self.code = code
        self.message = message
        self.data = data

    def __str__(self):
        return f"[{self.code}] {self.message}"


@dataclass(slots=True, frozen=True)
class JsonRpcSuccess:
    """A JSON-RPC response with ``result``."""

    id: int | str | None

    #: Transaction hash for ``eth_sendRawTransaction``
    result: Any


@dataclass(slots=True, frozen=True)
class JsonRpcFailure:
    """A JSON-RPC response with ``error``."""

    id: int | str | None
    code: int
    message: str
    data: Any = None

    def to_exception(self) -> RpcError:
        return RpcError(self.code, self.message, self.data)


#: Tagged JSON-RPC response
JsonRpcResponse: TypeAlias = JsonRpcSuccess | JsonRpcFailure


def is_transaction_hash(value: Any) -> bool:
    """Is the value a 0x prefixed 32 byte hex string."""
    if not isinstance(value, str) or not value.startswith("0x") or len(value) != 66:
        return False

    try:
        HexBytes(value)
    except ValueError:
        return False

    return True


def build_request(method: str, params: list, request_id: int = BROADCAST_REQUEST_ID) -> dict:
    """Create a JSON-RPC 2.0 request envelope."""
    assert type(params) == list, f"JSON-RPC params must be a list, got {type(params)}"
    return {
        "jsonrpc": JSONRPC_VERSION,
        "method": method,
        "params": params,
        "id": request_id,
    }


def decode_json_rpc_response(payload: Any) -> JsonRpcResponse:
    """Decode a parsed JSON body into a tagged response.

    Validation is strict: we do not guess around missing
    or mistyped fields.

    :param payload:
        Output of ``json.loads()``

    :raise RpcError:
        If the payload is not a valid JSON-RPC 2.0 response object
    """

    if not isinstance(payload, dict):
        raise RpcError(None, f"JSON-RPC response is not an object: {payload!r}")

    if payload.get("jsonrpc") != JSONRPC_VERSION:
        raise RpcError(None, f"Not a JSON-RPC 2.0 response: {payload!r}")

    if "id" not in payload:
        raise RpcError(None, f"JSON-RPC response has no id: {payload!r}")

    has_result = "result" in payload
    has_error = "error" in payload and payload["error"] is not None

    if has_result == has_error:
        raise RpcError(None, f"JSON-RPC response must have exactly one of result and error: {payload!r}")

    if has_result:
        return JsonRpcSuccess(id=payload["id"], result=payload["result"])

    error = payload["error"]
    if not isinstance(error, dict):
        raise RpcError(None, f"JSON-RPC error is not an object: {error!r}")

    code = error.get("code")
    message = error.get("message")
    # bool is an int subclass
    if type(code) != int:
        raise RpcError(None, f"JSON-RPC error code is not an integer: {error!r}")

    if not isinstance(message, str):
        raise RpcError(None, f"JSON-RPC error message is not a string: {error!r}")

    return JsonRpcFailure(id=payload["id"], code=code, message=message, data=error.get("data"))


async def post_json_rpc(
    session: aiohttp.ClientSession,
    url: str,
    request: dict,
    timeout: float,
) -> JsonRpcResponse:
    """POST one JSON-RPC request and decode the response.

    Exactly one attempt is made.

    :raise NetworkError:
        Transport failure or timeout

    :raise RpcError:
        Non-success HTTP status or malformed response body
    """
    domain = get_url_domain(url)
    logger.debug("Sending %s to %s", request["method"], domain)

    try:
        async with session.post(
            url,
            json=request,
            headers=JSONRPC_HEADERS,
            timeout=aiohttp.ClientTimeout(total=timeout),
        ) as response:
            if response.status >= 300:
                body = await response.text()
                raise RpcError(response.status, f"HTTP {response.status} {response.reason} from {domain}: {body[:200]}")

            try:
                payload = await response.json(content_type=None)
            except ValueError as e:
                raise RpcError(None, f"Could not parse JSON-RPC response from {domain}") from e

    except (aiohttp.ClientError, asyncio.TimeoutError) as e:
        raise NetworkError(f"{request['method']} to {domain} failed: {e.__class__.__name__}: {e}") from e

    return decode_json_rpc_response(payload)


async def broadcast_raw_transaction(
    url: str,
    signed_tx_hex: str,
    session: aiohttp.ClientSession,
    timeout: float,
) -> JsonRpcSuccess:
    """Broadcast a signed transaction to an injector.

    The request body is always

    .. code-block:: json

        {"jsonrpc": "2.0", "method": "eth_sendRawTransaction", "params": ["0x..."], "id": 1}

    No retries.

    :param signed_tx_hex:
        0x prefixed raw signed transaction

    :return:
        Success response, ``result`` holding the transaction hash

    :raise RpcError:
        The injector refused the transaction, or answered with something
        other than a transaction hash for request id 1
    """
    assert signed_tx_hex.startswith("0x"), f"Expected 0x prefixed hex, got {signed_tx_hex[0:8]}..."

    request = build_request(SEND_RAW_TRANSACTION_METHOD, [signed_tx_hex])
    response = await post_json_rpc(session, url, request, timeout)

    if isinstance(response, JsonRpcFailure):
        logger.warning("Injector %s refused the transaction: [%d] %s", get_url_domain(url), response.code, response.message)
        raise response.to_exception()

    if type(response.id) != int or response.id != BROADCAST_REQUEST_ID:
        raise RpcError(None, f"Injector {get_url_domain(url)} answered request id {response.id!r}, expected {BROADCAST_REQUEST_ID}")

    if not is_transaction_hash(response.result):
        raise RpcError(None, f"Injector {get_url_domain(url)} did not return a transaction hash: {response.result!r}")

    return response
