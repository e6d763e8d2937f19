"""Read side JSON-RPC provider.

- Create an :py:class:`web3.AsyncWeb3` instance for chain state queries

- Map transport and JSON-RPC failures to :py:class:`axon_transfer.jsonrpc.NetworkError`
  and :py:class:`axon_transfer.jsonrpc.RpcError`

"""

import asyncio
import logging
from contextlib import contextmanager

import aiohttp
from web3 import AsyncHTTPProvider, AsyncWeb3
from web3.exceptions import BadResponseFormat, ContractLogicError, Web3RPCError
from web3.providers import AsyncBaseProvider

from axon_transfer.config import DEFAULT_HTTP_TIMEOUT
from axon_transfer.jsonrpc import NetworkError, RpcError
from axon_transfer.utils import get_url_domain

logger = logging.getLogger(__name__)


#: JSON-RPC error code geth uses for "execution reverted".
#:
#: web3.py turns these envelopes into :py:class:`web3.exceptions.ContractLogicError`
#: and drops the code.
REVERT_ERROR_CODE = 3


def get_provider_name(provider: AsyncBaseProvider) -> str:
    """Get loggable name of the JSON-RPC provider.

    Strips out API keys from the URL of a JSON-RPC API provider.

    :return:
        HTTP provider URL's domain name if available.
    """
    if hasattr(provider, "endpoint_uri"):
        return get_url_domain(provider.endpoint_uri)
    return str(provider)


def create_read_web3(json_rpc_url: str, timeout: float = DEFAULT_HTTP_TIMEOUT) -> AsyncWeb3:
    """Create a web3 instance for reading nonce, chain id and gas defaults.

    - web3.py internal retries are disabled: a failed read fails the transfer

    - Each HTTP request is bounded by ``timeout``

    :param json_rpc_url:
        Node URL

    :param timeout:
        Total seconds per HTTP request
    """
    provider = AsyncHTTPProvider(
        json_rpc_url,
        request_kwargs={"timeout": aiohttp.ClientTimeout(total=timeout)},
        exception_retry_configuration=None,
    )
    logger.info("Created read provider %s, timeout %.1fs", get_provider_name(provider), timeout)
    return AsyncWeb3(provider)


def _get_rpc_error_details(e: Web3RPCError) -> tuple[int | None, str, object]:
    response = getattr(e, "rpc_response", None) or {}
    error = response.get("error")
    if isinstance(error, dict):
        return error.get("code"), str(error.get("message", e)), error.get("data")
    return None, str(e), None


@contextmanager
def translate_rpc_errors(web3: AsyncWeb3, what: str):
    """Turn web3.py and aiohttp exceptions into our error taxonomy.

    Example:

    .. code-block:: python

        with translate_rpc_errors(web3, "eth_chainId"):
            chain_id = await web3.eth.chain_id

    :param what:
        Human readable name of the call, for the error message
    """
    name = get_provider_name(web3.provider)
    try:
        yield
    except Web3RPCError as e:
        code, message, data = _get_rpc_error_details(e)
        raise RpcError(code, f"{what} failed at {name}: {message}", data) from e
    except ContractLogicError as e:
        raise RpcError(REVERT_ERROR_CODE, f"{what} failed at {name}: {e.message}", e.data) from e
    except BadResponseFormat as e:
        raise RpcError(None, f"{what} got a malformed response from {name}: {e}") from e
    except aiohttp.ClientResponseError as e:
        raise RpcError(e.status, f"{what} failed at {name}: HTTP {e.status} {e.message}") from e
    except (aiohttp.ClientError, asyncio.TimeoutError) as e:
        raise NetworkError(f"{what} to {name} failed: {e.__class__.__name__}: {e}") from e
