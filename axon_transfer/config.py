"""Read the transfer configuration from environment variables.

All configuration is read once at the process start into
:py:class:`TransferConfig` and passed explicitly to
:py:func:`axon_transfer.transfer.run_transfer`.

Example:

.. code-block:: shell

    export JSONRPC_URL=http://127.0.0.1:8000
    export INJECTOR_JSONRPC_URL=http://127.0.0.1:8100
    export PRIVATE_KEY=0x...
    axon-transfer

"""

import logging
import os
from dataclasses import dataclass, field
from typing import Mapping

from urllib3.util import parse_url

#: Read endpoint for nonce, chain id and gas default queries
JSONRPC_URL_ENV = "JSONRPC_URL"

#: Write endpoint used only for broadcasting the signed transaction
INJECTOR_JSONRPC_URL_ENV = "INJECTOR_JSONRPC_URL"

#: Hex encoded private key of the sender
PRIVATE_KEY_ENV = "PRIVATE_KEY"

#: Optional override for :py:data:`DEFAULT_GAS_PRICE`
GAS_PRICE_ENV = "TRANSFER_GAS_PRICE"

#: Optional override for :py:data:`DEFAULT_GAS_LIMIT`
GAS_LIMIT_ENV = "TRANSFER_GAS_LIMIT"

#: Optional override for :py:data:`DEFAULT_HTTP_TIMEOUT`
HTTP_TIMEOUT_ENV = "JSONRPC_TIMEOUT"

#: Console log level name, e.g. ``info`` or ``debug``
LOG_LEVEL_ENV = "LOG_LEVEL"

#: Environment variables that must be present
REQUIRED_ENV = (
    JSONRPC_URL_ENV,
    INJECTOR_JSONRPC_URL_ENV,
    PRIVATE_KEY_ENV,
)

#: Forced gas price, in wei.
#:
#: A minimal fee transaction for testing injector nodes.
DEFAULT_GAS_PRICE = 0x1

#: Forced gas limit.
#:
#: Far above any real block gas limit.
DEFAULT_GAS_LIMIT = 0x10000000000000000

#: Seconds, for each JSON-RPC HTTP request
DEFAULT_HTTP_TIMEOUT = 30.0

#: Only warnings and errors by default
DEFAULT_LOG_LEVEL = "warning"


class ConfigurationError(Exception):
    """Required configuration is missing or structurally invalid."""


@dataclass(frozen=True)
class TransferConfig:
    """Everything a transfer run needs to know."""

    #: Read endpoint
    json_rpc_url: str

    #: Broadcast endpoint
    injector_json_rpc_url: str

    #: Hex string, never displayed
    private_key: str = field(repr=False)

    #: Replaces whatever the node suggested
    gas_price: int = DEFAULT_GAS_PRICE

    #: Replaces whatever the node estimated
    gas_limit: int = DEFAULT_GAS_LIMIT

    #: Per request timeout in seconds
    http_timeout: float = DEFAULT_HTTP_TIMEOUT

    def __post_init__(self):
        assert type(self.gas_price) == int and self.gas_price >= 0, f"Bad gas price: {self.gas_price}"
        assert type(self.gas_limit) == int and self.gas_limit >= 0, f"Bad gas limit: {self.gas_limit}"
        assert self.http_timeout > 0, f"Bad timeout: {self.http_timeout}"


def _check_url(name: str, value: str) -> str:
    try:
        url = parse_url(value)
    except Exception as e:
        raise ConfigurationError(f"Could not parse {name}: {value}") from e

    if url.scheme not in ("http", "https") or not url.host:
        raise ConfigurationError(f"{name} must be a http:// or https:// URL, got: {value}")

    return value


def _parse_int(name: str, value: str) -> int:
    """Parse a decimal or 0x prefixed hex integer."""
    value = value.strip()
    try:
        if value.lower().startswith("0x"):
            parsed = int(value, 16)
        else:
            parsed = int(value)
    except ValueError as e:
        raise ConfigurationError(f"{name} is not an integer: {value}") from e

    if parsed < 0:
        raise ConfigurationError(f"{name} cannot be negative: {value}")

    return parsed


def _parse_timeout(name: str, value: str) -> float:
    try:
        parsed = float(value)
    except ValueError as e:
        raise ConfigurationError(f"{name} is not a number: {value}") from e

    if parsed <= 0:
        raise ConfigurationError(f"{name} must be positive: {value}")

    return parsed


def read_log_level(environ: Mapping[str, str] | None = None) -> int:
    """Read the console log level from ``LOG_LEVEL``.

    :return:
        Numeric :py:mod:`logging` level

    :raise ConfigurationError:
        If the name is not a known log level
    """

    if environ is None:
        environ = os.environ

    name = (environ.get(LOG_LEVEL_ENV) or DEFAULT_LOG_LEVEL).strip().upper()
    level = logging.getLevelName(name)
    if type(level) != int:
        raise ConfigurationError(f"{LOG_LEVEL_ENV} is not a log level: {name}")

    return level


def read_transfer_config(environ: Mapping[str, str] | None = None) -> TransferConfig:
    """Read :py:class:`TransferConfig` from environment variables.

    - All three required variables are checked before anything else,
      so a bad configuration never causes network traffic

    - The private key format is validated later, when
      :py:class:`axon_transfer.hotwallet.HotWallet` is created

    :param environ:
        Defaults to :py:data:`os.environ`

    :raise ConfigurationError:
        If a required variable is missing or empty, or a value does not parse
    """

    if environ is None:
        environ = os.environ

    missing = [name for name in REQUIRED_ENV if not environ.get(name, "").strip()]
    if missing:
        raise ConfigurationError(f"Environment variables not set: {', '.join(missing)}")

    kwargs = {}

    if environ.get(GAS_PRICE_ENV):
        kwargs["gas_price"] = _parse_int(GAS_PRICE_ENV, environ[GAS_PRICE_ENV])

    if environ.get(GAS_LIMIT_ENV):
        kwargs["gas_limit"] = _parse_int(GAS_LIMIT_ENV, environ[GAS_LIMIT_ENV])

    if environ.get(HTTP_TIMEOUT_ENV):
        kwargs["http_timeout"] = _parse_timeout(HTTP_TIMEOUT_ENV, environ[HTTP_TIMEOUT_ENV])

    return TransferConfig(
        json_rpc_url=_check_url(JSONRPC_URL_ENV, environ[JSONRPC_URL_ENV].strip()),
        injector_json_rpc_url=_check_url(INJECTOR_JSONRPC_URL_ENV, environ[INJECTOR_JSONRPC_URL_ENV].strip()),
        private_key=environ[PRIVATE_KEY_ENV].strip(),
        **kwargs,
    )
