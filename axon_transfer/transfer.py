"""Build, sign and broadcast a native currency self-transfer.

The transfer is a fixed sequence of steps, each awaited in turn:

1. Resolve the signing identity from the private key
2. Read the nonce and chain id from the read endpoint
3. Build the unsigned draft, sending one whole native unit to ourselves
4. Populate the remaining fields with node defaults
5. Force the configured gas price and gas limit
6. Sign
7. Broadcast with ``eth_sendRawTransaction`` to the injector endpoint

Any exception ends the run. There are no retries: running the transfer twice
creates two transactions with different nonces.

Example:

.. code-block:: python

    config = read_transfer_config()
    report = asyncio.run(run_transfer(config))
    print("Transaction hash", report.response.result)

"""

import logging
import sys
from dataclasses import dataclass
from pprint import pformat
from typing import TextIO

import aiohttp
from eth_typing import ChecksumAddress
from web3 import AsyncWeb3

from axon_transfer.config import TransferConfig
from axon_transfer.gas import GasParameters, apply_gas
from axon_transfer.hotwallet import HotWallet, SignedTransactionWithNonce
from axon_transfer.jsonrpc import JsonRpcSuccess, NetworkError, RpcError, broadcast_raw_transaction
from axon_transfer.provider import create_read_web3, translate_rpc_errors
from axon_transfer.tx import LEGACY_TRANSACTION_TYPE, TRANSFER_VALUE, PopulatedTransaction, UnsignedTransactionDraft
from axon_transfer.utils import get_url_domain

logger = logging.getLogger(__name__)


#: Printed after each multi-line value in the report
SEPARATOR = ">>> ====    ====    ====    ===="


@dataclass
class TransferReport:
    """What happened during one transfer."""

    sender: ChecksumAddress
    nonce: int
    chain_id: int
    draft: UnsignedTransactionDraft

    #: With the forced gas parameters
    populated: PopulatedTransaction

    signed: SignedTransactionWithNonce
    response: JsonRpcSuccess

    @property
    def tx_hash(self) -> str:
        return self.response.result


def build_self_transfer(sender: ChecksumAddress, nonce: int, chain_id: int) -> UnsignedTransactionDraft:
    """Legacy transaction sending one native unit back to the sender."""
    return UnsignedTransactionDraft(
        chain_id=chain_id,
        to=sender,
        nonce=nonce,
        type=LEGACY_TRANSACTION_TYPE,
        value=TRANSFER_VALUE,
    )


def _print_section(out: TextIO, label: str, value):
    print(f">>> {label}:", file=out)
    print(pformat(value), file=out)
    print(SEPARATOR, file=out)


async def run_transfer(
    config: TransferConfig,
    web3: AsyncWeb3 | None = None,
    session: aiohttp.ClientSession | None = None,
    out: TextIO | None = None,
) -> TransferReport:
    """Perform one self-transfer.

    :param config:
        Endpoints, private key and gas overrides

    :param web3:
        Read side connection. Created from ``config.json_rpc_url`` if not given.

    :param session:
        HTTP session for the broadcast. A private session is created
        and closed if not given.

    :param out:
        Where to print the report. Defaults to stdout.

    :raise axon_transfer.config.ConfigurationError:
        Bad private key

    :raise axon_transfer.jsonrpc.NetworkError:
        An endpoint could not be reached

    :raise axon_transfer.jsonrpc.RpcError:
        An endpoint returned an error

    :raise axon_transfer.hotwallet.SigningError:
        The transaction fields were refused by the signer
    """

    if out is None:
        out = sys.stdout

    # Resolve identity
    wallet = HotWallet.from_private_key(config.private_key)
    sender = wallet.address
    print(f">>> sender   address: {sender}", file=out)

    own_web3 = web3 is None
    if own_web3:
        web3 = create_read_web3(config.json_rpc_url, timeout=config.http_timeout)

    try:
        report = await _transfer(config, wallet, web3, session, out)
    finally:
        if own_web3:
            # Close pooled aiohttp sessions of the read provider
            await web3.provider.disconnect()

    return report


async def _transfer(
    config: TransferConfig,
    wallet: HotWallet,
    web3: AsyncWeb3,
    session: aiohttp.ClientSession | None,
    out: TextIO,
) -> TransferReport:
    sender = wallet.address

    # Query chain state
    nonce = await wallet.fetch_nonce(web3)
    print(f">>> nonce: {nonce}", file=out)

    with translate_rpc_errors(web3, "eth_chainId"):
        chain_id = await web3.eth.chain_id
    print(f">>> chain-id: {chain_id}", file=out)

    # Build draft
    draft = build_self_transfer(sender, nonce, chain_id)
    _print_section(out, "unsigned-raw-tx", draft.as_dict())

    # Populate defaults, then force gas
    populated = await wallet.populate_transaction(web3, draft)
    forced_gas = GasParameters(gas_price=config.gas_price, gas_limit=config.gas_limit)
    unsigned = apply_gas(populated, forced_gas)
    _print_section(out, "unsigned-tx", unsigned.as_dict())

    # Sign
    signed = wallet.sign_transaction(unsigned)
    signed_hex = signed.to_hex()
    print(">>> signed-tx:", file=out)
    print(signed_hex, file=out)
    print(SEPARATOR, file=out)

    # Broadcast
    logger.info("Broadcasting %s with nonce %d to %s", signed.hash.to_0x_hex(), nonce, get_url_domain(config.injector_json_rpc_url))
    try:
        if session is None:
            async with aiohttp.ClientSession() as own_session:
                response = await broadcast_raw_transaction(config.injector_json_rpc_url, signed_hex, own_session, config.http_timeout)
        else:
            response = await broadcast_raw_transaction(config.injector_json_rpc_url, signed_hex, session, config.http_timeout)
    except (RpcError, NetworkError) as e:
        print(f"P2P Broadcast failed: {e}", file=out)
        raise

    print(f"P2P Broadcast: {response.result}", file=out)

    return TransferReport(
        sender=sender,
        nonce=nonce,
        chain_id=chain_id,
        draft=draft,
        populated=unsigned,
        signed=signed,
        response=response,
    )
