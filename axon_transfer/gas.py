"""Gas parameters for legacy transactions.

- Ask the node for its default gas price and a gas limit estimate

- Force fixed gas parameters over whatever the node suggested
"""

import logging
from dataclasses import dataclass
from pprint import pformat

from web3 import AsyncWeb3

from axon_transfer.provider import translate_rpc_errors
from axon_transfer.tx import PopulatedTransaction

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class GasParameters:
    """Gas price and gas limit of a legacy (type 0) transaction."""

    #: Wei per gas unit
    gas_price: int

    #: Max gas units
    gas_limit: int

    def __repr__(self):
        return f"<Gas price:{self.gas_price} limit:{self.gas_limit}>"

    def pformat(self) -> str:
        """Pretty format for logging."""
        data = {
            "Gas price": f"{self.gas_price / 10**9:.9f}G ({self.gas_price:,})",
            "Gas limit": f"{self.gas_limit:,} ({hex(self.gas_limit)})",
        }
        return pformat(data)


async def estimate_gas_parameters(web3: AsyncWeb3, tx: dict) -> GasParameters:
    """Get node default gas parameters for a transaction.

    - ``eth_gasPrice`` for the price

    - ``eth_estimateGas`` for the limit

    :param tx:
        web3.py transaction dict with at least ``from``, ``to`` and ``value``
    """
    assert isinstance(tx, dict), f"Expected tx to be dict, got {type(tx)}"

    with translate_rpc_errors(web3, "eth_gasPrice"):
        gas_price = await web3.eth.gas_price

    with translate_rpc_errors(web3, "eth_estimateGas"):
        gas_limit = await web3.eth.estimate_gas(tx)

    suggestion = GasParameters(gas_price=gas_price, gas_limit=gas_limit)
    logger.debug("Node gas suggestion %s", suggestion)
    return suggestion


def apply_gas(tx: PopulatedTransaction, gas: GasParameters) -> PopulatedTransaction:
    """Overwrite both gas fields of a transaction.

    Example:

    .. code-block:: python

        forced = GasParameters(gas_price=1, gas_limit=2**64)
        tx = apply_gas(populated, forced)
        assert tx.gas_limit == 2**64

    :return:
        New transaction, the input is left untouched
    """
    assert isinstance(tx, PopulatedTransaction), f"Expected PopulatedTransaction, got {type(tx)}"

    if (tx.gas_price, tx.gas_limit) != (gas.gas_price, gas.gas_limit):
        logger.info(
            "Overriding node gas price %d and gas limit %d with:\n%s",
            tx.gas_price,
            tx.gas_limit,
            gas.pformat(),
        )

    return tx.with_gas(gas_price=gas.gas_price, gas_limit=gas.gas_limit)
