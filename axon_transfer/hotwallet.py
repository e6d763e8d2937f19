"""Hot wallet for the transfer sender.

- Create a local signer from a private key

- Fill in transaction defaults from the node

- Sign legacy transactions
"""

import logging
from pprint import pformat
from typing import NamedTuple, Optional

from eth_account import Account
from eth_account.signers.local import LocalAccount
from eth_typing import ChecksumAddress
from hexbytes import HexBytes
from web3 import AsyncWeb3, Web3

from axon_transfer.config import ConfigurationError
from axon_transfer.gas import estimate_gas_parameters
from axon_transfer.provider import get_provider_name, translate_rpc_errors
from axon_transfer.tx import PopulatedTransaction, UnsignedTransactionDraft, decode_signed_transaction

logger = logging.getLogger(__name__)


class SigningError(Exception):
    """eth-account refused to sign the transaction fields."""


class SignedTransactionWithNonce(NamedTuple):
    """A better signed transaction structure.

    - Compatible with :py:class:`eth_account.datastructures.SignedTransaction`

    - Retains the source transaction, so broadcast failures can be diagnosed
    """

    #: Bytes to be broadcasted to the P2P network
    raw_transaction: HexBytes

    #: Transaction hash
    hash: HexBytes

    r: int

    s: int

    v: int

    #: What was the source nonce for this transaction
    nonce: int

    #: What was the source address for this transaction
    address: str

    #: Unencoded transaction data as a dict.
    #:
    #: If broadcast fails, retain the source so we can debug the cause,
    #: like the gas parameters before signing.
    #:
    source: Optional[dict] = None

    def __repr__(self):
        return f"<SignedTransactionWithNonce hash:{self.hash.to_0x_hex()} nonce:{self.nonce} payload:{self.raw_transaction.to_0x_hex()}>"

    def to_hex(self) -> str:
        """0x prefixed raw transaction, as passed to ``eth_sendRawTransaction``."""
        return Web3.to_hex(self.raw_transaction)


class HotWallet:
    """Hot wallet for signing the transfer.

    - A hot wallet maintains an plain text private key of an Ethereum address in the process memory
      using :py:class:`eth_account.signers.local.LocalAccount`

    - The nonce is read from the chain for every transfer, no local counter

    Example:

    .. code-block:: python

        wallet = HotWallet.from_private_key(os.environ["PRIVATE_KEY"])
        nonce = await wallet.fetch_nonce(web3)
    """

    def __init__(self, account: LocalAccount):
        """Create a hot wallet from a local account."""
        self.account = account

    def __repr__(self):
        return f"<Hot wallet {self.account.address}>"

    @property
    def address(self) -> ChecksumAddress:
        """Ethereum address of the wallet."""
        return self.account.address

    async def fetch_nonce(self, web3: AsyncWeb3) -> int:
        """Read the current transaction count of the wallet from the chain."""
        with translate_rpc_errors(web3, "eth_getTransactionCount"):
            nonce = await web3.eth.get_transaction_count(self.address)
        logger.info("Read nonce for %s from %s: %d", self.address, get_provider_name(web3.provider), nonce)
        return nonce

    async def populate_transaction(self, web3: AsyncWeb3, draft: UnsignedTransactionDraft) -> PopulatedTransaction:
        """Fill in the fields the draft does not have.

        - ``from`` is this wallet

        - ``gasPrice`` and ``gas`` are node defaults, see :py:func:`axon_transfer.gas.estimate_gas_parameters`
        """
        assert isinstance(draft, UnsignedTransactionDraft), f"Got {type(draft)}"

        estimate_tx = {
            "from": self.address,
            "to": draft.to,
            "value": draft.value,
        }
        gas = await estimate_gas_parameters(web3, estimate_tx)

        return PopulatedTransaction.from_draft(
            draft,
            from_address=self.address,
            gas_price=gas.gas_price,
            gas_limit=gas.gas_limit,
        )

    def sign_transaction(self, tx: PopulatedTransaction) -> SignedTransactionWithNonce:
        """Sign a populated transaction.

        The signed payload is decoded back once to check it is sane.

        :raise SigningError:
            If eth-account does not accept the fields
        """
        assert isinstance(tx, PopulatedTransaction), f"Got {type(tx)}"
        assert tx.from_address == self.address, f"Transaction is from {tx.from_address}, wallet is {self.address}"

        tx_data = tx.as_signable_dict()

        try:
            _signed = self.account.sign_transaction(tx_data)
        except Exception as e:
            raise SigningError(f"Could not sign:\n{pformat(tx_data)}") from e

        raw_bytes = _signed.raw_transaction
        # Check that we can decode
        decode_signed_transaction(raw_bytes)

        return SignedTransactionWithNonce(
            raw_transaction=HexBytes(raw_bytes),
            hash=HexBytes(_signed.hash),
            v=_signed.v,
            r=_signed.r,
            s=_signed.s,
            nonce=tx.nonce,
            address=self.address,
            source=tx_data,
        )

    @staticmethod
    def from_private_key(key: str) -> "HotWallet":
        """Create a hot wallet from a private key that is passed in as a hex string.

        Example:

        .. code-block::

            # Generated with  openssl rand -hex 32
            wallet = HotWallet.from_private_key("0x54c137e27d2930f7b3433249c5f07b37ddcfea70871c0a4ef9e0f65655faf957")

        :param key:
            Hex string, 0x prefix optional

        :raise ConfigurationError:
            If the key is not a valid secp256k1 private key
        """
        if type(key) != str:
            raise ConfigurationError(f"Expected private key as string, got {type(key)}")

        try:
            account = Account.from_key(key)
        except Exception as e:
            # Do not echo the key back
            raise ConfigurationError(f"Malformed private key: {e.__class__.__name__}") from e

        return HotWallet(account)
