"""Transaction building and parsing utilities."""

from dataclasses import dataclass, replace
from typing import Optional, Union

from eth_account._utils.legacy_transactions import Transaction
from eth_account.typed_transactions import TypedTransaction
from eth_typing import ChecksumAddress
from hexbytes import HexBytes
from web3 import Web3

#: Pre EIP-2718 transaction envelope
LEGACY_TRANSACTION_TYPE = 0

#: One whole unit of the native currency, in wei
TRANSFER_VALUE = Web3.to_wei(1, "ether")


class DecodeFailure(Exception):
    """We could not decode transaction for a reason or another."""


@dataclass(slots=True, frozen=True)
class UnsignedTransactionDraft:
    """Transaction fields we know before asking the node for defaults.

    Built from the queried chain state.
    """

    chain_id: int

    #: Recipient
    to: ChecksumAddress

    nonce: int

    #: Transaction envelope type, ``0`` for legacy
    type: int

    #: Amount in wei
    value: int

    def __post_init__(self):
        assert type(self.chain_id) == int and self.chain_id > 0, f"Bad chain id: {self.chain_id}"
        assert type(self.nonce) == int and self.nonce >= 0, f"Bad nonce: {self.nonce}"
        assert type(self.value) == int and self.value >= 0, f"Bad value: {self.value}"
        assert Web3.is_checksum_address(self.to), f"Not a checksum address: {self.to}"

    def as_dict(self) -> dict:
        """web3.py style transaction dict."""
        return {
            "chainId": self.chain_id,
            "to": self.to,
            "nonce": self.nonce,
            "type": self.type,
            "value": self.value,
        }


@dataclass(slots=True, frozen=True)
class PopulatedTransaction:
    """A draft with all fields needed for signing."""

    chain_id: int
    from_address: ChecksumAddress
    to: ChecksumAddress
    nonce: int
    type: int
    value: int

    #: Wei per gas unit
    gas_price: int

    #: Max gas units, ``gas`` in web3.py
    gas_limit: int

    def __post_init__(self):
        # Legacy RLP integers have no fixed width,
        # anything non-negative is encodable
        assert type(self.gas_price) == int and self.gas_price >= 0, f"Bad gas price: {self.gas_price}"
        assert type(self.gas_limit) == int and self.gas_limit >= 0, f"Bad gas limit: {self.gas_limit}"

    @classmethod
    def from_draft(cls, draft: UnsignedTransactionDraft, from_address: ChecksumAddress, gas_price: int, gas_limit: int) -> "PopulatedTransaction":
        return cls(
            chain_id=draft.chain_id,
            from_address=from_address,
            to=draft.to,
            nonce=draft.nonce,
            type=draft.type,
            value=draft.value,
            gas_price=gas_price,
            gas_limit=gas_limit,
        )

    def with_gas(self, gas_price: int, gas_limit: int) -> "PopulatedTransaction":
        """Copy with both gas fields replaced."""
        return replace(self, gas_price=gas_price, gas_limit=gas_limit)

    def as_dict(self) -> dict:
        """web3.py style transaction dict."""
        return {
            "chainId": self.chain_id,
            "from": self.from_address,
            "to": self.to,
            "nonce": self.nonce,
            "type": self.type,
            "value": self.value,
            "gasPrice": self.gas_price,
            "gas": self.gas_limit,
        }

    def as_signable_dict(self) -> dict:
        """Transaction dict in the form :py:meth:`eth_account.Account.sign_transaction` accepts.

        eth-account treats any ``type`` key as an EIP-2718 typed envelope,
        so legacy transactions must be passed without one.
        """
        tx = self.as_dict()
        if tx["type"] == LEGACY_TRANSACTION_TYPE:
            del tx["type"]
        return tx


def decode_signed_transaction(raw_bytes: Union[bytes, str, HexBytes]) -> Optional[dict]:
    """Decode already signed transaction.

    Reverse raw transaction bytes back to dictionary form, so you can access
    its ``gasPrice``, ``gas`` and other parameters.

    The function supports:

    - Legacy transactions

    - `EIP-2718 <https://eips.ethereum.org/EIPS/eip-2718>`_ typed transactions

    Example:

    .. code-block:: python

        signed_tx = hot_wallet.sign_transaction(populated)
        d = decode_signed_transaction(signed_tx.raw_transaction)
        assert d["nonce"] == 5
        assert d["gas"] == 2**64

    :param raw_bytes:
        A bunch of bytes in your favorite format.

    :raise DecodeFailure:
        If the tx bytes is something we do not know how to handle.

    :return:
        Dictionary like object containing `data`, `v`, `r`, `s`, `nonce`, `value`, `gas`, `gasPrice`.
        For legacy transactions the chain id is only available through `v`, see :py:func:`get_legacy_chain_id`.
    """

    if not isinstance(raw_bytes, HexBytes):
        raw_bytes = HexBytes(raw_bytes)

    try:
        # First we try EIP-2718 and this will fail we fall back to the legacy tx
        typed_tx = TypedTransaction.from_bytes(raw_bytes)
        return typed_tx.transaction.as_dict()
    except ValueError:
        try:
            return Transaction.from_bytes(raw_bytes).as_dict()
        except Exception as e:
            raise DecodeFailure(f"Could not decode transaction: {raw_bytes.to_0x_hex()}") from e


def get_legacy_chain_id(v: int) -> int | None:
    """Recover EIP-155 chain id from a legacy signature ``v``.

    :return:
        ``None`` for pre EIP-155 signatures
    """
    if v in (27, 28):
        return None
    return (v - 35) // 2
