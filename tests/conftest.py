"""Shared fixtures: fake read node, fake injector and a matching configuration."""

import pytest
import pytest_asyncio
from eth_account import Account
from eth_account.signers.local import LocalAccount

from axon_transfer.config import TransferConfig
from tests.fake_node import TEST_PRIVATE_KEY, TEST_TX_HASH, FakeJsonRpcNode


@pytest.fixture()
def test_account() -> LocalAccount:
    """Sender account."""
    return Account.from_key(TEST_PRIVATE_KEY)


@pytest_asyncio.fixture()
async def read_node() -> FakeJsonRpcNode:
    """A node reporting nonce 5 on chain 1337."""
    node = FakeJsonRpcNode(
        {
            "eth_getTransactionCount": "0x5",
            "eth_chainId": hex(1337),
            "eth_gasPrice": hex(7 * 10**9),
            "eth_estimateGas": hex(21_000),
        }
    )
    async with node.serve():
        yield node


@pytest_asyncio.fixture()
async def injector_node() -> FakeJsonRpcNode:
    """An injector accepting any raw transaction."""
    node = FakeJsonRpcNode({"eth_sendRawTransaction": TEST_TX_HASH})
    async with node.serve():
        yield node


@pytest.fixture()
def transfer_config(read_node: FakeJsonRpcNode, injector_node: FakeJsonRpcNode) -> TransferConfig:
    """Configuration pointing to the fake nodes."""
    return TransferConfig(
        json_rpc_url=read_node.url,
        injector_json_rpc_url=injector_node.url,
        private_key=TEST_PRIVATE_KEY,
        http_timeout=5.0,
    )


@pytest.fixture()
def transfer_environ(read_node: FakeJsonRpcNode, injector_node: FakeJsonRpcNode) -> dict:
    """Environment variables pointing to the fake nodes."""
    return {
        "JSONRPC_URL": read_node.url,
        "INJECTOR_JSONRPC_URL": injector_node.url,
        "PRIVATE_KEY": TEST_PRIVATE_KEY,
        "JSONRPC_TIMEOUT": "5",
    }
