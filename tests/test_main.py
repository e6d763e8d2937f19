"""Process entry point and exit status.

:py:func:`axon_transfer.main.main` runs its own event loop,
so it is called from a worker thread while the fake nodes
keep serving on the test loop.
"""

import asyncio

import pytest

from axon_transfer.main import main
from tests.fake_node import TEST_TX_HASH, FakeJsonRpcNode


@pytest.mark.asyncio
async def test_main_success(transfer_environ: dict, read_node: FakeJsonRpcNode, injector_node: FakeJsonRpcNode, capsys):
    exit_code = await asyncio.to_thread(main, transfer_environ)
    assert exit_code == 0
    assert len(injector_node.calls) == 1
    assert f"P2P Broadcast: {TEST_TX_HASH}" in capsys.readouterr().out


@pytest.mark.asyncio
@pytest.mark.parametrize("name", ["JSONRPC_URL", "INJECTOR_JSONRPC_URL", "PRIVATE_KEY"])
async def test_main_missing_env(transfer_environ: dict, read_node: FakeJsonRpcNode, injector_node: FakeJsonRpcNode, name: str):
    """Missing configuration fails without any network traffic."""
    del transfer_environ[name]

    exit_code = await asyncio.to_thread(main, transfer_environ)

    assert exit_code == 1
    assert read_node.calls == []
    assert injector_node.calls == []


@pytest.mark.asyncio
async def test_main_bad_private_key(transfer_environ: dict, read_node: FakeJsonRpcNode, injector_node: FakeJsonRpcNode):
    """Malformed key fails before any network traffic."""
    transfer_environ["PRIVATE_KEY"] = "0x1234"

    exit_code = await asyncio.to_thread(main, transfer_environ)

    assert exit_code == 1
    assert read_node.calls == []
    assert injector_node.calls == []


@pytest.mark.asyncio
async def test_main_read_failure(transfer_environ: dict, read_node: FakeJsonRpcNode, injector_node: FakeJsonRpcNode, caplog):
    """Read node failure exits non-zero and is logged."""
    read_node.http_status = 500

    exit_code = await asyncio.to_thread(main, transfer_environ)

    assert exit_code == 1
    assert injector_node.calls == []
    assert "Transfer failed" in caplog.text


@pytest.mark.asyncio
async def test_main_broadcast_refused(transfer_environ: dict, injector_node: FakeJsonRpcNode):
    """Injector refusal exits non-zero after exactly one broadcast."""
    injector_node.errors["eth_sendRawTransaction"] = (-32000, "gas limit too high")

    exit_code = await asyncio.to_thread(main, transfer_environ)

    assert exit_code == 1
    assert len(injector_node.calls) == 1


@pytest.mark.asyncio
async def test_main_bad_log_level(transfer_environ: dict, read_node: FakeJsonRpcNode, injector_node: FakeJsonRpcNode):
    """Unknown log level is a configuration failure, not a crash."""
    transfer_environ["LOG_LEVEL"] = "loud"

    exit_code = await asyncio.to_thread(main, transfer_environ)

    assert exit_code == 1
    assert read_node.calls == []
    assert injector_node.calls == []


@pytest.mark.asyncio
async def test_main_broadcast_without_hash(transfer_environ: dict, injector_node: FakeJsonRpcNode):
    """Injector answering null is not a successful broadcast."""
    injector_node.results["eth_sendRawTransaction"] = None

    exit_code = await asyncio.to_thread(main, transfer_environ)

    assert exit_code == 1
    assert len(injector_node.calls) == 1
