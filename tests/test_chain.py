"""
Tests for ChainClient

Web3 is replaced by a MagicMock; signing uses the real eth_account key.
"""

import logging
from decimal import Decimal
from unittest.mock import MagicMock

import pytest
from eth_account import Account

from tradebot.chain import (
    ChainClient,
    DEFAULT_GAS_LIMIT,
    RECEIPT_TIMEOUT_SECONDS,
    from_base_units,
    to_base_units,
)
from tradebot.network import NETWORK

from conftest import TEST_PRIVATE_KEY


@pytest.fixture
def w3():
    mock = MagicMock()
    contract = mock.eth.contract.return_value
    contract.functions.balanceOf.return_value.call.return_value = 25 * 10**6
    contract.functions.decimals.return_value.call.return_value = 6
    mock.eth.get_balance.return_value = 2 * 10**18
    mock.eth.get_transaction_count.return_value = 7
    mock.eth.gas_price = 10**9
    mock.eth.estimate_gas.return_value = 50_000
    mock.eth.send_raw_transaction.return_value = b"\xab" * 32
    mock.eth.wait_for_transaction_receipt.return_value = {
        "status": 1, "blockNumber": 1234, "gasUsed": 45_000, "effectiveGasPrice": 10**9,
    }
    return mock


@pytest.fixture
def client(config, w3):
    return ChainClient(config, w3=w3)


def _tx_fn():
    """Contract call stub whose build_transaction returns a signable dict."""
    fn = MagicMock()
    fn.build_transaction.side_effect = lambda params: {
        **params, "to": NETWORK.ROUTER_ADDRESS, "data": "0x", "value": 0,
    }
    return fn


class TestUnits:

    def test_to_base_units_exact(self):
        assert to_base_units(10, 18) == 10 * 10**18
        assert to_base_units("0.1", 6) == 100_000
        assert to_base_units(0.123456, 6) == 123_456

    def test_to_base_units_truncates_extra_precision(self):
        assert to_base_units("1.0000009", 6) == 1_000_000

    def test_from_base_units(self):
        assert from_base_units(1_500_000, 6) == Decimal("1.5")


class TestBalances:

    @pytest.mark.asyncio
    async def test_snapshot(self, client):
        snap = await client.get_balances()
        assert snap.native_balance == 2 * 10**18
        assert snap.stable_balance == 25 * 10**6
        assert snap.stable_decimals == 6
        assert snap.stable == Decimal(25)
        assert snap.native == Decimal(2)

    @pytest.mark.asyncio
    async def test_rpc_failure_returns_none(self, client, w3):
        w3.eth.get_balance.side_effect = ConnectionError("rpc down")
        assert await client.get_balances() is None
        assert "rpc down" in client.get_status()["last_error"]

    @pytest.mark.asyncio
    async def test_fresh_read_every_call(self, client, w3):
        await client.get_balances()
        await client.get_balances()
        assert w3.eth.get_balance.call_count == 2

    @pytest.mark.asyncio
    async def test_token_decimals(self, client):
        assert await client.token_decimals(NETWORK.STABLE_ADDRESS) == 6


class TestSendTx:

    def test_address_from_key(self, client):
        assert client.address == Account.from_key(TEST_PRIVATE_KEY).address

    @pytest.mark.asyncio
    async def test_success(self, client, w3):
        result = await client._send_tx("approve", _tx_fn())
        assert result.success
        assert result.tx_hash == "0x" + "ab" * 32
        assert result.gas_used == 45_000
        assert result.fee_wei == 45_000 * 10**9
        assert result.fee == Decimal("0.000045")
        assert result.nonce == 7
        assert result.block_number == 1234
        w3.eth.get_transaction_count.assert_called_once_with(client.address, "pending")
        w3.eth.send_raw_transaction.assert_called_once()
        assert client.get_status()["tx_count"] == 1

    @pytest.mark.asyncio
    async def test_gas_estimate_buffer(self, client):
        fn = _tx_fn()
        await client._send_tx("swap", fn)
        params = fn.build_transaction.call_args.args[0]
        assert params["chainId"] == NETWORK.CHAIN_ID
        assert params["nonce"] == 7
        assert params["from"] == client.address

    @pytest.mark.asyncio
    async def test_gas_estimate_fallback(self, client, w3, caplog):
        w3.eth.estimate_gas.side_effect = ValueError("execution reverted")
        with caplog.at_level(logging.WARNING, logger="tradebot.chain"):
            result = await client._send_tx("swap", _tx_fn())
        assert result.success
        assert str(DEFAULT_GAS_LIMIT) in caplog.text

    @pytest.mark.asyncio
    async def test_revert(self, client, w3):
        w3.eth.wait_for_transaction_receipt.return_value = {"status": 0, "blockNumber": 99, "gasUsed": 30_000}
        result = await client._send_tx("swap", _tx_fn())
        assert not result.success
        assert result.tx_hash == "0x" + "ab" * 32
        assert result.error == "swap reverted in block 99"
        assert result.block_number == 99

    @pytest.mark.asyncio
    async def test_send_error_never_raises(self, client, w3):
        w3.eth.send_raw_transaction.side_effect = ValueError("nonce too low")
        result = await client._send_tx("approve", _tx_fn())
        assert not result.success
        assert "nonce too low" in result.error
        assert result.tx_hash == ""

    @pytest.mark.asyncio
    async def test_receipt_timeout_keeps_hash(self, client, w3):
        w3.eth.wait_for_transaction_receipt.side_effect = TimeoutError("not mined")
        result = await client._send_tx("approve", _tx_fn())
        assert not result.success
        assert result.tx_hash == "0x" + "ab" * 32
        assert result.error.startswith("approve not confirmed")
        assert client.get_status()["tx_count"] == 0

    @pytest.mark.asyncio
    async def test_receipt_wait_uses_timeout(self, client, w3):
        await client._send_tx("swap", _tx_fn())
        _, kwargs = w3.eth.wait_for_transaction_receipt.call_args
        assert kwargs["timeout"] == RECEIPT_TIMEOUT_SECONDS


class TestContractCalls:

    @pytest.mark.asyncio
    async def test_approve_targets_stable(self, client, w3):
        await client.approve(NETWORK.ROUTER_ADDRESS, 123)
        contract = w3.eth.contract.return_value
        contract.functions.approve.assert_called_once_with(NETWORK.ROUTER_ADDRESS, 123)

    @pytest.mark.asyncio
    async def test_swap_sends_to_own_address(self, client, w3):
        path = (NETWORK.STABLE_ADDRESS, "0xd12F4750a60c4B22680264E018Bb1664Ca23aF40")
        await client.swap_exact_tokens_for_tokens(10, 5, path, 1_700_000_000)
        contract = w3.eth.contract.return_value
        contract.functions.swapExactTokensForTokens.assert_called_once_with(
            10, 5, list(path), client.address, 1_700_000_000,
        )

    def test_explorer_url(self, client):
        assert client.get_explorer_url("0xabc") == f"{NETWORK.EXPLORER}/tx/0xabc"
