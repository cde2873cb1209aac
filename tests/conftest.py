"""Shared fixtures: a throwaway key, a fast config, mocked chain + chat clients."""

from unittest.mock import MagicMock

import pytest

from tradebot.chain import BalanceSnapshot, ChainClient, ChainTxResult
from tradebot.chat import TradeGPTClient
from tradebot.config import BotConfig
from tradebot.network import TOKENS

# Well-known throwaway key from the web3 docs. Never funded.
TEST_PRIVATE_KEY = "0x4c0883a69102937d6231471b5dbb6204fe5129617082792ae468d01a3f362318"

APPROVE_HASH = "0x" + "aa" * 32
SWAP_HASH = "0x" + "bb" * 32


def quote_response(amount_out_min="5") -> dict:
    """Chat response shaped like the TradeGPT /ask endpoint."""
    content = '{"amountOutMin": "%s", "path": ["USDT", "CSYN"]}' % amount_out_min
    return {"questions": [{"question": "Swap", "answer": [{"type": "swap", "content": content}]}]}


@pytest.fixture
def config():
    return BotConfig(
        private_key=TEST_PRIVATE_KEY,
        number_of_actions=1,
        min_swap_amount=10,
        max_swap_amount=10,
        delay_short_ms=1000,
        delay_medium_ms=2000,
        delay_long_ms=3000,
        tokens={"CSYN": TOKENS["CSYN"]},
    )


@pytest.fixture
def chain():
    mock = MagicMock(spec=ChainClient)
    mock.get_balances.return_value = BalanceSnapshot(
        native_balance=10**18, stable_balance=100 * 10**18, stable_decimals=18,
    )
    mock.token_decimals.return_value = 18
    mock.approve.return_value = ChainTxResult(success=True, tx_hash=APPROVE_HASH, action="approve")
    mock.swap_exact_tokens_for_tokens.return_value = ChainTxResult(
        success=True, tx_hash=SWAP_HASH, action="swap",
    )
    mock.get_explorer_url.side_effect = lambda h: f"https://chainscan-galileo.0g.ai/tx/{h}"
    return mock


@pytest.fixture
def chat():
    mock = MagicMock(spec=TradeGPTClient)
    mock.ask.return_value = quote_response("5")
    mock.log_transaction.return_value = True
    return mock
