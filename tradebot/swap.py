"""
Swap Executor - USDT → target token through the router

One attempt = fresh balance → quote from chat → approve → pause → swap → report.
Any failure ends the attempt and is returned as SwapResult(success=False);
nothing escapes to the caller. A successful approve followed by a failed
swap leaves the allowance in place (no rollback).
"""

import time
import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Optional

from .chain import MAX_UINT256, ChainClient, to_base_units
from .chat import TradeGPTClient, parse_quote, swap_prompt
from .config import BotConfig
from .network import NETWORK

logger = logging.getLogger("tradebot.swap")


class SwapFailure(Enum):
    UNKNOWN_TOKEN = "unknown_token"
    BALANCE_UNAVAILABLE = "balance_unavailable"
    INSUFFICIENT_FUNDS = "insufficient_funds"
    NO_QUOTE = "no_quote"
    INVALID_QUOTE = "invalid_quote"
    APPROVE_FAILED = "approve_failed"
    SWAP_FAILED = "swap_failed"
    ERROR = "error"


@dataclass
class SwapResult:
    """Outcome of one swap attempt. reported only matters when success is True."""
    success: bool
    amount: float = 0.0
    target_symbol: str = ""
    failure: Optional[SwapFailure] = None
    error: str = ""
    approve_tx_hash: str = ""
    swap_tx_hash: str = ""
    reported: bool = False


class SwapExecutor:
    """
    Usage:
        executor = SwapExecutor(config, chain, chat)
        result = await executor.perform_swap(10.0, "CSYN")
    """

    def __init__(
        self,
        config: BotConfig,
        chain: ChainClient,
        chat: TradeGPTClient,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self._config = config
        self._chain = chain
        self._chat = chat
        self._sleep = sleep

    def _fail(self, amount: float, symbol: str, failure: SwapFailure, error: str, **kw) -> SwapResult:
        logger.error(f"Swap failed [{failure.value}]: {error}")
        return SwapResult(
            success=False, amount=amount, target_symbol=symbol,
            failure=failure, error=error, **kw,
        )

    async def perform_swap(self, amount: float, target_symbol: str) -> SwapResult:
        logger.info(f"Preparing swap {amount} {NETWORK.STABLE_SYMBOL} -> {target_symbol}")
        try:
            return await self._perform_swap(amount, target_symbol)
        except Exception as e:
            return self._fail(amount, target_symbol, SwapFailure.ERROR, f"{type(e).__name__}: {e}")

    async def _perform_swap(self, amount: float, symbol: str) -> SwapResult:
        target_address = self._config.tokens.get(symbol)
        if not target_address:
            return self._fail(amount, symbol, SwapFailure.UNKNOWN_TOKEN, f"{symbol} is not a registered token")

        # 1. Fresh balance, never reused from an earlier check
        snapshot = await self._chain.get_balances()
        if snapshot is None:
            return self._fail(amount, symbol, SwapFailure.BALANCE_UNAVAILABLE, "could not read wallet balance")

        # 2. Local funds check
        amount_in = to_base_units(amount, snapshot.stable_decimals)
        if snapshot.stable_balance < amount_in:
            return self._fail(
                amount, symbol, SwapFailure.INSUFFICIENT_FUNDS,
                f"{NETWORK.STABLE_SYMBOL} balance {snapshot.stable} < {amount}",
            )

        # 3. Quote from chat
        response = await self._chat.ask(swap_prompt(amount, symbol))
        if response is None:
            return self._fail(amount, symbol, SwapFailure.NO_QUOTE, "no response from chat for swap")

        quote = parse_quote(response)
        if quote is None:
            return self._fail(amount, symbol, SwapFailure.INVALID_QUOTE, "chat swap data invalid (no amountOutMin)")

        # 4. Scale amountOutMin to target decimals
        target_decimals = await self._chain.token_decimals(target_address)
        amount_out_min = to_base_units(quote.amount_out_min, target_decimals)
        if amount_out_min > MAX_UINT256:
            return self._fail(
                amount, symbol, SwapFailure.INVALID_QUOTE,
                f"amountOutMin {quote.amount_out_min} does not fit in uint256",
            )

        # 5. Approve must confirm before the router call, or the swap reverts
        logger.info(f"Approving {amount} {NETWORK.STABLE_SYMBOL} for router...")
        approve = await self._chain.approve(NETWORK.ROUTER_ADDRESS, amount_in)
        if not approve.success:
            return self._fail(
                amount, symbol, SwapFailure.APPROVE_FAILED, approve.error,
                approve_tx_hash=approve.tx_hash,
            )
        logger.info(f"Approve confirmed. Tx: {approve.tx_hash[:10]}...")

        # 6. Let the approval settle
        await self._sleep(self._config.delay_short_ms / 1000)

        # 7. Swap
        logger.info("Submitting swap...")
        deadline = int(time.time()) + NETWORK.SWAP_DEADLINE_SECONDS
        swap = await self._chain.swap_exact_tokens_for_tokens(
            amount_in,
            amount_out_min,
            [NETWORK.STABLE_ADDRESS, target_address],
            deadline,
        )
        if not swap.success:
            return self._fail(
                amount, symbol, SwapFailure.SWAP_FAILED, swap.error,
                approve_tx_hash=approve.tx_hash, swap_tx_hash=swap.tx_hash,
            )
        logger.info(f"Swap succeeded! Tx: {self._chain.get_explorer_url(swap.tx_hash)}")

        # 8. Off-chain report; failure here does not undo the swap
        reported = await self._chat.log_transaction(
            swap.tx_hash,
            from_token=NETWORK.STABLE_SYMBOL,
            to_token=symbol,
            amount=amount,
        )
        if not reported:
            logger.warning(f"Swap {swap.tx_hash[:10]}... succeeded but was not reported")

        return SwapResult(
            success=True,
            amount=amount,
            target_symbol=symbol,
            approve_tx_hash=approve.tx_hash,
            swap_tx_hash=swap.tx_hash,
            reported=reported,
        )
