"""
Cycle Driver - N rounds of {random chat, random swap}

idle → (running_cycle → cooling_down) × N → done

Runs exactly N cycles. No early exit on repeated failures; every cycle
is followed by the medium pause whatever its outcome.
"""

import random
import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Optional

from .chain import ChainClient
from .chat import TradeGPTClient
from .config import BotConfig
from .network import CHAT_PROMPTS
from .swap import SwapExecutor

logger = logging.getLogger("tradebot.cycle")


class CycleState(Enum):
    IDLE = "idle"
    RUNNING_CYCLE = "running_cycle"
    COOLING_DOWN = "cooling_down"
    DONE = "done"


@dataclass
class SwapIntent:
    amount: float
    target_symbol: str


@dataclass
class CycleReport:
    cycles_run: int = 0
    swaps_succeeded: int = 0
    swaps_failed: int = 0


def random_intent(config: BotConfig, rng: random.Random) -> SwapIntent:
    """Amount uniform in [min, max] (6 dp, clamped), target uniform over the registry."""
    lo, hi = config.min_swap_amount, config.max_swap_amount
    amount = round(rng.uniform(lo, hi), 6)
    amount = min(max(amount, lo), hi)
    symbol = rng.choice(sorted(config.tokens))
    return SwapIntent(amount=amount, target_symbol=symbol)


class CycleDriver:
    """
    Usage:
        driver = CycleDriver(config, chain, chat, SwapExecutor(config, chain, chat))
        report = await driver.run()
    """

    def __init__(
        self,
        config: BotConfig,
        chain: ChainClient,
        chat: TradeGPTClient,
        executor: SwapExecutor,
        rng: Optional[random.Random] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self._config = config
        self._chain = chain
        self._chat = chat
        self._executor = executor
        self._rng = rng or random.Random()
        self._sleep = sleep
        self.state = CycleState.IDLE

    async def _delay(self, ms: int) -> None:
        await self._sleep(ms / 1000)

    async def run(self) -> CycleReport:
        total = self._config.number_of_actions
        report = CycleReport()

        logger.info("====== Starting TradeGPT auto-tx bot (single account) ======")
        await self._chain.get_balances()

        logger.info(f"Running {total} cycles (chat + swap)...")
        for i in range(1, total + 1):
            self.state = CycleState.RUNNING_CYCLE
            logger.info(f"--- Cycle {i}/{total} ---")
            try:
                await self._chat.ask(self._rng.choice(CHAT_PROMPTS))
                await self._delay(self._config.delay_short_ms)

                intent = random_intent(self._config, self._rng)
                result = await self._executor.perform_swap(intent.amount, intent.target_symbol)
                if result.success:
                    report.swaps_succeeded += 1
                else:
                    report.swaps_failed += 1
            except Exception as e:
                report.swaps_failed += 1
                logger.error(f"Cycle {i} error: {type(e).__name__}: {e}")

            report.cycles_run += 1
            self.state = CycleState.COOLING_DOWN
            logger.info(f"Cycle {i} done. Pausing...")
            await self._delay(self._config.delay_medium_ms)

        logger.info("====== All cycles done. Checking final status. ======")
        await self._chain.get_balances()
        await self._delay(self._config.delay_long_ms)

        self.state = CycleState.DONE
        logger.info(
            f"====== Bot finished: {report.cycles_run} cycles | "
            f"{report.swaps_succeeded} swaps ok | {report.swaps_failed} failed ======"
        )
        return report
