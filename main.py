"""
tradegpt-bot - main entry point

Loads config, wires the chain client, chat client, swap executor and
cycle driver, then runs the cycles once and exits.

Usage:
    python main.py              # reads .env from the working directory
"""

import os
import re
import sys
import asyncio
import logging

from dotenv import load_dotenv

from tradebot.chain import ChainClient
from tradebot.chat import TradeGPTClient
from tradebot.config import BotConfig, ConfigError
from tradebot.cycle import CycleDriver, CycleReport
from tradebot.network import NETWORK
from tradebot.swap import SwapExecutor

logger = logging.getLogger("tradebot.main")


# ============================================================
# LOGGING
# ============================================================

class _SecretMaskingFilter(logging.Filter):
    """Redact the configured private key (with or without 0x) from all log output."""

    def __init__(self, secret: str):
        super().__init__()
        bare = secret[2:] if secret.startswith("0x") else secret
        self._pattern = re.compile(re.escape(bare), re.IGNORECASE)

    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        if isinstance(record.msg, str):
            record.msg = self._pattern.sub('[REDACTED]', record.msg)
        if record.args:
            try:
                formatted = record.getMessage()
            except (TypeError, ValueError):
                # Malformed args: let the handler report it
                return True
            if self._pattern.search(formatted):
                record.msg = self._pattern.sub('[REDACTED]', formatted)
                record.args = None
        return True


def _setup_logging() -> None:
    level = os.getenv("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def _mask_secret(secret: str) -> None:
    mask_filter = _SecretMaskingFilter(secret)
    for handler in logging.root.handlers:
        handler.addFilter(mask_filter)


# ============================================================
# RUN
# ============================================================

async def run_bot(config: BotConfig) -> CycleReport:
    chain = ChainClient(config)
    chat = TradeGPTClient(chain.address, NETWORK.CHAIN_ID)
    executor = SwapExecutor(config, chain, chat)
    driver = CycleDriver(config, chain, chat, executor)

    report = await driver.run()
    logger.info(f"Chain status: {chain.get_status()}")
    return report


def main() -> int:
    load_dotenv()
    _setup_logging()

    try:
        config = BotConfig.from_env()
    except ConfigError as e:
        logger.error(str(e))
        return 1
    _mask_secret(config.private_key)

    logger.info(
        f"Network: {NETWORK.NAME} ({NETWORK.CHAIN_ID}) | rpc={config.rpc_url} | "
        f"actions={config.number_of_actions} | "
        f"swap={config.min_swap_amount}-{config.max_swap_amount} {NETWORK.STABLE_SYMBOL}"
    )

    try:
        asyncio.run(run_bot(config))
    except KeyboardInterrupt:
        logger.warning("Interrupted.")
        return 130
    except Exception as e:
        logger.exception(f"Bot run failed: {type(e).__name__}: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
