"""
TradeGPT HTTP client - chat prompts, swap quotes, off-chain tx reports.

Uses aiohttp for direct HTTP. Every public call is non-fatal:
ask() returns None and log_transaction() returns False on any failure.
"""

import json
import asyncio
import logging
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

import aiohttp

from .network import NETWORK, CHAT_URL, LOG_TX_URL, TRADEGPT_REFERER

logger = logging.getLogger("tradebot.chat")

REQUEST_TIMEOUT_SECONDS = 30


class TradeGPTError(Exception):
    """Non-2xx response from the TradeGPT API."""
    pass


@dataclass
class SwapQuote:
    """Minimum output proposed by the chat service, in human units of the target token."""
    amount_out_min: Decimal
    raw: dict = field(default_factory=dict)


def _headers() -> dict:
    return {
        "accept": "application/json, text/plain, */*",
        "content-type": "application/json",
        "Referer": TRADEGPT_REFERER,
    }


def swap_prompt(amount: float, target_symbol: str) -> str:
    return f"Swap {format(Decimal(str(amount)), 'f')} {NETWORK.STABLE_SYMBOL} to {target_symbol}"


def parse_quote(response: Any) -> Optional[SwapQuote]:
    """
    Pull amountOutMin out of a chat response.

    Shape: response.questions[0].answer[0].content is a JSON string.
    Returns None if the path is missing, the content is not JSON,
    or amountOutMin is absent / empty / not a non-negative number.
    """
    try:
        content = response["questions"][0]["answer"][0]["content"]
        data = json.loads(content) if isinstance(content, str) else content
    except (KeyError, IndexError, TypeError, ValueError) as e:
        logger.warning(f"Quote missing from chat response: {type(e).__name__}: {e}")
        return None

    if not isinstance(data, dict):
        logger.warning(f"Quote content is not an object: {str(data)[:120]}")
        return None

    raw = data.get("amountOutMin")
    if raw is None or isinstance(raw, bool) or str(raw).strip() == "":
        logger.warning("Quote has no amountOutMin")
        return None

    try:
        amount = Decimal(str(raw).strip())
    except InvalidOperation:
        logger.warning(f"Quote amountOutMin is not a number: {raw!r}")
        return None

    if not amount.is_finite() or amount < 0:
        logger.warning(f"Quote amountOutMin out of range: {raw!r}")
        return None

    return SwapQuote(amount_out_min=amount, raw=data)


class TradeGPTClient:
    """
    Talks to the hosted TradeGPT API on behalf of one wallet address.

    Usage:
        client = TradeGPTClient(chain.address)
        response = await client.ask("Need alpha")
        quote = parse_quote(await client.ask(swap_prompt(10, "CSYN")))
    """

    def __init__(self, address: str, chain_id: int = NETWORK.CHAIN_ID):
        self._address = address
        self._chain_id = chain_id

    async def _post(self, url: str, payload: dict) -> Any:
        """POST JSON, return decoded JSON body. Raises on transport error or non-2xx."""
        async with aiohttp.ClientSession(headers=_headers()) as session:
            async with session.post(
                url, json=payload, timeout=aiohttp.ClientTimeout(total=REQUEST_TIMEOUT_SECONDS)
            ) as resp:
                if resp.status >= 300:
                    body = await resp.text()
                    raise TradeGPTError(f"HTTP {resp.status}: {body[:200]}")
                return await resp.json(content_type=None)

    async def ask(self, prompt: str) -> Optional[dict]:
        """
        Send one chat question. Returns the decoded response body, or None on failure.
        No retry: a failure means "no guidance available".
        """
        logger.info(f'Sending chat: "{prompt}"')
        payload = {
            "chainId": self._chain_id,
            "user": self._address,
            "questions": [{"question": prompt}],
            "testnetOnly": True,
        }

        try:
            data = await self._post(CHAT_URL, payload)
        except asyncio.TimeoutError:
            logger.error(f"Chat request timed out after {REQUEST_TIMEOUT_SECONDS}s")
            return None
        except Exception as e:
            logger.error(f"Chat request failed: {type(e).__name__}: {e}")
            return None

        if not isinstance(data, dict):
            logger.error(f"Chat response is not a JSON object: {str(data)[:120]}")
            return None

        logger.info("Chat sent.")
        return data

    async def log_transaction(
        self,
        tx_hash: str,
        from_token: str = "",
        to_token: str = "",
        amount: float = 0.0,
    ) -> bool:
        """Best-effort report of a swap hash. Response body is not validated."""
        payload = {
            "walletAddress": self._address,
            "chainId": self._chain_id,
            "txHash": tx_hash,
            "fromToken": from_token,
            "toToken": to_token,
            "amount": amount,
        }

        try:
            await self._post(LOG_TX_URL, payload)
        except asyncio.TimeoutError:
            logger.warning(f"Transaction report timed out after {REQUEST_TIMEOUT_SECONDS}s")
            return False
        except Exception as e:
            logger.warning(f"Transaction report failed: {type(e).__name__}: {e}")
            return False

        logger.info("Transaction reported to TradeGPT.")
        return True
