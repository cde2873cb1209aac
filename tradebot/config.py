"""
Bot configuration - built once from the process environment.

The entry point calls load_dotenv() first, so values may come from a .env file.
Only PRIVATE_KEY is required; everything else has a default.
"""

import math
import os
from dataclasses import dataclass, field
from typing import Mapping, Optional

from eth_account import Account

from .network import NETWORK, TOKENS


class ConfigError(Exception):
    """Raised when the environment cannot produce a usable BotConfig. Fatal."""
    pass


DEFAULT_NUMBER_OF_ACTIONS = 3
DEFAULT_MIN_SWAP_AMOUNT = 0.1
DEFAULT_MAX_SWAP_AMOUNT = 1.0
DEFAULT_DELAY_SHORT_MS = 5_000
DEFAULT_DELAY_MEDIUM_MS = 15_000
DEFAULT_DELAY_LONG_MS = 30_000


@dataclass
class BotConfig:
    private_key: str
    number_of_actions: int = DEFAULT_NUMBER_OF_ACTIONS
    min_swap_amount: float = DEFAULT_MIN_SWAP_AMOUNT
    max_swap_amount: float = DEFAULT_MAX_SWAP_AMOUNT
    delay_short_ms: int = DEFAULT_DELAY_SHORT_MS
    delay_medium_ms: int = DEFAULT_DELAY_MEDIUM_MS
    delay_long_ms: int = DEFAULT_DELAY_LONG_MS
    rpc_url: str = NETWORK.RPC_URL
    tokens: Mapping[str, str] = field(default_factory=lambda: dict(TOKENS))

    def __post_init__(self):
        self.private_key = _normalize_private_key(self.private_key)

        if self.number_of_actions < 0:
            raise ConfigError(f"NUMBER_OF_ACTIONS must be >= 0, got {self.number_of_actions}")
        for name in ("min_swap_amount", "max_swap_amount"):
            if not math.isfinite(getattr(self, name)):
                raise ConfigError(f"{name.upper()} must be a finite number, got {getattr(self, name)}")
        if self.min_swap_amount <= 0:
            raise ConfigError(f"MIN_SWAP_AMOUNT must be > 0, got {self.min_swap_amount}")
        if self.max_swap_amount < self.min_swap_amount:
            raise ConfigError(
                f"MAX_SWAP_AMOUNT ({self.max_swap_amount}) is below "
                f"MIN_SWAP_AMOUNT ({self.min_swap_amount})"
            )
        for name in ("delay_short_ms", "delay_medium_ms", "delay_long_ms"):
            if getattr(self, name) < 0:
                raise ConfigError(f"{name.upper()} must be >= 0, got {getattr(self, name)}")
        if not self.tokens:
            raise ConfigError("token registry is empty")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "BotConfig":
        """
        Build a config from environment variables.

        Raises:
            ConfigError: PRIVATE_KEY missing, or any value malformed / out of range
        """
        env = os.environ if environ is None else environ

        private_key = env.get("PRIVATE_KEY", "").strip()
        if not private_key:
            raise ConfigError("PRIVATE_KEY not found in environment or .env, set it first")

        return cls(
            private_key=private_key,
            number_of_actions=_env_int(env, "NUMBER_OF_ACTIONS", DEFAULT_NUMBER_OF_ACTIONS),
            min_swap_amount=_env_float(env, "MIN_SWAP_AMOUNT", DEFAULT_MIN_SWAP_AMOUNT),
            max_swap_amount=_env_float(env, "MAX_SWAP_AMOUNT", DEFAULT_MAX_SWAP_AMOUNT),
            delay_short_ms=_env_int(env, "DELAY_SHORT_MS", DEFAULT_DELAY_SHORT_MS),
            delay_medium_ms=_env_int(env, "DELAY_MEDIUM_MS", DEFAULT_DELAY_MEDIUM_MS),
            delay_long_ms=_env_int(env, "DELAY_LONG_MS", DEFAULT_DELAY_LONG_MS),
            rpc_url=env.get("RPC_URL", "").strip() or NETWORK.RPC_URL,
        )


# ============================================================
# HELPERS
# ============================================================

def _normalize_private_key(key: str) -> str:
    key = key.strip()
    if not key.startswith("0x"):
        key = "0x" + key
    try:
        Account.from_key(key)
    except Exception as e:
        # Never echo the key itself
        raise ConfigError(f"Invalid PRIVATE_KEY: {type(e).__name__}") from None
    return key


def _env_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from None


def _env_float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from None
