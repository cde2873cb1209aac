"""
Network constants - 0G Galileo testnet + TradeGPT endpoints

Static tables only. Nothing here talks to the network.
Addresses are stored checksummed so they can be passed straight to web3.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Final, Mapping

from web3 import Web3


# ============================================================
# NETWORK
# ============================================================

@dataclass(frozen=True)
class Network:
    """Frozen dataclass = read-only at runtime."""

    NAME: Final[str] = "0G Galileo Testnet"
    RPC_URL: Final[str] = "https://evmrpc-testnet.0g.ai/"
    EXPLORER: Final[str] = "https://chainscan-galileo.0g.ai"
    CHAIN_ID: Final[int] = 16601
    NATIVE_SYMBOL: Final[str] = "OG"

    STABLE_SYMBOL: Final[str] = "USDT"
    STABLE_ADDRESS: Final[str] = Web3.to_checksum_address("0x217C6f12d186697b16dE9e1ae9F85389B93BdB30")
    ROUTER_ADDRESS: Final[str] = Web3.to_checksum_address("0xDCd7d05640Be92EC91ceb1c9eA18e88aFf3a6900")

    SWAP_DEADLINE_SECONDS: Final[int] = 20 * 60


NETWORK = Network()


# ============================================================
# TRADEGPT HTTP API
# ============================================================

TRADEGPT_BASE_URL: Final[str] = "https://trade-gpt-800267618745.herokuapp.com"
CHAT_URL: Final[str] = f"{TRADEGPT_BASE_URL}/ask/ask"
LOG_TX_URL: Final[str] = f"{TRADEGPT_BASE_URL}/log/logTransaction"
TRADEGPT_REFERER: Final[str] = "https://0g.app.tradegpt.finance/"


# ============================================================
# TOKEN REGISTRY: swap targets (USDT is always the input side)
# ============================================================

_TOKENS = {
    "CSYN": "0xd12F4750a60c4B22680264E018Bb1664Ca23aF40",
    "MTP": "0x5506EBd25960Fb30704c2Dc548c3dA7351277eBa",
    "ZFI": "0x9fbc11391167f113641492be2b10dfe729ea5063",
    "FLOV": "0x8f65e752bd9bde431808c9d07fa0cb835acf83cc",
    "GSWP": "0x42ce92e9c25d22827b97e3b8cba75bb6f769e8fd",
    "NPAY": "0x25F9F6D80BA137481C2E2C50d4Fe0F7586e06cF0",
    "BYTX": "0xE226Ceb3BfE97d416fE099BCA68251238D28C1E5",
    "THPY": "0xc4d03e091e21a069b8bf9fca254620bcb8ca806a",
    "MPTC": "0xC3461CF239bbf520D0853fFB60fa05cdD819C814",
    "MCHN": "0x56486f582f55448e58c0321a01a61111cfd99d63",
    "GRMS": "0xca223a007868f3efd7d61c6f6f87a2cc3336c123",
    "DRNT": "0x5f9909a75f871320b9a93574bd6589c82291e391",
    "ECHO": "0xefb05f9d387d5c24967439c3b949b14d1e474983",
}

TOKENS: Mapping[str, str] = MappingProxyType(
    {symbol: Web3.to_checksum_address(addr) for symbol, addr in _TOKENS.items()}
)


# ============================================================
# CHAT PROMPTS: free-form questions sent between swaps
# ============================================================

CHAT_PROMPTS: Final[tuple[str, ...]] = (
    "What's the value of my portfolio?",
    "What can I do on TradeGPT?",
    "What is the price of CSYN?",
    "Need alpha",
)
