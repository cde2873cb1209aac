"""
Chain Client - wallet reads + transaction layer

One account, one provider, for the lifetime of the process.

Design:
- Sync Web3 calls wrapped in asyncio.run_in_executor() (web3.py async is fragile)
- Embedded minimal ABI: only the functions we call, no compiled JSON needed
- Gas estimation + 20% buffer, nonce from chain for every tx
- Reads never raise: failure → log → None
- Writes never raise: failure → log → ChainTxResult(success=False)
"""

import asyncio
import functools
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Sequence, Union

from eth_account import Account
from web3 import Web3

from .config import BotConfig
from .network import NETWORK

logger = logging.getLogger("tradebot.chain")


# ============================================================
# MINIMAL ABI: only functions we call at runtime
# ============================================================

# ERC20: balanceOf, decimals, approve
ERC20_ABI = [
    {
        "constant": True,
        "inputs": [{"name": "account", "type": "address"}],
        "name": "balanceOf",
        "outputs": [{"name": "", "type": "uint256"}],
        "type": "function",
    },
    {
        "constant": True,
        "inputs": [],
        "name": "decimals",
        "outputs": [{"name": "", "type": "uint8"}],
        "type": "function",
    },
    {
        "inputs": [
            {"name": "spender", "type": "address"},
            {"name": "amount", "type": "uint256"},
        ],
        "name": "approve",
        "outputs": [{"name": "", "type": "bool"}],
        "stateMutability": "nonpayable",
        "type": "function",
    },
]

# Uniswap V2 style router: single entry point
ROUTER_ABI = [
    {
        "inputs": [
            {"name": "amountIn", "type": "uint256"},
            {"name": "amountOutMin", "type": "uint256"},
            {"name": "path", "type": "address[]"},
            {"name": "to", "type": "address"},
            {"name": "deadline", "type": "uint256"},
        ],
        "name": "swapExactTokensForTokens",
        "outputs": [{"name": "amounts", "type": "uint256[]"}],
        "stateMutability": "nonpayable",
        "type": "function",
    },
]

DEFAULT_GAS_LIMIT = 200_000
GAS_BUFFER = 1.2
RECEIPT_TIMEOUT_SECONDS = 120
MAX_UINT256 = 2**256 - 1


# ============================================================
# UNIT CONVERSION
# ============================================================

def to_base_units(amount: Union[str, int, float, Decimal], decimals: int) -> int:
    """Human amount → integer base units. Exact: goes through str, never float math."""
    return int(Decimal(str(amount)).scaleb(decimals))


def from_base_units(raw: int, decimals: int) -> Decimal:
    return Decimal(raw).scaleb(-decimals)


# ============================================================
# RESULT TYPES
# ============================================================

@dataclass
class BalanceSnapshot:
    """Balances read in one inspection. Never cached; re-read for every decision."""
    native_balance: int      # wei
    stable_balance: int      # USDT base units
    stable_decimals: int

    @property
    def native(self) -> Decimal:
        return from_base_units(self.native_balance, 18)

    @property
    def stable(self) -> Decimal:
        return from_base_units(self.stable_balance, self.stable_decimals)


@dataclass
class ChainTxResult:
    """
    One approve or swap submission.

    tx_hash is empty when nothing was broadcast. A tx_hash with success=False
    means the transaction went out but reverted or never confirmed.
    """
    success: bool
    action: str = ""
    tx_hash: str = ""
    error: str = ""
    nonce: Optional[int] = None
    block_number: Optional[int] = None
    gas_used: int = 0
    fee_wei: int = 0    # gasUsed * effectiveGasPrice

    @property
    def fee(self) -> Decimal:
        return from_base_units(self.fee_wei, 18)


# ============================================================
# CHAIN CLIENT
# ============================================================

class ChainClient:
    """
    Wallet inspector + transaction sender for the configured account.

    Usage:
        chain = ChainClient(config)
        snapshot = await chain.get_balances()
        result = await chain.approve(NETWORK.ROUTER_ADDRESS, amount_raw)
    """

    def __init__(self, config: BotConfig, w3: Optional[Web3] = None):
        self._config = config
        self._w3 = w3 if w3 is not None else Web3(Web3.HTTPProvider(config.rpc_url, request_kwargs={"timeout": 30}))
        self._account = Account.from_key(config.private_key)

        self._stable = self._w3.eth.contract(address=NETWORK.STABLE_ADDRESS, abi=ERC20_ABI)
        self._router = self._w3.eth.contract(address=NETWORK.ROUTER_ADDRESS, abi=ROUTER_ABI)

        self._tx_count: int = 0
        self._last_error: str = ""

    @property
    def address(self) -> str:
        return self._account.address

    async def _call(self, fn, *args, **kwargs):
        """Run one blocking web3 call in the default executor."""
        return await asyncio.get_running_loop().run_in_executor(
            None, functools.partial(fn, *args, **kwargs)
        )

    # ============================================================
    # READS
    # ============================================================

    async def get_balances(self) -> Optional[BalanceSnapshot]:
        """
        Fresh native + USDT balance for the account.
        Returns None on any RPC failure (logged, never raised).
        """
        logger.info(f"Checking wallet: {self.address}")
        try:
            native = await self._call(self._w3.eth.get_balance, self.address)
            stable = await self._call(self._stable.functions.balanceOf(self.address).call)
            decimals = await self._call(self._stable.functions.decimals().call)
        except Exception as e:
            logger.error(f"Wallet check failed: {type(e).__name__}: {e}")
            self._last_error = f"balances: {e}"
            return None

        snapshot = BalanceSnapshot(
            native_balance=int(native),
            stable_balance=int(stable),
            stable_decimals=int(decimals),
        )
        logger.info(
            f"Balance: {snapshot.native:.6f} {NETWORK.NATIVE_SYMBOL} | "
            f"{snapshot.stable:.6f} {NETWORK.STABLE_SYMBOL}"
        )
        return snapshot

    async def token_decimals(self, token_address: str) -> int:
        """decimals() of any ERC20. Raises on RPC failure; callers own the boundary."""
        contract = self._w3.eth.contract(
            address=Web3.to_checksum_address(token_address), abi=ERC20_ABI
        )
        return int(await self._call(contract.functions.decimals().call))

    # ============================================================
    # WRITES
    # ============================================================

    async def approve(self, spender: str, amount_raw: int) -> ChainTxResult:
        """USDT approve(spender, amount). Waits for one confirmation."""
        tx_fn = self._stable.functions.approve(spender, amount_raw)
        return await self._send_tx("approve", tx_fn)

    async def swap_exact_tokens_for_tokens(
        self,
        amount_in: int,
        amount_out_min: int,
        path: Sequence[str],
        deadline: int,
    ) -> ChainTxResult:
        """Router swap along path, proceeds to our own address. Waits for one confirmation."""
        tx_fn = self._router.functions.swapExactTokensForTokens(
            amount_in, amount_out_min, list(path), self.address, deadline
        )
        return await self._send_tx("swap", tx_fn)

    def _prepare_tx(self, action: str, tx_fn) -> dict:
        """Fill nonce, gas price and gas limit for an approve/swap call. Blocking."""
        w3 = self._w3
        tx = tx_fn.build_transaction({
            "from": self.address,
            "nonce": w3.eth.get_transaction_count(self.address, "pending"),
            "gasPrice": w3.eth.gas_price,
            "chainId": NETWORK.CHAIN_ID,
        })
        try:
            tx["gas"] = int(w3.eth.estimate_gas(tx) * GAS_BUFFER)
        except Exception as e:
            logger.warning(f"{action}: gas estimate failed ({e}), sending with gas={DEFAULT_GAS_LIMIT}")
            tx["gas"] = DEFAULT_GAS_LIMIT
        return tx

    async def _send_tx(self, action: str, tx_fn) -> ChainTxResult:
        """
        Sign and broadcast one approve/swap call, then wait for its receipt.

        Never raises. Status 0 in the receipt is a revert.
        """
        result = ChainTxResult(success=False, action=action)
        try:
            tx = await self._call(self._prepare_tx, action, tx_fn)
            result.nonce = tx["nonce"]

            signed = self._account.sign_transaction(tx)
            sent = await self._call(self._w3.eth.send_raw_transaction, signed.raw_transaction)
            result.tx_hash = Web3.to_hex(sent)
            logger.info(f"{action} sent with nonce {result.nonce}, waiting for receipt: {result.tx_hash}")

            receipt = await self._call(
                self._w3.eth.wait_for_transaction_receipt, sent, timeout=RECEIPT_TIMEOUT_SECONDS
            )
        except Exception as e:
            stage = "not confirmed" if result.tx_hash else "not sent"
            result.error = f"{action} {stage}: {type(e).__name__}: {e}"
            logger.warning(result.error)
            self._last_error = result.error
            return result

        result.block_number = receipt.get("blockNumber")
        result.gas_used = receipt.get("gasUsed", 0)
        result.fee_wei = result.gas_used * receipt.get("effectiveGasPrice", 0)

        if receipt["status"] != 1:
            result.error = f"{action} reverted in block {result.block_number}"
            logger.warning(f"{result.error}: {self.get_explorer_url(result.tx_hash)}")
            self._last_error = result.error
            return result

        self._tx_count += 1
        result.success = True
        logger.info(
            f"{action} confirmed in block {result.block_number} | "
            f"gas {result.gas_used} | fee {result.fee:.8f} {NETWORK.NATIVE_SYMBOL}"
        )
        return result

    # ============================================================
    # STATUS
    # ============================================================

    def get_explorer_url(self, tx_hash: str) -> str:
        """Get block explorer URL for a transaction."""
        return f"{NETWORK.EXPLORER}/tx/{tx_hash}"

    def get_status(self) -> dict:
        """Summary logged at shutdown."""
        return {
            "address": self.address[:10] + "...",
            "rpc_url": self._config.rpc_url,
            "tx_count": self._tx_count,
            "last_error": self._last_error,
        }
