"""
Ledger access interface.

One implementation per underlying ledger protocol. The swap coordinator
only talks to a chain through these operations.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from ..core import FeeRate


class LedgerError(Exception):
    """A ledger call failed (transport, node or wallet error)."""


@dataclass(frozen=True)
class Utxo:
    txid: str
    vout: int
    amount: int             # satoshis
    confirmations: int
    address: Optional[str] = None


@dataclass(frozen=True)
class Destination:
    """A fresh receiving address and its scriptPubKey."""
    address: str
    script_pubkey: bytes


class Ledger(ABC):
    """Capabilities the swap protocol needs from a chain."""

    @abstractmethod
    async def get_block_count(self) -> int:
        """Current best block height."""

    @abstractmethod
    async def estimate_fee_rate(self, conf_target: int) -> FeeRate:
        """Fee rate for confirmation within conf_target blocks. Raises LedgerError."""

    @abstractmethod
    async def import_script(self, script_pubkey: bytes) -> None:
        """Make outputs and spends of a script visible to wallet queries."""

    @abstractmethod
    async def list_unspent(self, min_conf: int, address: str) -> List[Utxo]:
        ...

    @abstractmethod
    async def list_transactions(self, count: int, skip: int,
                                include_watchonly: bool = True) -> List[Dict[str, Any]]:
        """
        Wallet history, newest first.

        Entries carry at least "txid", and optionally "confirmations"
        and "category".
        """

    @abstractmethod
    async def get_transaction(self, txid: str) -> Dict[str, Any]:
        """Wallet transaction; must include the raw "hex"."""

    @abstractmethod
    async def decode_raw_transaction(self, hex_tx: str) -> Dict[str, Any]:
        """Decoded form with "vin" entries carrying "scriptSig" asm and "txinwitness"."""

    @abstractmethod
    async def send_raw_transaction(self, hex_tx: str) -> str:
        ...

    @abstractmethod
    async def get_new_address(self) -> Destination:
        ...

    @abstractmethod
    async def fund_and_sign(self, hex_tx: str) -> str:
        """Add inputs, change and fee to an unsigned transaction, sign it, return hex."""

    async def close(self) -> None:
        pass
