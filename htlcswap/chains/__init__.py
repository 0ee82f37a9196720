"""
Chain access for htlcswap.

Each ledger implementation provides a unified interface for:
- Block height and fee estimation
- Watching scripts and listing UTXOs
- Wallet history and transaction decoding
- Funding, signing and broadcasting transactions
"""

from .base import Destination, Ledger, LedgerError, Utxo
from .btc import BitcoinRPC, RPCConfig, RPCError
from .registry import ChainBinding, ChainInformation, ChainRegistry

__all__ = [
    "Destination",
    "Ledger",
    "LedgerError",
    "Utxo",
    "BitcoinRPC",
    "RPCConfig",
    "RPCError",
    "ChainBinding",
    "ChainInformation",
    "ChainRegistry",
]
