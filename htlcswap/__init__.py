"""
htlcswap - Two-chain atomic swaps with HTLCs.

Two parties exchange coins on two Bitcoin-compatible chains. A shared
preimage and asymmetric lock heights make both legs complete or both
refundable.

Usage:
    from htlcswap import SwapCoordinator, MemorySecretStore, Proposal, ChainAsset
    from htlcswap.config import load_chains

    chains = load_chains("chains.json")
    coordinator = SwapCoordinator(chains, MemorySecretStore())

    offer = await coordinator.propose(
        Proposal(ChainAsset("bitcoin", 100_000), ChainAsset("litecoin", 90_000)),
        counterparty_pubkey,
    )
    await coordinator.fund_and_broadcast(offer, watch=True)
"""

from .core import (
    SwapState,
    ChainAsset,
    Proposal,
    OfferParty,
    Offer,
    OutPoint,
    FeeRate,
    generate_preimage,
    preimage_hash,
    verify_preimage,
)
from .errors import (
    SwapError,
    ChainUnknown,
    ConfigurationError,
    PreconditionMissing,
    Cancelled,
)
from .keys import PrivateKey
from .store import SecretStore, MemorySecretStore, JsonFileSecretStore
from .chains import ChainBinding, ChainInformation, ChainRegistry, Ledger, LedgerError
from .swap import SwapCoordinator, CoordinatorConfig

__version__ = "0.1.0"
__all__ = [
    # Core types
    "SwapState",
    "ChainAsset",
    "Proposal",
    "OfferParty",
    "Offer",
    "OutPoint",
    "FeeRate",
    # Utilities
    "generate_preimage",
    "preimage_hash",
    "verify_preimage",
    # Errors
    "SwapError",
    "ChainUnknown",
    "ConfigurationError",
    "PreconditionMissing",
    "Cancelled",
    # Keys and secrets
    "PrivateKey",
    "SecretStore",
    "MemorySecretStore",
    "JsonFileSecretStore",
    # Chains
    "ChainBinding",
    "ChainInformation",
    "ChainRegistry",
    "Ledger",
    "LedgerError",
    # Swap
    "SwapCoordinator",
    "CoordinatorConfig",
]
