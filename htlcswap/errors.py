"""
Error taxonomy for htlcswap.

Derivation and validation errors surface immediately. Ledger transport
errors live next to the ledger interface (see chains.base.LedgerError).
"""

import asyncio


class SwapError(Exception):
    """Base class for swap protocol errors."""


class ChainUnknown(SwapError):
    """A chain name does not match any configured chain."""


class ConfigurationError(SwapError):
    """A production chain cannot supply the information the swap needs."""


class PreconditionMissing(SwapError):
    """Claim requested without a known preimage, key or funding outpoint."""


class Cancelled(asyncio.CancelledError):
    """Cooperative cancellation observed at a suspension point."""
