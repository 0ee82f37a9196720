"""
Swap coordination for htlcswap.

Orchestrates atomic swaps across two chains using HTLCs.
"""

from .coordinator import ClaimRecord, CoordinatorConfig, SwapCoordinator
from .scan import HistoryCursor

__all__ = ["ClaimRecord", "CoordinatorConfig", "SwapCoordinator", "HistoryCursor"]
