"""
Chain bindings: logical chain names -> ledger instances.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Iterable, List, Optional, Tuple

from ..core import FEE_TARGET_BLOCKS, INITIATOR_LOCK_WINDOW, TAKER_LOCK_WINDOW
from ..errors import ChainUnknown, ConfigurationError
from .base import Ledger, LedgerError
from .btc import BitcoinRPC, RPCConfig

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChainInformation:
    """Static description of a chain."""
    names: Tuple[str, ...]          # first entry is the canonical name
    network: str                    # mainnet, testnet, signet, regtest
    block_interval: timedelta       # average time between blocks
    bech32_hrp: str
    is_test: bool = False

    @property
    def name(self) -> str:
        return self.names[0]

    def matches(self, name: str) -> bool:
        return name.casefold() in (n.casefold() for n in self.names)

    def blocks_covering(self, offset: timedelta) -> int:
        """Smallest block count whose expected duration is at least offset."""
        return -(-offset // self.block_interval)

    def blocks_within(self, offset: timedelta) -> int:
        """Largest block count whose expected duration fits in offset (min 1)."""
        return max(1, offset // self.block_interval)


def lock_blocks(initiator: ChainInformation, taker: ChainInformation,
                initiator_window: timedelta = INITIATOR_LOCK_WINDOW,
                taker_window: timedelta = TAKER_LOCK_WINDOW) -> Tuple[int, int]:
    """
    Block counts (initiator chain, taker chain) for the two lock windows.

    The taker's count is rounded down but never below one block, so on a
    chain slower than taker_window it lasts longer than asked. The
    initiator's window then grows to stay (initiator_window - taker_window)
    ahead of the taker's actual window.
    """
    taker_blocks = taker.blocks_within(taker_window)
    taker_duration = taker_blocks * taker.block_interval
    margin = initiator_window - taker_window
    initiator_blocks = initiator.blocks_covering(max(initiator_window, taker_duration + margin))
    return initiator_blocks, taker_blocks


@dataclass
class ChainBinding:
    """
    A chain plus the ledger used to reach it.

    The ledger is either injected or built from rpc on first use.
    """
    information: ChainInformation
    rpc: Optional[RPCConfig] = None
    ledger: Optional[Ledger] = None
    _ready: bool = field(default=False, init=False, repr=False)
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, init=False, repr=False)

    @property
    def is_ready(self) -> bool:
        return self._ready

    async def ensure_ready(self, force_renew: bool = False) -> Ledger:
        """
        Connect and check the ledger can estimate fees.

        Test chains proceed without a fee estimate (the fallback rate is
        used later). Production chains must not move funds without one.
        """
        async with self._lock:
            if self._ready and not force_renew:
                return self.ledger

            if self.rpc is not None and (self.ledger is None or force_renew):
                if self.ledger is not None:
                    await self.ledger.close()
                self.ledger = BitcoinRPC(self.rpc)
            if self.ledger is None:
                raise ConfigurationError(f"No ledger configured for chain {self.information.name}")

            try:
                await self.ledger.estimate_fee_rate(FEE_TARGET_BLOCKS)
            except LedgerError as e:
                if not self.information.is_test:
                    raise ConfigurationError(
                        f"Fee unavailable on {self.information.name}, wait for your "
                        f"full node to have more fee information and retry again"
                    ) from e
                log.warning(f"No fee estimate on test chain {self.information.name}: {e}")

            self._ready = True
            log.info(f"Chain {self.information.name} ready ({self.information.network})")
            return self.ledger


class ChainRegistry:
    """Resolves chain names (case-insensitive, any alias) to bindings."""

    def __init__(self, chains: Iterable[ChainBinding]):
        self._chains: List[ChainBinding] = list(chains)

    def __iter__(self):
        return iter(self._chains)

    def resolve(self, name: str) -> ChainBinding:
        for chain in self._chains:
            if chain.information.matches(name):
                return chain
        raise ChainUnknown(f"Chain {name} is unknown")

    async def close(self):
        for chain in self._chains:
            if chain.ledger is not None:
                await chain.ledger.close()
