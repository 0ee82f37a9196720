"""
Core types and constants for htlcswap.
"""

import hashlib
import json
import math
import secrets
from dataclasses import dataclass
from datetime import timedelta
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Union


class SwapState(Enum):
    """Swap lifecycle states."""
    PROPOSED = "proposed"       # Offer created, initiator leg not broadcast
    FUNDED = "funded"           # Initiator funding TX broadcast
    DISCLOSED = "disclosed"     # Preimage observed on-chain
    CLAIMED = "claimed"         # Claim TX broadcast (terminal)
    REFUNDED = "refunded"       # Refunded after lock time (external, terminal)


# =============================================================================
# Constants
# =============================================================================

# Lock windows. The initiator's refund must open strictly after the taker's,
# otherwise the taker can be forced to reveal with no time left to claim.
INITIATOR_LOCK_WINDOW = timedelta(hours=2)
TAKER_LOCK_WINDOW = timedelta(hours=1)

PREIMAGE_SIZE = 32

# Disclosure scan
HISTORY_PAGE_SIZE = 10
STALE_CONFIRMATIONS = 144   # ~24h of 10 min blocks

POLL_INTERVAL = 1.0         # seconds
FEE_TARGET_BLOCKS = 2

SATS_PER_COIN = 100_000_000


# =============================================================================
# Value types
# =============================================================================

@dataclass(frozen=True)
class ChainAsset:
    """An amount (smallest ledger unit) on a named chain."""
    chain: str
    amount: int

    def to_dict(self) -> Dict[str, Any]:
        return {"chain": self.chain, "amount": self.amount}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ChainAsset":
        return cls(chain=str(data["chain"]), amount=int(data["amount"]))


@dataclass(frozen=True)
class Proposal:
    """What the initiator offers and what it wants in return."""
    from_asset: ChainAsset
    to_asset: ChainAsset


@dataclass(frozen=True)
class OfferParty:
    asset: ChainAsset
    pubkey: bytes           # 33-byte compressed secp256k1 pubkey

    def to_dict(self) -> Dict[str, Any]:
        return {"asset": self.asset.to_dict(), "pubkey": self.pubkey.hex()}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "OfferParty":
        return cls(
            asset=ChainAsset.from_dict(data["asset"]),
            pubkey=bytes.fromhex(data["pubkey"]),
        )


@dataclass(frozen=True)
class Offer:
    """
    The commitment both parties agree on.

    lock_time guards the initiator's escrow on the initiator chain,
    counter_offer_lock_time guards the taker's escrow on the taker chain.
    hash is SHA256 of the preimage and binds both legs.
    """
    initiator: OfferParty
    taker: OfferParty
    lock_time: int
    counter_offer_lock_time: int
    hash: bytes

    def counter_offer(self) -> "Offer":
        """
        Mirror of this offer for the taker's own leg.

        The taker funds it on the taker chain; the initiator claims it,
        which discloses the preimage to the taker.
        """
        return Offer(
            initiator=self.taker,
            taker=self.initiator,
            lock_time=self.counter_offer_lock_time,
            counter_offer_lock_time=self.lock_time,
            hash=self.hash,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "initiator": self.initiator.to_dict(),
            "taker": self.taker.to_dict(),
            "lock_time": self.lock_time,
            "counter_offer_lock_time": self.counter_offer_lock_time,
            "hash": self.hash.hex(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Offer":
        offer_hash = bytes.fromhex(data["hash"])
        if len(offer_hash) != 32:
            raise ValueError(f"Offer hash must be 32 bytes, got {len(offer_hash)}")
        return cls(
            initiator=OfferParty.from_dict(data["initiator"]),
            taker=OfferParty.from_dict(data["taker"]),
            lock_time=int(data["lock_time"]),
            counter_offer_lock_time=int(data["counter_offer_lock_time"]),
            hash=offer_hash,
        )

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2)

    @classmethod
    def from_json(cls, text: str) -> "Offer":
        return cls.from_dict(json.loads(text))


@dataclass(frozen=True)
class OutPoint:
    """Reference to a transaction output."""
    txid: str
    vout: int

    def __str__(self) -> str:
        return f"{self.txid}:{self.vout}"

    @classmethod
    def parse(cls, text: str) -> "OutPoint":
        txid, vout = text.rsplit(":", 1)
        return cls(txid=txid, vout=int(vout))


@dataclass(frozen=True)
class FeeRate:
    """Fee rate in satoshis per 1000 virtual bytes."""
    sat_per_kvb: int

    def get_fee(self, vsize: int) -> int:
        """Fee for a transaction of vsize virtual bytes (rounded up)."""
        return math.ceil(self.sat_per_kvb * vsize / 1000)

    @classmethod
    def from_btc_per_kvb(cls, feerate: Union[Decimal, float, str]) -> "FeeRate":
        return cls(sat_per_kvb=btc_to_sats(feerate))


# Fallback for test chains whose estimator has no data yet: 50 sat/vB
FALLBACK_FEE_RATE = FeeRate(sat_per_kvb=50_000)


# =============================================================================
# Preimage Utilities
# =============================================================================

def generate_preimage() -> bytes:
    """Generate a fresh 32-byte secret."""
    return secrets.token_bytes(PREIMAGE_SIZE)


def preimage_hash(preimage: bytes) -> bytes:
    """SHA256 commitment to a preimage."""
    return hashlib.sha256(preimage).digest()


def verify_preimage(preimage: bytes, expected_hash: bytes) -> bool:
    return preimage_hash(preimage) == expected_hash


def btc_to_sats(btc: Union[Decimal, float, str]) -> int:
    """Convert a coin amount to satoshis without float rounding."""
    return int(Decimal(str(btc)) * SATS_PER_COIN)


def sats_to_btc(sats: int) -> Decimal:
    return Decimal(sats) / SATS_PER_COIN
