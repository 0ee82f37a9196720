"""
HTLC (Hash Time-Locked Contract) derivation.

HTLCs make the swap trustless:
1. Funds can only be claimed with knowledge of a secret (preimage)
2. Funds can be refunded after a timeout if not claimed
"""

from .contract import (
    derive_claim_witness,
    derive_commitment_script,
    derive_funding_output,
    derive_funding_script,
    derive_refund_witness,
    funding_address,
    virtual_size,
)

__all__ = [
    "derive_claim_witness",
    "derive_commitment_script",
    "derive_funding_output",
    "derive_funding_script",
    "derive_refund_witness",
    "funding_address",
    "virtual_size",
]
