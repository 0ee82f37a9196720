"""
HTLC contract derivation for htlcswap.

Pure functions of an Offer: no I/O, no state.

HTLC Script Structure (P2WSH):
    OP_IF
        OP_SHA256 <hash> OP_EQUALVERIFY
        <taker_pubkey> OP_CHECKSIG
    OP_ELSE
        <lock_time> OP_CHECKLOCKTIMEVERIFY OP_DROP
        <initiator_pubkey> OP_CHECKSIG
    OP_ENDIF

To claim (with preimage, taker key):
    <signature> <preimage> 0x01 <script>

To refund (after lock_time, initiator key):
    <signature> <empty> <script>
"""

import hashlib
from typing import Tuple

from bitcoin.core import CMutableTxOut, CTransaction
from bitcoin.core.script import (
    CScript, CScriptWitness,
    OP_0, OP_IF, OP_ELSE, OP_ENDIF, OP_DROP,
    OP_SHA256, OP_EQUALVERIFY, OP_CHECKSIG, OP_CHECKLOCKTIMEVERIFY,
)
from bitcoin.segwit_addr import encode as segwit_encode

from ..core import Offer

# Branch selectors
CLAIM_BRANCH = b"\x01"
REFUND_BRANCH = b""

# Upper bound of a DER signature + sighash byte, used to size a claim
# before it is signed
PLACEHOLDER_SIGNATURE = b"\x00" * 72


def derive_commitment_script(offer: Offer) -> CScript:
    """The HTLC witness script. Depends on hash, both pubkeys and lock_time only."""
    return CScript([
        OP_IF,
            OP_SHA256, offer.hash, OP_EQUALVERIFY,
            offer.taker.pubkey, OP_CHECKSIG,
        OP_ELSE,
            offer.lock_time, OP_CHECKLOCKTIMEVERIFY, OP_DROP,
            offer.initiator.pubkey, OP_CHECKSIG,
        OP_ENDIF,
    ])


def derive_funding_script(offer: Offer) -> CScript:
    """P2WSH scriptPubKey: OP_0 <sha256(commitment script)>."""
    witness_program = hashlib.sha256(derive_commitment_script(offer)).digest()
    return CScript([OP_0, witness_program])


def derive_funding_output(offer: Offer) -> Tuple[int, CScript]:
    """(amount, scriptPubKey) the initiator pays into."""
    return offer.initiator.asset.amount, derive_funding_script(offer)


def funding_txout(offer: Offer) -> CMutableTxOut:
    amount, script_pubkey = derive_funding_output(offer)
    return CMutableTxOut(amount, script_pubkey)


def derive_claim_witness(offer: Offer, signature: bytes, preimage: bytes) -> CScriptWitness:
    """Witness for the claim branch. signature includes the sighash byte."""
    return CScriptWitness([
        signature,
        preimage,
        CLAIM_BRANCH,
        derive_commitment_script(offer),
    ])


def derive_refund_witness(offer: Offer, signature: bytes) -> CScriptWitness:
    """Witness for the refund branch, valid once the chain reaches lock_time."""
    return CScriptWitness([
        signature,
        REFUND_BRANCH,
        derive_commitment_script(offer),
    ])


def funding_address(offer: Offer, hrp: str) -> str:
    """Bech32 P2WSH address of the funding script."""
    witness_program = hashlib.sha256(derive_commitment_script(offer)).digest()
    address = segwit_encode(hrp, 0, witness_program)
    if address is None:
        raise ValueError(f"Cannot encode P2WSH address with hrp {hrp!r}")
    return address


def virtual_size(tx: CTransaction) -> int:
    """BIP141 virtual size: ceil((3 * stripped size + total size) / 4)."""
    total = len(tx.serialize())
    stripped = len(CTransaction(tx.vin, tx.vout, tx.nLockTime, tx.nVersion).serialize())
    return (stripped * 3 + total + 3) // 4
