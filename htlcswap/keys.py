"""
secp256k1 keys for HTLC signing.
"""

import hashlib
import secrets

from ecdsa import SECP256k1, BadSignatureError, SigningKey, VerifyingKey
from ecdsa.util import sigdecode_der, sigencode_der_canonize


class PrivateKey:
    """A secp256k1 private key with compressed public key."""

    def __init__(self, secret: bytes):
        if len(secret) != 32:
            raise ValueError(f"Private key must be 32 bytes, got {len(secret)}")
        self._sk = SigningKey.from_string(secret, curve=SECP256k1)

    @classmethod
    def generate(cls) -> "PrivateKey":
        while True:
            secret = secrets.token_bytes(32)
            # Reject zero and values >= curve order
            if 0 < int.from_bytes(secret, "big") < SECP256k1.order:
                return cls(secret)

    @property
    def secret(self) -> bytes:
        return self._sk.to_string()

    @property
    def pubkey(self) -> bytes:
        """33-byte compressed public key."""
        return self._sk.get_verifying_key().to_string("compressed")

    def sign(self, digest: bytes) -> bytes:
        """Deterministic DER signature (low-S) over a 32-byte digest."""
        return self._sk.sign_digest_deterministic(
            digest, hashfunc=hashlib.sha256, sigencode=sigencode_der_canonize
        )

    def __repr__(self) -> str:
        return f"PrivateKey(pubkey={self.pubkey.hex()})"


def verify_signature(pubkey: bytes, digest: bytes, der_signature: bytes) -> bool:
    """Check a DER signature (without sighash byte) against a pubkey."""
    vk = VerifyingKey.from_string(pubkey, curve=SECP256k1)
    try:
        return vk.verify_digest(der_signature, digest, sigdecode=sigdecode_der)
    except BadSignatureError:
        return False
