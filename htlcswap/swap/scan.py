"""
Disclosure scanning primitives.

The history walk is an explicit cursor over newest-first pages. It restarts
from the newest entry whenever it runs off the end of the history or reaches
entries older than the staleness bound, so transactions that arrive while
scanning (or reappear after a reorg) are seen on the next pass.
"""

import logging
import string
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional

from ..core import HISTORY_PAGE_SIZE, STALE_CONFIRMATIONS, preimage_hash

log = logging.getLogger(__name__)

# Coinbase outputs cannot carry a preimage
COINBASE_CATEGORIES = ("immature", "generate")

_HEX_DIGITS = frozenset(string.hexdigits)


@dataclass
class HistoryCursor:
    """Paged walk over wallet history with reset-on-exhaustion."""
    page_size: int = HISTORY_PAGE_SIZE
    stale_confirmations: int = STALE_CONFIRMATIONS
    offset: int = 0
    passes: int = 0

    def next_page(self) -> int:
        """Offset of the page to fetch; advances the cursor."""
        offset = self.offset
        self.offset += self.page_size
        return offset

    def is_stale(self, entry: Dict[str, Any]) -> bool:
        return int(entry.get("confirmations") or 0) > self.stale_confirmations

    def should_restart(self, page: List[Dict[str, Any]]) -> bool:
        """True when the page is empty or reaches past the staleness bound."""
        return not page or any(self.is_stale(entry) for entry in page)

    def reset(self):
        self.offset = 0
        self.passes += 1


def scannable(entry: Dict[str, Any], cursor: HistoryCursor) -> bool:
    """History entries that can possibly reveal a preimage."""
    if cursor.is_stale(entry):
        return False
    return entry.get("category") not in COINBASE_CATEGORIES


def is_hex(token: str) -> bool:
    return len(token) > 0 and len(token) % 2 == 0 and all(c in _HEX_DIGITS for c in token)


def input_tokens(vin: Dict[str, Any]) -> Iterator[bytes]:
    """
    Candidate secrets of one decoded input.

    scriptSig asm tokens first, then witness stack items. Tokens that are
    not plain hex (opcodes, "[ALL]" suffixed signatures) are skipped.
    """
    asm = (vin.get("scriptSig") or {}).get("asm", "")
    parts = asm.split(" ") if asm else []
    parts.extend(vin.get("txinwitness") or [])
    for part in parts:
        if is_hex(part):
            yield bytes.fromhex(part)


def find_preimage(decoded_tx: Dict[str, Any], expected_hash: bytes) -> Optional[bytes]:
    """Return the input token hashing to expected_hash, if any."""
    for vin in decoded_tx.get("vin", []):
        for token in input_tokens(vin):
            if preimage_hash(token) == expected_hash:
                return token
    return None
