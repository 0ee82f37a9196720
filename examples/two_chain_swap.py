#!/usr/bin/env python3
"""
Example: BTC <-> LTC atomic swap on regtest

Runs both parties in one process against two regtest nodes:

1. Bob creates a taker key and gives Alice the pubkey
2. Alice proposes 0.001 BTC for 0.0009 LTC and funds the BTC HTLC
3. Bob waits for Alice's funding, funds the LTC HTLC (counter offer)
4. Alice waits for Bob's funding and claims LTC (reveals preimage)
5. Bob finds the preimage in LTC history and claims BTC

Mine blocks on both nodes while this runs, e.g.:
    bitcoin-cli -regtest -generate 1
    litecoin-cli -regtest -generate 1

Usage:
    python two_chain_swap.py [chains.json]
"""

import asyncio
import logging
import sys
from pathlib import Path

# Add package to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from htlcswap import ChainAsset, MemorySecretStore, Proposal, SwapCoordinator
from htlcswap.config import load_chains
from htlcswap.core import btc_to_sats, sats_to_btc

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s [%(levelname)s] %(message)s'
)
log = logging.getLogger(__name__)


async def main(config_path: str):
    # =================================================================
    # 1. Initialize both parties
    # =================================================================
    # Separate registries and stores: each party has its own wallets
    alice = SwapCoordinator(load_chains(config_path), MemorySecretStore())
    bob = SwapCoordinator(load_chains(config_path), MemorySecretStore())

    try:
        bob_pubkey = bob.new_pubkey()
        log.info(f"Bob's taker pubkey: {bob_pubkey.hex()}")

        # =============================================================
        # 2. Alice proposes and funds
        # =============================================================
        proposal = Proposal(
            from_asset=ChainAsset("bitcoin-regtest", btc_to_sats("0.001")),
            to_asset=ChainAsset("litecoin-regtest", btc_to_sats("0.0009")),
        )
        offer = await alice.propose(proposal, bob_pubkey)
        log.info(f"Offer:\n{offer.to_json()}")

        await alice.fund_and_broadcast(offer, watch=True)

        # =============================================================
        # 3. Bob verifies Alice's funding and funds his leg
        # =============================================================
        await bob.wait_for_funding(offer, required_confirmations=1)

        counter = offer.counter_offer()
        await bob.fund_and_broadcast(counter, watch=True)

        # =============================================================
        # 4. Alice claims LTC, revealing the preimage
        # =============================================================
        await alice.wait_for_funding(counter, required_confirmations=1)
        await alice.claim(counter)

        # =============================================================
        # 5. Bob learns the preimage and claims BTC
        # =============================================================
        await bob.wait_for_disclosure(counter)
        await bob.claim(offer)
        await bob.wait_for_claim_confirmation(offer)

        log.info("")
        log.info("Swap complete:")
        log.info(f"  Alice received {sats_to_btc(alice.get_claim(counter).value)} LTC")
        log.info(f"  Bob received {sats_to_btc(bob.get_claim(offer).value)} BTC")
    finally:
        await alice.chains.close()
        await bob.chains.close()


if __name__ == "__main__":
    config = sys.argv[1] if len(sys.argv) > 1 else str(Path(__file__).parent / "chains.json")
    asyncio.run(main(config))
