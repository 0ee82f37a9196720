#!/usr/bin/env python3
"""
htlcswap command line.

Offers travel between the parties as JSON files.

Usage:
    htlcswap -c chains.json newpubkey
    htlcswap -c chains.json propose --from bitcoin:100000 --to litecoin:90000 \
        --counterparty <66hex> -o offer.json
    htlcswap -c chains.json fund offer.json --watch
    htlcswap -c chains.json wait-funding offer.json --confirmations 1
    htlcswap -c chains.json counter offer.json -o counter.json
    htlcswap -c chains.json wait-disclosure counter.json
    htlcswap -c chains.json claim offer.json
"""

import argparse
import asyncio
import logging
import signal
import sys
from pathlib import Path

from .config import load_chains
from .core import ChainAsset, Offer, Proposal
from .errors import Cancelled, SwapError
from .chains.base import LedgerError
from .store import JsonFileSecretStore
from .swap.coordinator import SwapCoordinator

log = logging.getLogger(__name__)

DEFAULT_CONFIG = Path.home() / ".htlcswap" / "chains.json"
DEFAULT_STORE = Path.home() / ".htlcswap" / "secrets.json"


def parse_asset(text: str) -> ChainAsset:
    """Parse CHAIN:AMOUNT (amount in satoshis)."""
    chain, sep, amount = text.rpartition(":")
    if not sep or not chain:
        raise argparse.ArgumentTypeError(f"Expected CHAIN:AMOUNT, got {text!r}")
    try:
        return ChainAsset(chain=chain, amount=int(amount))
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid amount in {text!r}")


def read_offer(path: str) -> Offer:
    return Offer.from_json(Path(path).read_text())


def write_offer(offer: Offer, path: str = None):
    text = offer.to_json()
    if path:
        Path(path).write_text(text + "\n")
        log.info(f"Offer written to {path}")
    else:
        print(text)


def _install_cancellation(cancellation: asyncio.Event):
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, cancellation.set)
        except NotImplementedError:
            pass


async def run(args) -> int:
    chains = load_chains(args.config)
    coordinator = SwapCoordinator(chains, JsonFileSecretStore(args.store))
    cancellation = asyncio.Event()
    _install_cancellation(cancellation)

    try:
        if args.command == "newpubkey":
            print(coordinator.new_pubkey().hex())

        elif args.command == "propose":
            offer = await coordinator.propose(
                Proposal(from_asset=args.from_asset, to_asset=args.to_asset),
                bytes.fromhex(args.counterparty),
            )
            write_offer(offer, args.output)

        elif args.command == "counter":
            write_offer(read_offer(args.offer).counter_offer(), args.output)

        elif args.command == "fund":
            print(await coordinator.fund_and_broadcast(read_offer(args.offer), watch=args.watch))

        elif args.command == "wait-funding":
            outpoint = await coordinator.wait_for_funding(
                read_offer(args.offer), args.confirmations, cancellation,
            )
            print(outpoint)

        elif args.command == "wait-disclosure":
            await coordinator.wait_for_disclosure(read_offer(args.offer), cancellation)
            print("preimage disclosed")

        elif args.command == "claim":
            offer = read_offer(args.offer)
            print(await coordinator.claim(offer))
            if args.wait:
                await coordinator.wait_for_claim_confirmation(offer, cancellation)
        return 0
    except Cancelled:
        log.info("Cancelled")
        return 130
    finally:
        await chains.close()


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="htlcswap: two-chain atomic swaps with HTLCs"
    )
    parser.add_argument(
        "-c", "--config", type=str, default=str(DEFAULT_CONFIG),
        help="Chain configuration JSON"
    )
    parser.add_argument(
        "-s", "--store", type=str, default=str(DEFAULT_STORE),
        help="Secret store JSON (keys, preimages, outpoints)"
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Debug logging"
    )
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("newpubkey", help="Generate a key for the taker role")

    p = sub.add_parser("propose", help="Create an offer")
    p.add_argument("--from", dest="from_asset", type=parse_asset, required=True,
                   help="What you give, CHAIN:AMOUNT")
    p.add_argument("--to", dest="to_asset", type=parse_asset, required=True,
                   help="What you want, CHAIN:AMOUNT")
    p.add_argument("--counterparty", required=True, help="Counterparty pubkey (66 hex)")
    p.add_argument("-o", "--output", help="Write offer JSON here")

    p = sub.add_parser("counter", help="Derive the counter offer (taker leg)")
    p.add_argument("offer")
    p.add_argument("-o", "--output", help="Write counter offer JSON here")

    p = sub.add_parser("fund", help="Fund and broadcast an offer")
    p.add_argument("offer")
    p.add_argument("--watch", action="store_true",
                   help="Watch the HTLC script so its spends show up in history")

    p = sub.add_parser("wait-funding", help="Wait for an offer to be funded")
    p.add_argument("offer")
    p.add_argument("--confirmations", type=int, default=0)

    p = sub.add_parser("wait-disclosure", help="Wait for the preimage to be revealed")
    p.add_argument("offer")

    p = sub.add_parser("claim", help="Claim a funded offer")
    p.add_argument("offer")
    p.add_argument("--wait", action="store_true", help="Wait for one confirmation")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s [%(levelname)s] %(message)s'
    )

    try:
        sys.exit(asyncio.run(run(args)))
    except (SwapError, LedgerError, ValueError) as e:
        log.error(str(e))
        sys.exit(1)


if __name__ == "__main__":
    main()
