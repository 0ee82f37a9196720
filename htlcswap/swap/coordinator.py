"""
Swap Coordinator for htlcswap.

Drives a two-chain HTLC swap from proposal to claim.

Swap Flow (Alice initiates, Bob takes):
1. Bob creates a taker key (new_pubkey) and hands Alice the pubkey
2. Alice proposes: fresh key + preimage, lock heights on both chains
3. Alice funds the offer on chain A
4. Bob waits for Alice's funding, then funds the counter offer on chain B
5. Alice waits for Bob's funding and claims chain B, revealing the preimage
6. Bob scans chain B history, learns the preimage, claims chain A

Lock windows: Alice's refund on A opens after ~2h, Bob's on B after ~1h.
Bob therefore always has at least an hour to claim A after Alice reveals.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Dict, Optional

from bitcoin.core import (
    CMutableTransaction, CMutableTxIn, CMutableTxOut, COutPoint,
    CTxInWitness, CTxWitness, b2lx, b2x, lx,
)
from bitcoin.core.script import CScript, SignatureHash, SIGHASH_ALL, SIGVERSION_WITNESS_V0

from ..chains.base import Destination, Ledger, LedgerError
from ..chains.registry import ChainBinding, ChainRegistry, lock_blocks
from ..core import (
    FALLBACK_FEE_RATE, FEE_TARGET_BLOCKS, HISTORY_PAGE_SIZE,
    POLL_INTERVAL, STALE_CONFIRMATIONS,
    FeeRate, Offer, OfferParty, OutPoint, Proposal, SwapState, generate_preimage, preimage_hash,
)
from ..errors import PreconditionMissing
from ..htlc.contract import (
    PLACEHOLDER_SIGNATURE, derive_claim_witness, derive_commitment_script,
    derive_funding_script, funding_address, funding_txout, virtual_size,
)
from ..store import SecretStore
from .polling import check_cancelled, wait_or_cancel
from .scan import HistoryCursor, find_preimage, scannable

log = logging.getLogger(__name__)


@dataclass
class CoordinatorConfig:
    """Polling, scanning and fee settings."""
    poll_interval: float = POLL_INTERVAL            # seconds between polls
    history_page_size: int = HISTORY_PAGE_SIZE
    stale_confirmations: int = STALE_CONFIRMATIONS
    fee_target_blocks: int = FEE_TARGET_BLOCKS
    fallback_fee_rate: FeeRate = FALLBACK_FEE_RATE  # test chains only


@dataclass
class ClaimRecord:
    """Claim transaction broadcast by this coordinator."""
    txid: str
    destination: Destination
    value: int
    fee: int


class SwapCoordinator:
    """
    Protocol state machine: PROPOSED -> FUNDED -> DISCLOSED -> CLAIMED.

    Independent swaps may run concurrently on one coordinator; per-call
    caches stay local to the call.
    """

    def __init__(self, chains: ChainRegistry, store: SecretStore,
                 config: CoordinatorConfig = None):
        self.chains = chains
        self.store = store
        self.config = config or CoordinatorConfig()

        # Keyed by funding script, so an offer and its counter offer differ
        self._states: Dict[bytes, SwapState] = {}
        self._claims: Dict[bytes, ClaimRecord] = {}

    # =========================================================================
    # State
    # =========================================================================

    def get_state(self, offer: Offer) -> Optional[SwapState]:
        return self._states.get(bytes(derive_funding_script(offer)))

    def get_claim(self, offer: Offer) -> Optional[ClaimRecord]:
        return self._claims.get(bytes(derive_funding_script(offer)))

    def _set_state(self, offer: Offer, state: SwapState):
        key = bytes(derive_funding_script(offer))
        previous = self._states.get(key)
        self._states[key] = state
        log.info(f"Swap {offer.hash.hex()[:16]} on {offer.initiator.asset.chain}: "
                 f"{previous.value if previous else 'new'} -> {state.value}")

    def _advance_state(self, offer: Offer, state: SwapState):
        """Move forward only; never regress a later state."""
        order = [SwapState.PROPOSED, SwapState.FUNDED, SwapState.DISCLOSED, SwapState.CLAIMED]
        current = self.get_state(offer)
        if current in order and order.index(current) >= order.index(state):
            return
        self._set_state(offer, state)

    # =========================================================================
    # Chains
    # =========================================================================

    async def _get_chain(self, name: str) -> ChainBinding:
        chain = self.chains.resolve(name)
        await chain.ensure_ready()
        return chain

    async def _lock_height(self, chain: ChainBinding, blocks: int) -> int:
        height = await chain.ledger.get_block_count()
        return height + blocks

    async def _get_fee_rate(self, chain: ChainBinding) -> FeeRate:
        try:
            return await chain.ledger.estimate_fee_rate(self.config.fee_target_blocks)
        except LedgerError as e:
            if not chain.information.is_test:
                raise
            log.warning(f"Fee estimate failed on {chain.information.name} ({e}), "
                        f"using fallback {self.config.fallback_fee_rate.sat_per_kvb} sat/kvB")
            return self.config.fallback_fee_rate

    # =========================================================================
    # Proposal
    # =========================================================================

    def new_pubkey(self) -> bytes:
        """Generate and persist a key, e.g. for the taker role."""
        return self.store.generate_key().pubkey

    async def propose(self, proposal: Proposal, counterparty_pubkey: bytes) -> Offer:
        """
        Create an offer with a fresh initiator key and preimage.

        Lock heights: taker chain height + blocks fitting in 1h (at least one),
        initiator chain height + blocks covering 2h, or the taker window
        plus 1h when a slow taker chain stretches it.
        """
        if len(counterparty_pubkey) != 33 or counterparty_pubkey[0] not in (2, 3):
            raise ValueError("Counterparty pubkey must be a 33-byte compressed key")
        for asset in (proposal.from_asset, proposal.to_asset):
            if asset.amount <= 0:
                raise ValueError(f"Amount on {asset.chain} must be positive")

        initiator = await self._get_chain(proposal.from_asset.chain)
        taker = await self._get_chain(proposal.to_asset.chain)

        key = self.store.generate_key()
        preimage = generate_preimage()
        self.store.save_preimage(preimage)

        initiator_blocks, taker_blocks = lock_blocks(initiator.information, taker.information)
        lock_time, counter_offer_lock_time = await asyncio.gather(
            self._lock_height(initiator, initiator_blocks),
            self._lock_height(taker, taker_blocks),
        )

        offer = Offer(
            initiator=OfferParty(asset=proposal.from_asset, pubkey=key.pubkey),
            taker=OfferParty(asset=proposal.to_asset, pubkey=bytes(counterparty_pubkey)),
            lock_time=lock_time,
            counter_offer_lock_time=counter_offer_lock_time,
            hash=preimage_hash(preimage),
        )
        self._set_state(offer, SwapState.PROPOSED)
        log.info(f"Offer proposed: {proposal.from_asset.amount} on {initiator.information.name} "
                 f"(lock {lock_time}) for {proposal.to_asset.amount} on {taker.information.name} "
                 f"(lock {counter_offer_lock_time})")
        return offer

    # =========================================================================
    # Funding
    # =========================================================================

    async def fund_and_broadcast(self, offer: Offer, watch: bool = False) -> str:
        """
        Fund the offer's HTLC from the initiator chain wallet and broadcast.

        With watch, the funding script is imported first so later spends of
        it (which carry the preimage) show up in wallet history.
        """
        chain = await self._get_chain(offer.initiator.asset.chain)
        ledger = chain.ledger

        tx = CMutableTransaction([], [funding_txout(offer)])
        if watch:
            await ledger.import_script(bytes(derive_funding_script(offer)))

        signed = await ledger.fund_and_sign(b2x(tx.serialize()))
        txid = await ledger.send_raw_transaction(signed)

        self._advance_state(offer, SwapState.FUNDED)
        log.info(f"Funding broadcast on {chain.information.name}: txid={txid}")
        return txid

    async def _wait_for_utxo(self, ledger: Ledger, address: str, amount: int,
                             min_conf: int, cancellation: Optional[asyncio.Event],
                             txid: Optional[str] = None) -> OutPoint:
        """Poll until an output of exactly amount with min_conf confirmations exists."""
        while True:
            check_cancelled(cancellation)
            for utxo in await ledger.list_unspent(min_conf, address):
                if utxo.amount != amount or utxo.confirmations < min_conf:
                    continue
                if txid is not None and utxo.txid != txid:
                    continue
                return OutPoint(txid=utxo.txid, vout=utxo.vout)
            await wait_or_cancel(self.config.poll_interval, cancellation)

    async def wait_for_funding(self, offer: Offer, required_confirmations: int = 0,
                               cancellation: Optional[asyncio.Event] = None) -> OutPoint:
        """
        Wait for the offer's HTLC output on the initiator chain.

        Only an output of exactly the offered amount counts. The outpoint
        is persisted, keyed by the funding script.
        """
        chain = await self._get_chain(offer.initiator.asset.chain)
        script_pubkey = bytes(derive_funding_script(offer))
        address = funding_address(offer, chain.information.bech32_hrp)

        await chain.ledger.import_script(script_pubkey)
        log.info(f"Waiting for {offer.initiator.asset.amount} at {address} "
                 f"({required_confirmations} conf)")

        outpoint = await self._wait_for_utxo(
            chain.ledger, address, offer.initiator.asset.amount,
            required_confirmations, cancellation,
        )
        self.store.save_offer(script_pubkey, outpoint)
        self._advance_state(offer, SwapState.FUNDED)
        log.info(f"Offer funded on {chain.information.name}: {outpoint}")
        return outpoint

    # =========================================================================
    # Disclosure
    # =========================================================================

    async def wait_for_disclosure(self, offer: Offer,
                                  cancellation: Optional[asyncio.Event] = None) -> bool:
        """
        Scan the initiator chain history until a spend reveals the preimage.

        Returns True once found (the preimage is persisted). Runs until then
        or until cancelled; restarts from the newest entry whenever the page
        is empty or the scan reaches stale entries.
        """
        chain = await self._get_chain(offer.initiator.asset.chain)
        ledger = chain.ledger
        cursor = HistoryCursor(
            page_size=self.config.history_page_size,
            stale_confirmations=self.config.stale_confirmations,
        )
        decoded_by_txid: Dict[str, dict] = {}

        while True:
            check_cancelled(cancellation)
            page = await ledger.list_transactions(cursor.page_size, cursor.next_page(), True)

            for entry in page:
                check_cancelled(cancellation)
                if not scannable(entry, cursor):
                    continue
                txid = entry["txid"]
                decoded = decoded_by_txid.get(txid)
                if decoded is None:
                    wallet_tx = await ledger.get_transaction(txid)
                    check_cancelled(cancellation)
                    decoded = await ledger.decode_raw_transaction(wallet_tx["hex"])
                    check_cancelled(cancellation)
                    decoded_by_txid[txid] = decoded

                preimage = find_preimage(decoded, offer.hash)
                if preimage is not None:
                    self.store.save_preimage(preimage)
                    self._advance_state(offer, SwapState.DISCLOSED)
                    log.info(f"Preimage disclosed on {chain.information.name} in {txid}")
                    return True

            if cursor.should_restart(page):
                log.debug(f"History scan pass {cursor.passes} done on {chain.information.name}, "
                          f"restarting ({len(decoded_by_txid)} txs decoded)")
                cursor.reset()
                await wait_or_cancel(self.config.poll_interval, cancellation)

    # =========================================================================
    # Claim
    # =========================================================================

    async def claim(self, offer: Offer) -> str:
        """
        Spend the offer's HTLC through the claim branch.

        Needs the preimage, the taker's private key and the funding outpoint
        in the store. The fee is taken out of the claimed amount.
        """
        chain = self.chains.resolve(offer.initiator.asset.chain)

        preimage = self.store.get_preimage(offer.hash)
        if preimage is None:
            raise PreconditionMissing("Unknown preimage")
        key = self.store.get_private_key(offer.taker.pubkey)
        if key is None:
            raise PreconditionMissing("Unknown pubkey")
        script_pubkey = bytes(derive_funding_script(offer))
        outpoint = self.store.get_offer(script_pubkey)
        if outpoint is None:
            raise PreconditionMissing("Unknown offer")

        await chain.ensure_ready()
        ledger = chain.ledger
        amount = offer.initiator.asset.amount
        redeem_script = derive_commitment_script(offer)

        destination = await ledger.get_new_address()
        txin = CMutableTxIn(COutPoint(lx(outpoint.txid), outpoint.vout))
        txout = CMutableTxOut(amount, CScript(destination.script_pubkey))
        tx = CMutableTransaction([txin], [txout])

        # Size with a placeholder signature, then sign the final amounts
        tx.wit = CTxWitness([CTxInWitness(derive_claim_witness(offer, PLACEHOLDER_SIGNATURE, preimage))])
        fee = (await self._get_fee_rate(chain)).get_fee(virtual_size(tx))
        if fee >= amount:
            raise ValueError(f"Fee {fee} exceeds claimable amount {amount}")
        tx.vout[0].nValue = amount - fee

        sighash = SignatureHash(
            script=redeem_script,
            txTo=tx,
            inIdx=0,
            hashtype=SIGHASH_ALL,
            amount=amount,
            sigversion=SIGVERSION_WITNESS_V0,
        )
        signature = key.sign(sighash) + bytes([SIGHASH_ALL])
        tx.wit = CTxWitness([CTxInWitness(derive_claim_witness(offer, signature, preimage))])

        await ledger.send_raw_transaction(b2x(tx.serialize()))
        txid = b2lx(tx.GetTxid())

        self._claims[script_pubkey] = ClaimRecord(
            txid=txid, destination=destination, value=amount - fee, fee=fee,
        )
        self._advance_state(offer, SwapState.CLAIMED)
        log.info(f"Claimed {amount - fee} (fee {fee}) on {chain.information.name}: "
                 f"txid={txid} -> {destination.address}")
        return txid

    async def wait_for_claim_confirmation(self, offer: Offer,
                                          cancellation: Optional[asyncio.Event] = None) -> OutPoint:
        """Wait until this coordinator's claim output has one confirmation."""
        claim = self.get_claim(offer)
        if claim is None:
            raise PreconditionMissing("No claim broadcast for this offer")
        chain = await self._get_chain(offer.initiator.asset.chain)
        outpoint = await self._wait_for_utxo(
            chain.ledger, claim.destination.address, claim.value, 1,
            cancellation, txid=claim.txid,
        )
        log.info(f"Claim confirmed on {chain.information.name}: {outpoint}")
        return outpoint
