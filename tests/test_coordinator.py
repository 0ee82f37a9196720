#!/usr/bin/env python3
"""
Swap coordinator tests against in-memory ledgers.

Alice initiates on bitcoin-regtest (chain A), Bob takes on
litecoin-regtest (chain B). Both coordinators share the same ledgers,
as two wallets on the same networks would.
"""

import asyncio
import os
import sys
import unittest
from datetime import timedelta

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))
sys.path.insert(0, os.path.dirname(__file__))

from bitcoin.core import CMutableTransaction, CTransaction, CTxInWitness, CTxWitness, b2lx, x
from bitcoin.core.script import SIGHASH_ALL, SIGVERSION_WITNESS_V0, SignatureHash

from htlcswap.chains.base import LedgerError, Utxo
from htlcswap.chains.registry import ChainBinding, ChainInformation, ChainRegistry
from htlcswap.config import find_chain_information
from htlcswap.core import ChainAsset, FeeRate, OutPoint, Proposal, SwapState, preimage_hash
from htlcswap.errors import Cancelled, ChainUnknown, ConfigurationError, PreconditionMissing
from htlcswap.htlc.contract import (
    CLAIM_BRANCH, PLACEHOLDER_SIGNATURE,
    derive_claim_witness, derive_commitment_script, derive_funding_script, funding_address, virtual_size,
)
from htlcswap.keys import verify_signature
from htlcswap.store import MemorySecretStore
from htlcswap.swap.coordinator import CoordinatorConfig, SwapCoordinator

from ledger_fakes import FakeLedger

FUNDING_TXID_A = "aa" * 32
FUNDING_TXID_B = "bb" * 32


def make_coordinator(ledger_a, ledger_b, chain_a="bitcoin-regtest", chain_b="litecoin-regtest"):
    registry = ChainRegistry([
        ChainBinding(information=find_chain_information(chain_a), ledger=ledger_a),
        ChainBinding(information=find_chain_information(chain_b), ledger=ledger_b),
    ])
    return SwapCoordinator(registry, MemorySecretStore(), CoordinatorConfig(poll_interval=0))


def confirm_funding(ledger, offer, hrp, txid, vout=0, confirmations=1, amount=None):
    ledger.utxos.append(Utxo(
        txid=txid,
        vout=vout,
        amount=offer.initiator.asset.amount if amount is None else amount,
        confirmations=confirmations,
        address=funding_address(offer, hrp),
    ))


def cancel_after(calls, cancellation, counter_attr):
    """Ledger hook that sets cancellation once the ledger saw `calls` calls."""
    def hook(ledger):
        seen = getattr(ledger, counter_attr)
        if (len(seen) if isinstance(seen, list) else seen) >= calls:
            cancellation.set()
    return hook


def claim_vin(preimage):
    return [{
        "txid": "cc" * 32,
        "vout": 0,
        "scriptSig": {"asm": "", "hex": ""},
        "txinwitness": ["3044" + "11" * 68 + "01", preimage.hex(), "01", "63a820" + "22" * 32],
    }]


def noise_vin():
    return [{"txid": "dd" * 32, "vout": 1, "scriptSig": {"asm": ""},
             "txinwitness": ["3044" + "33" * 68 + "01", "02" + "44" * 32]}]


def expected_claim_fee(tx, offer, preimage, rate):
    placeholder = CMutableTransaction.from_tx(tx)
    placeholder.vout[0].nValue = offer.initiator.asset.amount
    placeholder.wit = CTxWitness([CTxInWitness(derive_claim_witness(offer, PLACEHOLDER_SIGNATURE, preimage))])
    return rate.get_fee(virtual_size(placeholder))


class CoordinatorTestCase(unittest.IsolatedAsyncioTestCase):

    def setUp(self):
        self.ledger_a = FakeLedger(height=1000, fee_rate=FeeRate(20_000))
        self.ledger_b = FakeLedger(height=500, fee_rate=FeeRate(10_000))
        self.alice = make_coordinator(self.ledger_a, self.ledger_b)
        self.bob = make_coordinator(self.ledger_a, self.ledger_b)
        self.bob_pub = self.bob.new_pubkey()
        self.proposal = Proposal(
            from_asset=ChainAsset("bitcoin-regtest", 100_000),
            to_asset=ChainAsset("litecoin-regtest", 90_000),
        )

    async def propose(self):
        return await self.alice.propose(self.proposal, self.bob_pub)

    async def funded_offer(self):
        """Offer funded by Alice and seen by Bob."""
        offer = await self.propose()
        await self.alice.fund_and_broadcast(offer, watch=True)
        confirm_funding(self.ledger_a, offer, "bcrt", FUNDING_TXID_A)
        await self.bob.wait_for_funding(offer, 1)
        return offer


class TestPropose(CoordinatorTestCase):

    async def test_lock_heights(self):
        offer = await self.propose()
        # 2h of 10 min blocks on A, 1h of 2.5 min blocks on B
        self.assertEqual(offer.lock_time, 1000 + 12)
        self.assertEqual(offer.counter_offer_lock_time, 500 + 24)

    async def test_fresh_key_and_preimage(self):
        first = await self.propose()
        second = await self.propose()
        self.assertNotEqual(first.hash, second.hash)
        self.assertNotEqual(first.initiator.pubkey, second.initiator.pubkey)

        for offer in (first, second):
            preimage = self.alice.store.get_preimage(offer.hash)
            self.assertEqual(preimage_hash(preimage), offer.hash)
            self.assertIsNotNone(self.alice.store.get_private_key(offer.initiator.pubkey))
            self.assertEqual(offer.taker.pubkey, self.bob_pub)
            self.assertEqual(offer.initiator.asset, self.proposal.from_asset)
            self.assertEqual(offer.taker.asset, self.proposal.to_asset)
            self.assertEqual(self.alice.get_state(offer), SwapState.PROPOSED)

    async def test_unknown_chain(self):
        proposal = Proposal(ChainAsset("dogecoin", 1), ChainAsset("litecoin-regtest", 1))
        with self.assertRaises(ChainUnknown):
            await self.alice.propose(proposal, self.bob_pub)

    async def test_chain_names_case_insensitive(self):
        proposal = Proposal(ChainAsset("RBTC", 100_000), ChainAsset("Litecoin-Regtest", 90_000))
        offer = await self.alice.propose(proposal, self.bob_pub)
        self.assertEqual(offer.lock_time, 1012)

    async def test_invalid_input(self):
        with self.assertRaises(ValueError):
            await self.alice.propose(self.proposal, b"\x04" + b"\x01" * 32)
        with self.assertRaises(ValueError):
            await self.alice.propose(self.proposal, self.bob_pub[:32])
        with self.assertRaises(ValueError):
            await self.alice.propose(
                Proposal(ChainAsset("bitcoin-regtest", 0), ChainAsset("litecoin-regtest", 1)),
                self.bob_pub,
            )

    async def test_production_chain_without_fee(self):
        self.ledger_a.fee_error = True
        alice = make_coordinator(self.ledger_a, self.ledger_b, chain_a="bitcoin")
        with self.assertRaises(ConfigurationError):
            await alice.propose(Proposal(ChainAsset("bitcoin", 1), ChainAsset("rltc", 1)), self.bob_pub)

    async def test_test_chain_without_fee(self):
        self.ledger_a.fee_error = True
        offer = await self.propose()
        self.assertEqual(self.alice.get_state(offer), SwapState.PROPOSED)

    def fast_and_slow_coordinator(self):
        """Chain A: 10 min blocks, chain B: 90 min blocks."""
        registry = ChainRegistry([
            ChainBinding(information=ChainInformation(("fast",), "regtest", timedelta(minutes=10), "bcrt", True),
                         ledger=self.ledger_a),
            ChainBinding(information=ChainInformation(("slow",), "regtest", timedelta(minutes=90), "rltc", True),
                         ledger=self.ledger_b),
        ])
        return SwapCoordinator(registry, MemorySecretStore(), CoordinatorConfig(poll_interval=0))

    async def test_taker_chain_slower_than_an_hour(self):
        alice = self.fast_and_slow_coordinator()
        offer = await alice.propose(Proposal(ChainAsset("fast", 100_000), ChainAsset("slow", 90_000)), self.bob_pub)
        # One 90 min block on the taker chain, 2h30 on the initiator chain
        self.assertEqual(offer.counter_offer_lock_time, 500 + 1)
        self.assertEqual(offer.lock_time, 1000 + 15)
        margin = (offer.lock_time - 1000) * timedelta(minutes=10) - timedelta(minutes=90)
        self.assertGreaterEqual(margin, timedelta(hours=1))

    async def test_initiator_chain_slower_than_an_hour(self):
        alice = self.fast_and_slow_coordinator()
        offer = await alice.propose(Proposal(ChainAsset("slow", 100_000), ChainAsset("fast", 90_000)), self.bob_pub)
        # 2 blocks of 90 min on B against 6 blocks of 10 min on A
        self.assertEqual(offer.lock_time, 500 + 2)
        self.assertEqual(offer.counter_offer_lock_time, 1000 + 6)


class TestFunding(CoordinatorTestCase):

    async def test_fund_and_broadcast_with_watch(self):
        offer = await self.propose()
        txid = await self.alice.fund_and_broadcast(offer, watch=True)

        script = bytes(derive_funding_script(offer))
        self.assertEqual(self.ledger_a.imported, [script])
        self.assertIn(script.hex(), self.ledger_a.funded[0])
        self.assertEqual(self.ledger_a.broadcast, [self.ledger_a.funded[0] + "00"])
        self.assertEqual(len(txid), 64)
        self.assertEqual(self.alice.get_state(offer), SwapState.FUNDED)
        self.assertEqual(self.ledger_b.broadcast, [])

    async def test_fund_without_watch(self):
        offer = await self.propose()
        await self.alice.fund_and_broadcast(offer)
        self.assertEqual(self.ledger_a.imported, [])

    async def test_broadcast_failure_keeps_state(self):
        offer = await self.propose()
        self.ledger_a.fail_broadcast = True
        with self.assertRaises(LedgerError):
            await self.alice.fund_and_broadcast(offer)
        self.assertEqual(self.alice.get_state(offer), SwapState.PROPOSED)

    async def test_exact_amount_only(self):
        offer = await self.propose()
        confirm_funding(self.ledger_a, offer, "bcrt", "01" * 32, amount=99_999)
        confirm_funding(self.ledger_a, offer, "bcrt", "02" * 32, amount=100_001)

        def arrive(ledger):
            if ledger.unspent_calls == 3:
                confirm_funding(ledger, offer, "bcrt", FUNDING_TXID_A, vout=2)
        self.ledger_a.on_list_unspent = arrive

        outpoint = await self.bob.wait_for_funding(offer, 1)
        self.assertEqual(outpoint, OutPoint(FUNDING_TXID_A, 2))
        self.assertEqual(self.ledger_a.unspent_calls, 3)

        script = bytes(derive_funding_script(offer))
        self.assertEqual(self.bob.store.get_offer(script), outpoint)
        self.assertIn(script, self.ledger_a.imported)
        self.assertEqual(self.bob.get_state(offer), SwapState.FUNDED)

    async def test_waits_for_confirmations(self):
        offer = await self.propose()
        confirm_funding(self.ledger_a, offer, "bcrt", FUNDING_TXID_A, confirmations=0)

        # Zero confirmations satisfy a zero requirement right away
        self.assertEqual(await self.bob.wait_for_funding(offer), OutPoint(FUNDING_TXID_A, 0))

        def mine(ledger):
            if ledger.unspent_calls == 4:
                ledger.utxos = [Utxo(u.txid, u.vout, u.amount, 2, u.address) for u in ledger.utxos]
        self.ledger_a.on_list_unspent = mine

        await self.bob.wait_for_funding(offer, 2)
        self.assertEqual(self.ledger_a.unspent_calls, 4)

    async def test_cancel_while_waiting(self):
        offer = await self.propose()
        confirm_funding(self.ledger_a, offer, "bcrt", FUNDING_TXID_A, amount=1)
        cancellation = asyncio.Event()
        self.ledger_a.on_list_unspent = cancel_after(3, cancellation, "unspent_calls")

        with self.assertRaises(Cancelled):
            await self.bob.wait_for_funding(offer, 1, cancellation)
        self.assertIsNone(self.bob.store.get_offer(bytes(derive_funding_script(offer))))
        self.assertIsNone(self.bob.get_state(offer))

    async def test_cancelled_is_cancelled_error(self):
        offer = await self.propose()
        cancellation = asyncio.Event()
        cancellation.set()
        with self.assertRaises(asyncio.CancelledError):
            await self.bob.wait_for_funding(offer, 1, cancellation)
        self.assertEqual(self.ledger_a.unspent_calls, 0)

    async def test_concurrent_waits(self):
        offer = await self.propose()
        counter = offer.counter_offer()
        confirm_funding(self.ledger_a, offer, "bcrt", FUNDING_TXID_A)
        confirm_funding(self.ledger_b, counter, "rltc", FUNDING_TXID_B, vout=1)

        seen_a, seen_b = await asyncio.gather(
            self.bob.wait_for_funding(offer, 1),
            self.alice.wait_for_funding(counter, 1),
        )
        self.assertEqual(seen_a, OutPoint(FUNDING_TXID_A, 0))
        self.assertEqual(seen_b, OutPoint(FUNDING_TXID_B, 1))


class TestDisclosure(CoordinatorTestCase):

    async def asyncSetUp(self):
        self.offer = await self.propose()
        self.counter = self.offer.counter_offer()
        self.preimage = self.alice.store.get_preimage(self.offer.hash)

    async def test_found_at_depth_five(self):
        for i in range(6):
            self.ledger_b.add_history(f"old{i}", confirmations=10 + i, vin=noise_vin())
        self.ledger_b.add_history("claim", confirmations=5, category="send", vin=claim_vin(self.preimage))
        for i in range(4):
            self.ledger_b.add_history(f"new{i}", confirmations=4 - i, vin=noise_vin())

        self.assertTrue(await self.bob.wait_for_disclosure(self.counter))
        self.assertEqual(self.bob.store.get_preimage(self.offer.hash), self.preimage)
        self.assertEqual(self.bob.get_state(self.counter), SwapState.DISCLOSED)
        self.assertEqual(self.ledger_b.get_tx_calls, ["new3", "new2", "new1", "new0", "claim"])

    async def test_pages_through_history(self):
        self.ledger_b.add_history("claim", confirmations=30, category="send", vin=claim_vin(self.preimage))
        for i in range(22):
            self.ledger_b.add_history(f"tx{i}", confirmations=1, vin=noise_vin())

        self.assertTrue(await self.bob.wait_for_disclosure(self.counter))
        self.assertEqual(self.ledger_b.history_calls, [(10, 0), (10, 10), (10, 20)])

    async def test_stale_spend_not_used(self):
        self.ledger_b.add_history("claim", confirmations=200, category="send", vin=claim_vin(self.preimage))
        cancellation = asyncio.Event()
        self.ledger_b.on_list_transactions = cancel_after(3, cancellation, "history_calls")

        with self.assertRaises(Cancelled):
            await self.bob.wait_for_disclosure(self.counter, cancellation)

        self.assertIsNone(self.bob.store.get_preimage(self.offer.hash))
        self.assertEqual(self.ledger_b.get_tx_calls, [])
        # Every pass restarts from the newest entry
        self.assertEqual(self.ledger_b.history_calls, [(10, 0)] * 3)
        self.assertIsNone(self.bob.get_state(self.counter))

    async def test_spend_arriving_later(self):
        self.ledger_b.add_history("funding", confirmations=2, vin=noise_vin())

        def arrive(ledger):
            if len(ledger.history_calls) == 4:
                ledger.add_history("claim", confirmations=0, category="send", vin=claim_vin(self.preimage))
        self.ledger_b.on_list_transactions = arrive

        self.assertTrue(await self.bob.wait_for_disclosure(self.counter))
        # Runs off the end twice, the third pass sees the new spend
        self.assertEqual(self.ledger_b.history_calls, [(10, 0), (10, 10)] * 2 + [(10, 0)])
        self.assertEqual(self.bob.store.get_preimage(self.offer.hash), self.preimage)

    async def test_coinbase_skipped(self):
        self.ledger_b.add_history("reward", confirmations=3, category="generate", vin=claim_vin(self.preimage))
        self.ledger_b.add_history("young", confirmations=1, category="immature", vin=claim_vin(self.preimage))
        cancellation = asyncio.Event()
        self.ledger_b.on_list_transactions = cancel_after(4, cancellation, "history_calls")

        with self.assertRaises(Cancelled):
            await self.bob.wait_for_disclosure(self.counter, cancellation)
        self.assertEqual(self.ledger_b.get_tx_calls, [])

    async def test_decodes_each_transaction_once(self):
        # Wallet history lists a self-transfer twice (send and receive)
        self.ledger_b.add_history("self", confirmations=1, category="receive", vin=noise_vin())
        self.ledger_b.add_history("self", confirmations=1, category="send", vin=noise_vin())
        cancellation = asyncio.Event()
        self.ledger_b.on_list_transactions = cancel_after(5, cancellation, "history_calls")

        with self.assertRaises(Cancelled):
            await self.bob.wait_for_disclosure(self.counter, cancellation)
        self.assertEqual(self.ledger_b.get_tx_calls, ["self"])

    async def test_cancelled_mid_page(self):
        self.ledger_b.add_history("claim", confirmations=1, category="send", vin=claim_vin(self.preimage))
        for i in range(9):
            self.ledger_b.add_history(f"tx{i}", confirmations=1, vin=noise_vin())
        cancellation = asyncio.Event()
        self.ledger_b.on_get_transaction = cancel_after(1, cancellation, "get_tx_calls")

        with self.assertRaises(Cancelled):
            await self.bob.wait_for_disclosure(self.counter, cancellation)
        # The rest of the page is left unread
        self.assertEqual(self.ledger_b.get_tx_calls, ["tx8"])
        self.assertIsNone(self.bob.store.get_preimage(self.offer.hash))
        self.assertIsNone(self.bob.get_state(self.counter))

    async def test_cancelled_before_start(self):
        cancellation = asyncio.Event()
        cancellation.set()
        with self.assertRaises(Cancelled):
            await self.bob.wait_for_disclosure(self.counter, cancellation)
        self.assertEqual(self.ledger_b.history_calls, [])


class TestClaim(CoordinatorTestCase):

    async def test_unknown_preimage(self):
        offer = await self.funded_offer()
        with self.assertRaisesRegex(PreconditionMissing, "Unknown preimage"):
            await self.bob.claim(offer)

    async def test_unknown_pubkey(self):
        offer = await self.funded_offer()
        carol = make_coordinator(self.ledger_a, self.ledger_b)
        carol.store.save_preimage(self.alice.store.get_preimage(offer.hash))
        with self.assertRaisesRegex(PreconditionMissing, "Unknown pubkey"):
            await carol.claim(offer)

    async def test_unknown_offer(self):
        offer = await self.propose()
        self.bob.store.save_preimage(self.alice.store.get_preimage(offer.hash))
        with self.assertRaisesRegex(PreconditionMissing, "Unknown offer"):
            await self.bob.claim(offer)
        self.assertEqual(self.ledger_a.broadcast, [])

    async def test_full_swap(self):
        offer = await self.funded_offer()
        counter = offer.counter_offer()

        # Bob funds his leg on chain B, Alice sees it and claims
        await self.bob.fund_and_broadcast(counter, watch=True)
        self.assertEqual(self.ledger_b.imported, [bytes(derive_funding_script(counter))])
        confirm_funding(self.ledger_b, counter, "rltc", FUNDING_TXID_B, vout=1)
        await self.alice.wait_for_funding(counter, 1)
        alice_claim = await self.alice.claim(counter)

        # The claim reveals the preimage to Bob
        self.ledger_b.add_broadcast_to_history(confirmations=1)
        self.assertTrue(await self.bob.wait_for_disclosure(counter))
        preimage = self.bob.store.get_preimage(offer.hash)
        self.assertEqual(preimage, self.alice.store.get_preimage(offer.hash))

        bob_claim = await self.bob.claim(offer)

        tx = CTransaction.deserialize(x(self.ledger_a.broadcast[-1]))
        self.assertEqual(b2lx(tx.GetTxid()), bob_claim)
        self.assertEqual(len(tx.vin), 1)
        self.assertEqual(b2lx(tx.vin[0].prevout.hash), FUNDING_TXID_A)
        self.assertEqual(tx.vin[0].prevout.n, 0)
        self.assertEqual(len(tx.vout), 1)

        fee = expected_claim_fee(tx, offer, preimage, FeeRate(20_000))
        self.assertGreater(fee, 0)
        self.assertEqual(tx.vout[0].nValue, 100_000 - fee)
        self.assertEqual(self.bob.get_claim(offer).fee, fee)

        stack = list(tx.wit.vtxinwit[0].scriptWitness.stack)
        self.assertEqual(stack[1:], [preimage, CLAIM_BRANCH, bytes(derive_commitment_script(offer))])
        signature = stack[0]
        self.assertEqual(signature[-1], SIGHASH_ALL)
        sighash = SignatureHash(
            derive_commitment_script(offer), tx, 0, SIGHASH_ALL,
            amount=100_000, sigversion=SIGVERSION_WITNESS_V0,
        )
        self.assertTrue(verify_signature(self.bob_pub, sighash, signature[:-1]))

        # Alice's claim on chain B pays 90_000 minus fee at chain B's rate
        alice_tx = CTransaction.deserialize(x(self.ledger_b.broadcast[-1]))
        self.assertEqual(b2lx(alice_tx.GetTxid()), alice_claim)
        self.assertEqual(b2lx(alice_tx.vin[0].prevout.hash), FUNDING_TXID_B)
        self.assertEqual(alice_tx.vin[0].prevout.n, 1)
        self.assertEqual(
            alice_tx.vout[0].nValue,
            90_000 - expected_claim_fee(alice_tx, counter, preimage, FeeRate(10_000)),
        )

        self.assertEqual(self.alice.get_state(offer), SwapState.FUNDED)
        self.assertEqual(self.alice.get_state(counter), SwapState.CLAIMED)
        self.assertEqual(self.bob.get_state(offer), SwapState.CLAIMED)
        self.assertEqual(self.bob.get_state(counter), SwapState.DISCLOSED)

        # States never move backwards
        await self.alice.wait_for_funding(counter, 1)
        self.assertEqual(self.alice.get_state(counter), SwapState.CLAIMED)

    async def test_fallback_fee_on_test_chain(self):
        offer = await self.funded_offer()
        self.bob.store.save_preimage(self.alice.store.get_preimage(offer.hash))
        self.ledger_a.fee_error = True

        await self.bob.claim(offer)
        tx = CTransaction.deserialize(x(self.ledger_a.broadcast[-1]))
        fee = expected_claim_fee(tx, offer, self.bob.store.get_preimage(offer.hash), FeeRate(50_000))
        self.assertEqual(tx.vout[0].nValue, 100_000 - fee)

    async def test_fee_failure_on_production_chain(self):
        alice = make_coordinator(self.ledger_a, self.ledger_b, chain_a="bitcoin")
        bob = make_coordinator(self.ledger_a, self.ledger_b, chain_a="bitcoin")
        bob_pub = bob.new_pubkey()
        offer = await alice.propose(Proposal(ChainAsset("bitcoin", 100_000), ChainAsset("rltc", 1)), bob_pub)
        confirm_funding(self.ledger_a, offer, "bc", FUNDING_TXID_A)
        await bob.wait_for_funding(offer, 1)
        bob.store.save_preimage(alice.store.get_preimage(offer.hash))

        self.ledger_a.fee_error = True
        with self.assertRaises(LedgerError):
            await bob.claim(offer)
        self.assertEqual(self.ledger_a.broadcast, [])

    async def test_fee_exceeds_amount(self):
        offer = await self.funded_offer()
        self.bob.store.save_preimage(self.alice.store.get_preimage(offer.hash))
        self.ledger_a.fee_rate = FeeRate(10_000_000)
        with self.assertRaises(ValueError):
            await self.bob.claim(offer)
        self.assertEqual(self.bob.get_state(offer), SwapState.FUNDED)

    async def test_wait_for_claim_confirmation(self):
        offer = await self.funded_offer()
        with self.assertRaises(PreconditionMissing):
            await self.bob.wait_for_claim_confirmation(offer)

        self.bob.store.save_preimage(self.alice.store.get_preimage(offer.hash))
        txid = await self.bob.claim(offer)
        claim = self.bob.get_claim(offer)
        self.assertEqual(claim.txid, txid)

        # Unconfirmed at first, then mined
        self.ledger_a.utxos.append(Utxo(txid, 0, claim.value, 0, claim.destination.address))

        def mine(ledger):
            if ledger.unspent_calls >= 3:
                ledger.utxos = [Utxo(u.txid, u.vout, u.amount, 1, u.address) for u in ledger.utxos]
        self.ledger_a.unspent_calls = 0
        self.ledger_a.on_list_unspent = mine

        outpoint = await self.bob.wait_for_claim_confirmation(offer)
        self.assertEqual(outpoint, OutPoint(txid, 0))
        self.assertEqual(self.ledger_a.unspent_calls, 3)


if __name__ == "__main__":
    unittest.main()
