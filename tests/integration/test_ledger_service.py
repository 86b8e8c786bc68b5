"""
Integration tests for the balance ledger.

Runs against a file-backed SQLite database so that concurrent sessions
hold separate connections.
"""

import asyncio
from datetime import UTC, datetime
from decimal import Decimal

import pytest

from walletsync.models.enums import (
    IngestionSource,
    TransactionCategory,
    TransactionDirection,
    TransactionKind,
)
from walletsync.services.chain_types import TransactionRecordData
from walletsync.services.ledger_service import ApplyOutcome, LedgerService
from walletsync.utils.exceptions import PersistenceConflict, ValidationError

pytestmark = pytest.mark.integration

USER_ADDRESS = "0x742d35cc6634c0532925a3b844bc9e7595f0beb0"
OTHER_ADDRESS = "0x8894e0a0c962cb723c1976a4421c95949be2d4e3"
USDT_CONTRACT = "0x55d398326f99059ff775485246999027b3197955"


def incoming(
    tx_hash: str,
    amount: str,
    token_symbol: str = "USDT",
    block_number: int = 100,
    kind: TransactionKind = TransactionKind.TOKEN,
    direction: TransactionDirection = TransactionDirection.IN,
) -> TransactionRecordData:
    return TransactionRecordData(
        hash=tx_hash,
        wallet_address=USER_ADDRESS,
        direction=direction,
        kind=kind,
        category=(
            TransactionCategory.TOKEN_TRANSFER
            if kind == TransactionKind.TOKEN
            else TransactionCategory.DEPOSIT
        ),
        amount=Decimal(amount),
        token_symbol=token_symbol,
        network="BSC_MAINNET",
        block_number=block_number,
        from_address=OTHER_ADDRESS,
        to_address=USER_ADDRESS,
        token_address=USDT_CONTRACT if kind == TransactionKind.TOKEN else None,
        occurred_at=datetime(2024, 1, 1, tzinfo=UTC),
    )


class TestApplyIncoming:
    """Test exactly-once application of incoming records."""

    @pytest.mark.asyncio
    async def test_applied_once(self, session, make_hash):
        """Applying the same record twice credits once."""
        ledger = LedgerService(session)
        record = incoming(make_hash(1), "5")

        first = await ledger.apply_incoming(record, "user-1")
        second = await ledger.apply_incoming(record, "user-1")

        assert first == ApplyOutcome.RECORDED
        assert second == ApplyOutcome.DUPLICATE
        assert await ledger.get_balance("user-1", "USDT", "BSC_MAINNET") == Decimal("5")
        assert len(await ledger.get_transaction_history("user-1")) == 1

    @pytest.mark.asyncio
    async def test_hash_case_does_not_bypass_dedupe(self, session):
        """Hashes are compared lower-cased."""
        ledger = LedgerService(session)
        tx_hash = "0x" + "AB" * 32

        await ledger.apply_incoming(incoming(tx_hash, "1"), "user-1")
        outcome = await ledger.apply_incoming(incoming(tx_hash.lower(), "1"), "user-1")

        assert outcome == ApplyOutcome.DUPLICATE
        history = await ledger.get_transaction_history("user-1")
        assert [tx.transaction_hash for tx in history] == [tx_hash.lower()]

    @pytest.mark.asyncio
    async def test_unique_constraint_is_authoritative(self, session, make_hash, monkeypatch):
        """A duplicate missed by the pre-check is caught by the constraint."""
        ledger = LedgerService(session)
        record = incoming(make_hash(1), "5")
        await ledger.apply_incoming(record, "user-1")

        async def never_exists(tx_hash, user_id):
            return False

        monkeypatch.setattr(ledger.transaction_repo, "exists_for_user", never_exists)

        outcome = await ledger.apply_incoming(record, "user-1")

        assert outcome == ApplyOutcome.DUPLICATE
        assert await ledger.get_balance("user-1", "USDT", "BSC_MAINNET") == Decimal("5")

    @pytest.mark.asyncio
    async def test_second_insert_raises_persistence_conflict(self, session, make_hash):
        """The constraint violation surfaces as PersistenceConflict and is rolled back."""
        ledger = LedgerService(session)
        record = incoming(make_hash(2), "5")
        await ledger.record_incoming(record, "user-1", IngestionSource.POLL)

        with pytest.raises(PersistenceConflict) as exc_info:
            await ledger.record_incoming(record, "user-1", IngestionSource.WEBHOOK)

        assert exc_info.value.code == "PERSISTENCE_CONFLICT"
        assert exc_info.value.details == {"hash": make_hash(2), "user_id": "user-1"}
        assert await ledger.get_balance("user-1", "USDT", "BSC_MAINNET") == Decimal("5")
        history = await ledger.get_transaction_history("user-1")
        assert [tx.source for tx in history] == ["poll"]

    @pytest.mark.asyncio
    async def test_concurrent_apply_of_same_record(self, session_maker, make_hash):
        """Two sessions racing on one record: one records, one is a duplicate."""
        record = incoming(make_hash(9), "3")

        async def apply():
            async with session_maker() as session:
                return await LedgerService(session).apply_incoming(record, "user-1")

        outcomes = await asyncio.gather(apply(), apply())

        assert sorted(outcomes) == [ApplyOutcome.DUPLICATE, ApplyOutcome.RECORDED]
        async with session_maker() as session:
            balance = await LedgerService(session).get_balance("user-1", "USDT", "BSC_MAINNET")
        assert balance == Decimal("3")

    @pytest.mark.asyncio
    async def test_same_hash_for_two_users(self, session, make_hash):
        """Dedupe is per (hash, user)."""
        ledger = LedgerService(session)
        record = incoming(make_hash(1), "2")

        assert await ledger.apply_incoming(record, "user-1") == ApplyOutcome.RECORDED
        assert await ledger.apply_incoming(record, "user-2") == ApplyOutcome.RECORDED

        assert await ledger.get_balance("user-1", "USDT", "BSC_MAINNET") == Decimal("2")
        assert await ledger.get_balance("user-2", "USDT", "BSC_MAINNET") == Decimal("2")

    @pytest.mark.asyncio
    async def test_native_and_token_records_keep_separate_balances(self, session, make_hash):
        """Each (token, network) key has its own balance."""
        ledger = LedgerService(session)

        await ledger.apply_incoming(
            incoming(make_hash(1), "1.5", token_symbol="BNB", kind=TransactionKind.NATIVE),
            "user-1",
        )
        await ledger.apply_incoming(incoming(make_hash(2), "5"), "user-1")

        summary = await ledger.get_balance_summary("user-1")
        assert summary == {
            "totalTokens": 2,
            "balances": [
                {"token": "BNB", "balance": "1.5", "network": "BSC_MAINNET"},
                {"token": "USDT", "balance": "5", "network": "BSC_MAINNET"},
            ],
        }

    @pytest.mark.asyncio
    async def test_zero_amount_recorded_without_credit(self, session, make_hash):
        """Zero-value transfers are logged but create no balance."""
        ledger = LedgerService(session)

        outcome = await ledger.apply_incoming(incoming(make_hash(1), "0"), "user-1")

        assert outcome == ApplyOutcome.RECORDED
        assert await ledger.get_balances("user-1") == []
        assert await ledger.get_balance("user-1", "USDT", "BSC_MAINNET") == Decimal("0")
        assert len(await ledger.get_transaction_history("user-1")) == 1

    @pytest.mark.asyncio
    async def test_outgoing_record_rejected(self, session, make_hash):
        """Only incoming records reach the ledger."""
        ledger = LedgerService(session)
        record = incoming(make_hash(1), "5", direction=TransactionDirection.OUT)

        with pytest.raises(ValidationError):
            await ledger.apply_incoming(record, "user-1")

        assert await ledger.get_transaction_history("user-1") == []

    @pytest.mark.asyncio
    async def test_source_is_stored(self, session, make_hash):
        """The ingestion path is kept on the record."""
        ledger = LedgerService(session)

        await ledger.apply_incoming(incoming(make_hash(1), "1"), "user-1", IngestionSource.WEBHOOK)

        history = await ledger.get_transaction_history("user-1")
        assert history[0].source == "webhook"
        assert history[0].transaction_type == "token_in"
        assert history[0].direction == "in"


class TestCredit:
    """Test the atomic balance upsert."""

    @pytest.mark.asyncio
    async def test_creates_then_increments(self, session):
        """First credit creates the row, later credits add to it."""
        ledger = LedgerService(session)

        await ledger.credit("user-1", "USDT", "BSC_MAINNET", "100", USDT_CONTRACT)
        await ledger.credit("user-1", "USDT", "BSC_MAINNET", Decimal("0.5"))

        balances = await ledger.get_balances("user-1")
        assert len(balances) == 1
        assert Decimal(str(balances[0].balance)) == Decimal("100.5")
        assert balances[0].token_address == USDT_CONTRACT

    @pytest.mark.asyncio
    async def test_concurrent_credits_are_not_lost(self, session_maker):
        """Seed 100, then credit 10 and 15 concurrently: 125."""

        async def credit(amount: str) -> None:
            async with session_maker() as session:
                await LedgerService(session).credit("user-1", "USDT", "BSC_MAINNET", amount)

        await credit("100")
        await asyncio.gather(credit("10"), credit("15"))

        async with session_maker() as session:
            balance = await LedgerService(session).get_balance("user-1", "USDT", "BSC_MAINNET")
        assert balance == Decimal("125")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("amount", ["0", "-5", "abc"])
    async def test_non_positive_amount_rejected(self, session, amount):
        """Credits must be positive."""
        ledger = LedgerService(session)

        with pytest.raises(ValidationError):
            await ledger.credit("user-1", "USDT", "BSC_MAINNET", amount)

        assert await ledger.get_balances("user-1") == []


class TestReconcile:
    """Test balance vs. transaction log consistency."""

    @pytest.mark.asyncio
    async def test_balances_equal_incoming_totals(self, session, make_hash):
        """Balances built only by apply_incoming show no drift."""
        ledger = LedgerService(session)
        for n, amount in enumerate(["1", "2.25", "3"], start=1):
            await ledger.apply_incoming(incoming(make_hash(n), amount, block_number=n), "user-1")

        assert await ledger.get_balance("user-1", "USDT", "BSC_MAINNET") == Decimal("6.25")
        assert await ledger.reconcile("user-1") == []

    @pytest.mark.asyncio
    async def test_direct_credit_reported_as_drift(self, session, make_hash):
        """A credit with no backing record shows up as drift."""
        ledger = LedgerService(session)
        await ledger.apply_incoming(incoming(make_hash(1), "4"), "user-1")
        await ledger.credit("user-1", "USDT", "BSC_MAINNET", "1")

        drifts = await ledger.reconcile("user-1")

        assert len(drifts) == 1
        assert drifts[0].token_symbol == "USDT"
        assert drifts[0].balance == Decimal("5")
        assert drifts[0].incoming_total == Decimal("4")
        assert drifts[0].drift == Decimal("1")
