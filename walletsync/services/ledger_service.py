"""
Balance ledger service.

Applies incoming chain transactions to per-(user, token, network) balances.
`apply_incoming` is the single routine both ingestion paths go through:
existence check, record insert and balance credit in one database
transaction, with the (hash, user) unique constraint deciding duplicates.
"""

from dataclasses import dataclass
from decimal import Decimal
from enum import StrEnum
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from walletsync.config.constants import DEFAULT_HISTORY_LIMIT
from walletsync.models.enums import IngestionSource
from walletsync.models.user_balance import UserBalance
from walletsync.models.user_transaction import UserTransaction
from walletsync.repositories.balance_repository import BalanceRepository
from walletsync.repositories.transaction_repository import TransactionRepository
from walletsync.services.base_service import BaseService
from walletsync.services.chain_types import TransactionRecordData, format_amount
from walletsync.utils.exceptions import PersistenceConflict, ValidationError
from walletsync.utils.security import mask_tx_hash
from walletsync.utils.validation import parse_positive_amount


# Fragments identifying a (hash, user) unique violation in driver messages
_DUPLICATE_MARKERS = (
    "uq_user_transactions_hash_user",
    "user_transactions.transaction_hash",
)


class ApplyOutcome(StrEnum):
    """Result of applying one incoming record."""

    RECORDED = "recorded"
    DUPLICATE = "duplicate"


@dataclass(frozen=True)
class BalanceDrift:
    """Balance aggregate that differs from the sum of its incoming records."""

    user_id: str
    token_symbol: str
    network: str
    balance: Decimal
    incoming_total: Decimal

    @property
    def drift(self) -> Decimal:
        """Balance minus recorded incoming total (negative after debits)."""
        return self.balance - self.incoming_total


def _is_duplicate_violation(error: IntegrityError) -> bool:
    text = str(error.orig) if error.orig is not None else str(error)
    return any(marker in text for marker in _DUPLICATE_MARKERS)


class LedgerService(BaseService):
    """
    Balance ledger.

    Each write commits its own transaction. Callers must not hold an
    open transaction on the session across calls.
    """

    def __init__(self, session: AsyncSession) -> None:
        """
        Initialize ledger service.

        Args:
            session: Async database session
        """
        super().__init__(session)
        self.transaction_repo = TransactionRepository(session)
        self.balance_repo = BalanceRepository(session)

    async def credit(
        self,
        user_id: str,
        token_symbol: str,
        network: str,
        amount: Decimal | str,
        token_address: str | None = None,
    ) -> None:
        """
        Atomically add a positive amount to a balance and commit.

        Args:
            user_id: User ID
            token_symbol: Canonical token symbol
            network: Network key
            amount: Amount to add (must be > 0)
            token_address: Token contract address (None for native)

        Raises:
            ValidationError: If amount is not positive
        """
        try:
            value = parse_positive_amount(amount)
        except ValueError as e:
            raise ValidationError(str(e), {"amount": str(amount)}) from e

        try:
            await self.balance_repo.increment(
                user_id, token_symbol, network, value, token_address
            )
            await self.commit()
        except Exception:
            await self.rollback()
            raise

        self.logger.debug(
            f"[Ledger] Credited {format_amount(value)} {token_symbol} "
            f"on {network} to user {user_id}"
        )

    async def apply_incoming(
        self,
        record: TransactionRecordData,
        user_id: str,
        source: IngestionSource = IngestionSource.POLL,
    ) -> ApplyOutcome:
        """
        Record an incoming transaction and credit its amount exactly once.

        Args:
            record: Categorized incoming record
            user_id: Owner of the receiving wallet
            source: Ingestion path applying the record

        Returns:
            RECORDED if newly applied, DUPLICATE if already recorded

        Raises:
            ValidationError: If the record is not incoming or has a negative amount
        """
        if not record.is_incoming:
            raise ValidationError(
                "Only incoming transactions are applied to the ledger",
                {"hash": record.hash, "direction": str(record.direction)},
            )
        if record.amount < 0:
            raise ValidationError(
                "Negative transfer amount", {"hash": record.hash, "amount": record.amount_str}
            )

        tx_hash = record.hash.lower()

        # Cheap pre-check; the unique constraint remains authoritative
        try:
            already_recorded = await self.transaction_repo.exists_for_user(tx_hash, user_id)
        finally:
            await self.rollback()
        if already_recorded:
            return ApplyOutcome.DUPLICATE

        try:
            await self.record_incoming(record, user_id, source)
        except PersistenceConflict as e:
            self.logger.debug(
                f"[Ledger] {e.message}: {mask_tx_hash(tx_hash)} (user {user_id}, {source})"
            )
            return ApplyOutcome.DUPLICATE

        self.logger.info(
            f"[Ledger] Recorded {record.amount_str} {record.token_symbol} "
            f"({record.network}) for user {user_id}: {mask_tx_hash(tx_hash)} via {source}"
        )
        return ApplyOutcome.RECORDED

    async def record_incoming(
        self,
        record: TransactionRecordData,
        user_id: str,
        source: IngestionSource,
    ) -> None:
        """
        Insert the record and credit its amount in one committed transaction.

        Raises:
            PersistenceConflict: If (hash, user) is already recorded
        """
        tx_hash = record.hash.lower()
        try:
            await self.transaction_repo.create(
                transaction_hash=tx_hash,
                user_id=user_id,
                wallet_address=record.wallet_address,
                direction=record.direction.value,
                kind=record.kind.value,
                transaction_type=record.ledger_type.value,
                amount=record.amount,
                token_symbol=record.token_symbol,
                token_address=record.token_address,
                network=record.network,
                block_number=record.block_number,
                transaction_date=record.occurred_at,
                source=source.value,
            )
            # Zero-value transfers are logged but move no balance
            if record.amount > 0:
                await self.balance_repo.increment(
                    user_id,
                    record.token_symbol,
                    record.network,
                    record.amount,
                    record.token_address,
                )
            await self.commit()
        except IntegrityError as e:
            await self.rollback()
            if not _is_duplicate_violation(e):
                raise
            raise PersistenceConflict(
                "Transaction already recorded",
                {"hash": tx_hash, "user_id": user_id},
            ) from e
        except Exception:
            await self.rollback()
            raise

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    async def get_balances(self, user_id: str) -> list[UserBalance]:
        """Get all balance aggregates of a user."""
        return await self.balance_repo.get_for_user(user_id)

    async def get_balance(self, user_id: str, token_symbol: str, network: str) -> Decimal:
        """Get a single balance, zero when never credited."""
        balance = await self.balance_repo.get_balance(user_id, token_symbol, network)
        return balance if balance is not None else Decimal("0")

    async def get_balance_summary(self, user_id: str) -> dict[str, Any]:
        """
        Summarize balances for dashboard display.

        Returns:
            Dict with totalTokens and a balances list of {token, balance, network}
        """
        balances = await self.get_balances(user_id)
        return {
            "totalTokens": len(balances),
            "balances": [
                {
                    "token": balance.token_symbol,
                    "balance": format_amount(Decimal(str(balance.balance))),
                    "network": balance.network,
                }
                for balance in balances
            ],
        }

    async def get_transaction_history(
        self,
        user_id: str,
        limit: int = DEFAULT_HISTORY_LIMIT,
    ) -> list[UserTransaction]:
        """Get recorded transactions, most recent first."""
        return await self.transaction_repo.get_history(user_id, limit)

    async def reconcile(self, user_id: str) -> list[BalanceDrift]:
        """
        Compare each balance with the sum of its recorded incoming transactions.

        Drift is reported, never corrected: outbound debits applied outside
        this ledger legitimately lower balances below the incoming total.

        Args:
            user_id: User ID

        Returns:
            Keys whose balance differs from the incoming total
        """
        balances = await self.get_balances(user_id)
        totals = await self.transaction_repo.sum_incoming_by_key(user_id)

        drifts: list[BalanceDrift] = []
        seen: set[tuple[str, str]] = set()

        for balance in balances:
            key = (balance.token_symbol, balance.network)
            seen.add(key)
            current = Decimal(str(balance.balance))
            incoming = totals.get(key, Decimal("0"))
            if current != incoming:
                drifts.append(
                    BalanceDrift(user_id, balance.token_symbol, balance.network, current, incoming)
                )

        for (symbol, network), incoming in totals.items():
            if (symbol, network) not in seen and incoming != 0:
                drifts.append(BalanceDrift(user_id, symbol, network, Decimal("0"), incoming))

        if drifts:
            self.logger.warning(
                f"[Ledger] {len(drifts)} balance drift(s) for user {user_id}: "
                + ", ".join(f"{d.token_symbol}/{d.network} {format_amount(d.drift)}" for d in drifts)
            )
        return drifts
