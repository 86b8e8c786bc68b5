"""
User transaction model.

Immutable log of chain transactions applied to a user's ledger.
"""

from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import BigInteger, DateTime, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from walletsync.models.base import Base
from walletsync.models.types import BigMoneyType


class UserTransaction(Base):
    """
    Applied chain transaction.

    Written exactly once by either ingestion path and never updated.
    The (transaction_hash, user_id) unique constraint is the source of
    truth for deduplication: a second insert for the same pair fails.
    """

    __tablename__ = "user_transactions"
    __table_args__ = (
        UniqueConstraint(
            "transaction_hash", "user_id", name="uq_user_transactions_hash_user"
        ),
        Index(
            "ix_user_transactions_user_network_block",
            "user_id",
            "network",
            "block_number",
        ),
    )

    # Primary key
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    # Identification
    transaction_hash: Mapped[str] = mapped_column(String(66), nullable=False)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    wallet_address: Mapped[str] = mapped_column(String(42), nullable=False)

    # Classification
    direction: Mapped[str] = mapped_column(String(8), nullable=False)  # in, out
    kind: Mapped[str] = mapped_column(String(16), nullable=False)  # native, token
    transaction_type: Mapped[str] = mapped_column(
        String(20), nullable=False
    )  # deposit, token_in

    # Amount
    amount: Mapped[Decimal] = mapped_column(BigMoneyType, nullable=False)
    token_symbol: Mapped[str] = mapped_column(String(32), nullable=False)
    token_address: Mapped[str | None] = mapped_column(
        String(42), nullable=True
    )  # null for native currency

    # Chain position
    network: Mapped[str] = mapped_column(String(32), nullable=False)
    block_number: Mapped[int] = mapped_column(BigInteger, nullable=False)
    transaction_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    # Which ingestion path recorded it (poll, webhook)
    source: Mapped[str] = mapped_column(String(16), nullable=False, default="poll")

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<UserTransaction(hash={self.transaction_hash[:16]}..., "
            f"user={self.user_id}, amount={self.amount} {self.token_symbol}, "
            f"network={self.network})>"
        )
