"""
User balance model.

Mutable per-user, per-token, per-network balance aggregate.
"""

from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import DateTime, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from walletsync.models.base import Base
from walletsync.models.types import BigMoneyType


class UserBalance(Base):
    """
    Balance aggregate keyed by (user_id, token_symbol, network).

    Only ever changed through a single-statement upsert with increment,
    never by reading the balance and writing it back.
    """

    __tablename__ = "user_balances"
    __table_args__ = (
        UniqueConstraint(
            "user_id", "token_symbol", "network", name="uq_user_balances_key"
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    token_symbol: Mapped[str] = mapped_column(String(32), nullable=False)
    network: Mapped[str] = mapped_column(String(32), nullable=False)

    balance: Mapped[Decimal] = mapped_column(
        BigMoneyType, nullable=False, default=Decimal("0")
    )
    token_address: Mapped[str | None] = mapped_column(String(42), nullable=True)

    last_updated: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<UserBalance(user={self.user_id}, token={self.token_symbol}, "
            f"network={self.network}, balance={self.balance})>"
        )
