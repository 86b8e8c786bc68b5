"""
Wallet model.

Binds a chain address to exactly one user. Owned by the wallet
management part of the application; this core only reads it.
"""

from datetime import UTC, datetime

from sqlalchemy import DateTime, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from walletsync.models.base import Base


class Wallet(Base):
    """User wallet binding."""

    __tablename__ = "wallets"
    __table_args__ = (
        UniqueConstraint("address", "network", name="uq_wallets_address_network"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)

    # Stored as provided; lookups are case-insensitive
    address: Mapped[str] = mapped_column(String(42), nullable=False, index=True)
    network: Mapped[str] = mapped_column(
        String(32), nullable=False, default="BSC_MAINNET"
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )

    def __repr__(self) -> str:
        """String representation."""
        return f"<Wallet(user={self.user_id}, address={self.address}, network={self.network})>"
