"""
Chain data shapes.

Raw native transactions and token transfers as produced by the explorer
client and the webhook decoder, and the categorized records derived from
them.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from decimal import Decimal

from walletsync.models.enums import (
    LedgerTransactionType,
    TransactionCategory,
    TransactionDirection,
    TransactionKind,
)


@dataclass(frozen=True)
class NativeTransaction:
    """Native currency transfer (value in wei)."""

    hash: str
    block_number: int
    from_address: str
    to_address: str
    value: str
    timestamp: int | None = None
    gas_used: str | None = None
    gas_price: str | None = None


@dataclass(frozen=True)
class TokenTransfer:
    """ERC-20 token transfer (value in raw token units)."""

    hash: str
    block_number: int
    from_address: str
    to_address: str
    contract_address: str | None
    token_symbol: str
    token_name: str
    token_decimals: int | str | None
    value: str
    timestamp: int | None = None


@dataclass(frozen=True)
class TransactionRecordData:
    """Categorized transfer, ready to be applied to a user's ledger."""

    hash: str
    wallet_address: str
    direction: TransactionDirection
    kind: TransactionKind
    category: TransactionCategory
    amount: Decimal
    token_symbol: str
    network: str
    block_number: int
    from_address: str
    to_address: str
    token_address: str | None = None
    occurred_at: datetime | None = None

    @property
    def is_incoming(self) -> bool:
        """Check if transfer is incoming to the wallet."""
        return self.direction == TransactionDirection.IN

    @property
    def ledger_type(self) -> LedgerTransactionType:
        """Type stored on the ledger row."""
        if self.kind == TransactionKind.NATIVE:
            return LedgerTransactionType.DEPOSIT
        return LedgerTransactionType.TOKEN_IN

    @property
    def amount_str(self) -> str:
        """Amount as a plain decimal string."""
        return format_amount(self.amount)


@dataclass
class SyncStats:
    """Counters of a sync batch."""

    fetched: int = 0
    saved: int = 0
    duplicates: int = 0
    skipped_outgoing: int = 0
    errors: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        """Serialize in the shape consumed by the dashboard."""
        return {
            "totalTransactions": self.fetched,
            "savedTransactions": self.saved,
            "duplicateTransactions": self.duplicates,
            "errors": list(self.errors),
        }


@dataclass
class SyncResult:
    """Outcome of a sync call."""

    success: bool
    stats: SyncStats
    from_block: int = 0

    def to_dict(self) -> dict:
        """Serialize for API responses."""
        return {"success": self.success, "stats": self.stats.to_dict()}


def timestamp_to_datetime(timestamp: int | None) -> datetime | None:
    """Convert unix seconds to an aware UTC datetime."""
    if timestamp is None:
        return None
    return datetime.fromtimestamp(int(timestamp), tz=UTC)


def format_amount(amount: Decimal) -> str:
    """Render a decimal without exponent or trailing zeros."""
    if amount == 0:
        return "0"
    text = format(amount, "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text
