"""
Enumerations shared by models and services.
"""

from enum import StrEnum


class TransactionDirection(StrEnum):
    """Direction of a transfer relative to the user's wallet."""

    IN = "in"
    OUT = "out"


class TransactionKind(StrEnum):
    """Native currency transfer or smart-contract token transfer."""

    NATIVE = "native"
    TOKEN = "token"


class TransactionCategory(StrEnum):
    """Display category assigned by the categorizer."""

    DEPOSIT = "deposit"
    WITHDRAW = "withdraw"
    TOKEN_TRANSFER = "token_transfer"


class LedgerTransactionType(StrEnum):
    """Type stored on ledger rows (only incoming activity is recorded)."""

    DEPOSIT = "deposit"
    TOKEN_IN = "token_in"


class IngestionSource(StrEnum):
    """Ingestion path that recorded a transaction."""

    POLL = "poll"
    WEBHOOK = "webhook"
