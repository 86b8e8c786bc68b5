"""
Database models.

Exports all SQLAlchemy models for easy imports.
"""

from walletsync.models.base import Base
from walletsync.models.enums import (
    IngestionSource,
    LedgerTransactionType,
    TransactionCategory,
    TransactionDirection,
    TransactionKind,
)
from walletsync.models.user_balance import UserBalance
from walletsync.models.user_transaction import UserTransaction
from walletsync.models.wallet import Wallet

__all__ = [
    "Base",
    "IngestionSource",
    "LedgerTransactionType",
    "TransactionCategory",
    "TransactionDirection",
    "TransactionKind",
    "UserBalance",
    "UserTransaction",
    "Wallet",
]
