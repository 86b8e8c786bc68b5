"""
Services.

Business logic layer.
"""

from walletsync.services.base_service import BaseService, log_operation
from walletsync.services.categorizer import categorize, incoming_only
from walletsync.services.chain_reader import ExplorerClient
from walletsync.services.chain_types import (
    NativeTransaction,
    SyncResult,
    SyncStats,
    TokenTransfer,
    TransactionRecordData,
)
from walletsync.services.ledger_service import (
    ApplyOutcome,
    BalanceDrift,
    LedgerService,
)
from walletsync.services.sync_service import SyncService
from walletsync.services.token_symbols import normalize_token_symbol
from walletsync.services.webhook import AlchemyEventDecoder, WebhookService

__all__ = [
    # Base
    "BaseService",
    "log_operation",
    # Chain data
    "ExplorerClient",
    "NativeTransaction",
    "TokenTransfer",
    "TransactionRecordData",
    "categorize",
    "incoming_only",
    "normalize_token_symbol",
    # Ledger
    "ApplyOutcome",
    "BalanceDrift",
    "LedgerService",
    # Sync
    "SyncResult",
    "SyncStats",
    "SyncService",
    # Webhook
    "AlchemyEventDecoder",
    "WebhookService",
]
