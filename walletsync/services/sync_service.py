"""
Sync orchestrator.

Decides which block range of a wallet is new, pulls it from the block
explorer and applies the incoming part to the ledger. Resumable: the
cursor is derived from what is already recorded, so a failed call is
retried by simply calling again.
"""

import asyncio
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from walletsync.config.constants import (
    EXPLORER_MAX_PAGE_SIZE,
    SYNC_DEFAULT_MAX_PAGES,
    SYNC_SWEEP_DELAY_SECONDS,
)
from walletsync.config.networks import NETWORKS, resolve_network
from walletsync.models.enums import IngestionSource
from walletsync.repositories.transaction_repository import TransactionRepository
from walletsync.repositories.wallet_repository import WalletRepository
from walletsync.services.base_service import BaseService, log_operation
from walletsync.services.categorizer import categorize, incoming_only
from walletsync.services.chain_reader import ExplorerClient
from walletsync.services.chain_types import SyncResult, SyncStats
from walletsync.services.ledger_service import ApplyOutcome, LedgerService
from walletsync.utils.exceptions import (
    ProviderNotConfigured,
    UnexpectedError,
    ValidationError,
    is_retryable,
)
from walletsync.utils.security import mask_address, mask_tx_hash


class SyncService(BaseService):
    """Incremental poll-based sync of wallet activity into the ledger."""

    def __init__(
        self,
        session: AsyncSession,
        explorer: ExplorerClient,
        default_network: str = "BSC_MAINNET",
        page_size: int = EXPLORER_MAX_PAGE_SIZE,
        max_pages: int = SYNC_DEFAULT_MAX_PAGES,
    ) -> None:
        """
        Initialize sync service.

        Args:
            session: Async database session
            explorer: Shared explorer client
            default_network: Network used when the caller names none
            page_size: Explorer page size
            max_pages: Max pages per explorer block window
        """
        super().__init__(session)
        self.explorer = explorer
        self.default_network = default_network
        self.page_size = page_size
        self.max_pages = max_pages
        self.transaction_repo = TransactionRepository(session)
        self.wallet_repo = WalletRepository(session)
        self.ledger = LedgerService(session)

    def resolve_network(self, network: str | None) -> str:
        """
        Map a caller-supplied network to a network key.

        Raises:
            ValidationError: If the network is not supported
        """
        network_key = resolve_network(network, self.default_network)
        if network_key is None:
            raise ValidationError(
                f"Unsupported network: {network}. Expected one of: {', '.join(NETWORKS)}",
                {"network": network},
            )
        return network_key

    async def is_wallet_bound(self, user_id: str, address: str, network: str) -> bool:
        """Check the address is bound to the user on the network."""
        wallet = await self.wallet_repo.get_user_wallet(user_id, address, network)
        await self.commit()
        return wallet is not None

    async def get_cursor(self, user_id: str, network: str) -> int:
        """
        Compute the first block not yet covered for a user on a network.

        Returns:
            Highest recorded block + 1, or 0 if nothing is recorded
        """
        max_block = await self.transaction_repo.get_max_block(user_id, network)
        return max_block + 1 if max_block is not None else 0

    @log_operation
    async def sync_user(
        self,
        user_id: str,
        address: str,
        network: str | None = None,
    ) -> SyncResult:
        """
        Sync new incoming activity of one wallet into the user's ledger.

        Args:
            user_id: Wallet owner
            address: Wallet address
            network: Network key or alias (default network if None)

        Returns:
            SyncResult with batch counters

        Raises:
            ValidationError: Invalid address or network
            ProviderNotConfigured: Missing explorer API key
            ProviderError: Explorer failure (retry later)
        """
        network_key = self.resolve_network(network)
        self.explorer.validate_request(address, network_key, 1, self.page_size)
        self.explorer.ensure_configured(network_key)

        stats = SyncStats()

        try:
            from_block = await self.get_cursor(user_id, network_key)
        finally:
            # No read transaction stays open across explorer calls
            await self.commit()

        self.logger.info(
            f"[Sync] User {user_id} wallet {mask_address(address)} "
            f"on {network_key} from block {from_block}"
        )

        native, tokens = await self.explorer.fetch_all_activity(
            address,
            network_key,
            from_block=from_block,
            page_size=self.page_size,
            max_pages=self.max_pages,
        )

        if not native and not tokens:
            self.logger.info(f"[Sync] No new activity for {mask_address(address)}")
            return SyncResult(success=True, stats=stats, from_block=from_block)

        records = categorize(native, tokens, address, network_key)
        incoming = incoming_only(records)
        stats.fetched = len(records)
        stats.skipped_outgoing = len(records) - len(incoming)

        for record in incoming:
            try:
                outcome = await self.ledger.apply_incoming(
                    record, user_id, IngestionSource.POLL
                )
            except Exception as e:
                error = UnexpectedError(
                    f"Failed to apply {record.hash}: {e}",
                    {"hash": record.hash, "type": type(e).__name__},
                )
                self.logger.error(
                    f"[Sync] Error applying {mask_tx_hash(record.hash)} for user {user_id}: {e}"
                )
                stats.errors.append(error.message)
                continue

            if outcome == ApplyOutcome.RECORDED:
                stats.saved += 1
            else:
                stats.duplicates += 1

        self.logger.info(
            f"[Sync] Done for user {user_id}: fetched={stats.fetched}, "
            f"saved={stats.saved}, duplicates={stats.duplicates}, "
            f"outgoing={stats.skipped_outgoing}, errors={len(stats.errors)}"
        )
        return SyncResult(success=True, stats=stats, from_block=from_block)

    async def sync_status(self, user_id: str) -> dict[str, Any]:
        """
        Current ledger state of a user.

        Returns:
            Dict with balanceCount, transactionCount, lastSync and balances
        """
        summary = await self.ledger.get_balance_summary(user_id)
        transaction_count = await self.transaction_repo.count(user_id=user_id)
        last_date = await self.transaction_repo.get_last_transaction_date(user_id)
        await self.commit()

        return {
            "balanceCount": summary["totalTokens"],
            "transactionCount": transaction_count,
            "lastSync": last_date.isoformat() if last_date else None,
            "balances": summary["balances"],
        }

    @log_operation
    async def sync_all_wallets(
        self,
        network: str | None = None,
        delay_seconds: float = SYNC_SWEEP_DELAY_SECONDS,
    ) -> dict[str, int]:
        """
        Sync every wallet bound on a network.

        Failures of one wallet are logged and do not stop the sweep, except
        configuration problems, which would fail every wallet alike.

        Args:
            network: Network key or alias (default network if None)
            delay_seconds: Pause between wallets (explorer rate limits)

        Returns:
            Counters: wallets, synced, failed, saved
        """
        network_key = self.resolve_network(network)
        bindings = await self.wallet_repo.list_bindings(network_key)
        await self.commit()

        summary = {"wallets": len(bindings), "synced": 0, "failed": 0, "saved": 0}
        if not bindings:
            self.logger.debug(f"[Sync] No wallets bound on {network_key}")
            return summary

        for index, wallet in enumerate(bindings):
            if index and delay_seconds:
                await asyncio.sleep(delay_seconds)
            try:
                result = await self.sync_user(wallet.user_id, wallet.address, network_key)
            except Exception as e:
                if isinstance(e, ProviderNotConfigured):
                    raise
                summary["failed"] += 1
                retry_note = " (retrying next sweep)" if is_retryable(e) else ""
                self.logger.warning(
                    f"[Sync] Sweep failed for {mask_address(wallet.address)} "
                    f"(user {wallet.user_id}): {e}{retry_note}"
                )
                continue

            summary["synced"] += 1
            summary["saved"] += result.stats.saved

        self.logger.info(
            f"[Sync] Sweep on {network_key}: {summary['synced']}/{summary['wallets']} "
            f"wallets synced, {summary['saved']} new transactions, {summary['failed']} failed"
        )
        return summary
