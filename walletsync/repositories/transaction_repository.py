"""
User transaction repository.

Data access layer for the append-only transaction log.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from walletsync.config.constants import DEFAULT_HISTORY_LIMIT
from walletsync.models.enums import TransactionDirection
from walletsync.models.user_transaction import UserTransaction
from walletsync.repositories.base import BaseRepository


class TransactionRepository(BaseRepository[UserTransaction]):
    """Repository for applied user transactions."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository."""
        super().__init__(UserTransaction, session)

    async def exists_for_user(self, tx_hash: str, user_id: str) -> bool:
        """
        Check if a transaction is already recorded for a user.

        Args:
            tx_hash: Transaction hash
            user_id: User ID

        Returns:
            True if recorded
        """
        return await self.exists(transaction_hash=tx_hash.lower(), user_id=user_id)

    async def get_max_block(self, user_id: str, network: str) -> int | None:
        """
        Get the highest block recorded for a user on a network.

        Args:
            user_id: User ID
            network: Network key

        Returns:
            Highest block number or None if the user has no records
        """
        query = select(func.max(UserTransaction.block_number)).where(
            UserTransaction.user_id == user_id,
            UserTransaction.network == network,
        )
        result = await self.session.execute(query)
        return result.scalar()

    async def get_history(
        self,
        user_id: str,
        limit: int = DEFAULT_HISTORY_LIMIT,
    ) -> list[UserTransaction]:
        """
        Get recorded transactions, most recent first.

        Args:
            user_id: User ID
            limit: Max results

        Returns:
            List of transactions
        """
        query = (
            select(UserTransaction)
            .where(UserTransaction.user_id == user_id)
            .order_by(
                UserTransaction.transaction_date.desc(),
                UserTransaction.block_number.desc(),
            )
            .limit(limit)
        )
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def get_last_transaction_date(self, user_id: str) -> datetime | None:
        """Get the date of the user's most recent recorded transaction."""
        query = select(func.max(UserTransaction.transaction_date)).where(
            UserTransaction.user_id == user_id
        )
        result = await self.session.execute(query)
        return result.scalar()

    async def sum_incoming_by_key(self, user_id: str) -> dict[tuple[str, str], Decimal]:
        """
        Sum incoming amounts per (token_symbol, network).

        Args:
            user_id: User ID

        Returns:
            Mapping of (token_symbol, network) to total incoming amount
        """
        query = (
            select(
                UserTransaction.token_symbol,
                UserTransaction.network,
                func.coalesce(func.sum(UserTransaction.amount), 0),
            )
            .where(
                UserTransaction.user_id == user_id,
                UserTransaction.direction == TransactionDirection.IN.value,
            )
            .group_by(UserTransaction.token_symbol, UserTransaction.network)
        )
        result = await self.session.execute(query)
        return {
            (symbol, network): Decimal(str(total))
            for symbol, network, total in result.all()
        }
