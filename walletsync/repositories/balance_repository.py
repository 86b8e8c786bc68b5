"""
User balance repository.

Data access layer for balance aggregates. Writes go through a single
INSERT ... ON CONFLICT DO UPDATE statement so concurrent credits for the
same key cannot lose updates.
"""

from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from walletsync.models.user_balance import UserBalance
from walletsync.repositories.base import BaseRepository


# Dialects supporting ON CONFLICT upserts
_UPSERT_INSERTS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


class BalanceRepository(BaseRepository[UserBalance]):
    """Repository for user balance aggregates."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository."""
        super().__init__(UserBalance, session)

    def _insert(self):
        dialect = self.session.get_bind().dialect.name
        try:
            return _UPSERT_INSERTS[dialect]
        except KeyError:
            raise NotImplementedError(
                f"Atomic balance upsert is not supported on dialect '{dialect}'"
            ) from None

    async def increment(
        self,
        user_id: str,
        token_symbol: str,
        network: str,
        amount: Decimal,
        token_address: str | None = None,
    ) -> None:
        """
        Atomically add amount to a balance, creating the row if absent.

        Executes one statement:
        new balance = old balance + amount, or amount when no row exists.

        Args:
            user_id: User ID
            token_symbol: Canonical token symbol
            network: Network key
            amount: Amount to add
            token_address: Token contract address (None for native)
        """
        now = datetime.now(UTC)
        insert = self._insert()

        stmt = insert(UserBalance).values(
            user_id=user_id,
            token_symbol=token_symbol,
            network=network,
            balance=amount,
            token_address=token_address,
            last_updated=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["user_id", "token_symbol", "network"],
            set_={
                "balance": UserBalance.balance + stmt.excluded.balance,
                "token_address": func.coalesce(
                    UserBalance.token_address, stmt.excluded.token_address
                ),
                "last_updated": stmt.excluded.last_updated,
            },
        )
        await self.session.execute(stmt)

    async def get_balance(
        self,
        user_id: str,
        token_symbol: str,
        network: str,
    ) -> Decimal | None:
        """
        Read the current balance for a key straight from the database.

        Args:
            user_id: User ID
            token_symbol: Token symbol
            network: Network key

        Returns:
            Balance or None if no row exists
        """
        query = select(UserBalance.balance).where(
            UserBalance.user_id == user_id,
            UserBalance.token_symbol == token_symbol,
            UserBalance.network == network,
        )
        result = await self.session.execute(query)
        value = result.scalar()
        return Decimal(str(value)) if value is not None else None

    async def get_for_user(self, user_id: str) -> list[UserBalance]:
        """
        Get all balances of a user ordered by token symbol.

        Rows are re-read from the database, replacing identity-map copies.

        Args:
            user_id: User ID

        Returns:
            List of balances
        """
        query = (
            select(UserBalance)
            .where(UserBalance.user_id == user_id)
            .order_by(UserBalance.token_symbol.asc(), UserBalance.network.asc())
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(query)
        return list(result.scalars().all())
