"""
Wallet repository.

Read-only access to wallet bindings (address -> user).
"""

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from walletsync.models.wallet import Wallet
from walletsync.repositories.base import BaseRepository


class WalletRepository(BaseRepository[Wallet]):
    """Repository for wallet bindings."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository."""
        super().__init__(Wallet, session)

    async def resolve_user_id(
        self,
        address: str,
        network: str | None = None,
    ) -> str | None:
        """
        Resolve the user owning an address (case-insensitive).

        Args:
            address: Chain address
            network: Restrict to a network

        Returns:
            User ID or None if the address is not bound
        """
        if not address:
            return None

        query = select(Wallet.user_id).where(
            func.lower(Wallet.address) == address.strip().lower()
        )
        if network:
            query = query.where(Wallet.network == network)

        result = await self.session.execute(query.limit(1))
        return result.scalar()

    async def get_user_wallet(self, user_id: str, address: str, network: str) -> Wallet | None:
        """
        Get a wallet if it is bound to the given user on a network.

        Args:
            user_id: User ID
            address: Chain address (case-insensitive)
            network: Network key

        Returns:
            Wallet or None
        """
        query = select(Wallet).where(
            Wallet.user_id == user_id,
            func.lower(Wallet.address) == address.strip().lower(),
            Wallet.network == network,
        )
        result = await self.session.execute(query.limit(1))
        return result.scalar_one_or_none()

    async def list_addresses(self, network: str) -> set[str]:
        """
        Get all bound addresses on a network, lower-cased.

        Args:
            network: Network key

        Returns:
            Set of addresses
        """
        query = select(Wallet.address).where(Wallet.network == network)
        result = await self.session.execute(query)
        return {address.lower() for address in result.scalars().all()}

    async def list_bindings(self, network: str) -> list[Wallet]:
        """Get all wallet bindings on a network."""
        return await self.find_all(network=network)
