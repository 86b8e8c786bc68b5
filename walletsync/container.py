"""
Application container.

Builds the long-lived collaborators once per process (database engine,
session factory, explorer client) and hands out per-session services.
"""

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession
from loguru import logger

from walletsync.config.database import create_engine, create_session_maker
from walletsync.config.settings import Settings
from walletsync.services.chain_reader import ExplorerClient
from walletsync.services.ledger_service import LedgerService
from walletsync.services.sync_service import SyncService
from walletsync.services.webhook import WebhookService


class Container:
    """Process-wide dependencies."""

    def __init__(
        self,
        settings: Settings,
        engine: AsyncEngine | None = None,
        explorer: ExplorerClient | None = None,
    ) -> None:
        """
        Initialize container.

        Args:
            settings: Application settings
            engine: Pre-built engine (tests); created from settings if None
            explorer: Pre-built explorer client (tests); created from settings if None
        """
        self.settings = settings
        self.engine = engine or create_engine(settings.database_url, settings.database_echo)
        self.session_maker = create_session_maker(self.engine)
        self.explorer = explorer or ExplorerClient.from_settings(settings)

    def sync_service(self, session: AsyncSession) -> SyncService:
        """Sync orchestrator bound to a session."""
        return SyncService(
            session,
            self.explorer,
            default_network=self.settings.default_network,
            page_size=self.settings.explorer_page_size,
            max_pages=self.settings.sync_max_pages,
        )

    def webhook_service(self, session: AsyncSession) -> WebhookService:
        """Webhook ingestion service bound to a session."""
        return WebhookService(
            session,
            network=self.settings.webhook_network,
            auth_token=self.settings.alchemy_webhook_auth_token,
        )

    def ledger_service(self, session: AsyncSession) -> LedgerService:
        """Balance ledger bound to a session."""
        return LedgerService(session)

    async def close(self) -> None:
        """Close the explorer session and dispose the engine."""
        await self.explorer.close()
        await self.engine.dispose()
        logger.info("Container resources released")
