"""
Wallet Sync Task.

Periodically syncs every bound wallet through the poll path, catching
anything the webhook path missed. Enqueued by the scheduler.
"""

import dramatiq
from loguru import logger

from jobs.async_runner import create_local_session, run_async
from jobs.broker import broker  # noqa: F401  registers actors on the Redis broker
from walletsync.config.networks import NETWORKS
from walletsync.config.settings import settings
from walletsync.services.chain_reader import ExplorerClient
from walletsync.services.sync_service import SyncService
from walletsync.utils.exceptions import ProviderNotConfigured


@dramatiq.actor(time_limit=600_000)  # 10 min timeout
def sync_all_wallets(network: str | None = None) -> None:
    """
    Sync all wallets on one network, or on every network with an API key.

    Args:
        network: Network key; None sweeps all configured networks
    """
    logger.info("Starting wallet sync sweep...")
    summaries = run_async(sweep_networks(network))
    logger.info(f"Wallet sync sweep complete: {summaries}")


async def sweep_networks(
    network: str | None = None,
    explorer: ExplorerClient | None = None,
    database_url: str | None = None,
) -> dict[str, dict[str, int]]:
    """
    Async implementation of the sweep.

    Returns:
        Sweep counters per network
    """
    networks = [network] if network else [key for key in NETWORKS if settings.get_api_key(key)]
    if not networks:
        logger.warning("[Sweep] No explorer API key configured, nothing to sweep")
        return {}

    owns_explorer = explorer is None
    explorer = explorer or ExplorerClient.from_settings(settings)
    summaries: dict[str, dict[str, int]] = {}

    try:
        async with create_local_session(database_url) as session:
            service = SyncService(
                session,
                explorer,
                default_network=settings.default_network,
                page_size=settings.explorer_page_size,
                max_pages=settings.sync_max_pages,
            )
            for key in networks:
                try:
                    summaries[key] = await service.sync_all_wallets(key)
                except ProviderNotConfigured as e:
                    logger.error(f"[Sweep] Skipping {key}: {e.message}")
    finally:
        if owns_explorer:
            await explorer.close()

    return summaries
