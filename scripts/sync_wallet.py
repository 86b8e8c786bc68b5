#!/usr/bin/env python3
"""
Sync one wallet from the command line.

Runs the same poll sync as POST /api/sync-transactions, without the
wallet-binding check, and prints the batch counters.

Usage:
    python scripts/sync_wallet.py USER_ID ADDRESS [--network BSC_MAINNET]
"""

import argparse
import asyncio
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from loguru import logger  # noqa: E402

from walletsync.config.settings import settings  # noqa: E402
from walletsync.container import Container  # noqa: E402
from walletsync.utils.exceptions import WalletSyncError  # noqa: E402


async def sync_wallet(user_id: str, address: str, network: str | None) -> int:
    """Sync and log a summary; returns a process exit code."""
    container = Container(settings)
    try:
        async with container.session_maker() as session:
            result = await container.sync_service(session).sync_user(user_id, address, network)
    except WalletSyncError as e:
        logger.error(f"Sync failed ({e.code}): {e.message}")
        return 1
    finally:
        await container.close()

    stats = result.stats
    logger.info("=" * 60)
    logger.info("SYNC SUMMARY")
    logger.info("=" * 60)
    logger.info(f"From block: {result.from_block}")
    logger.info(f"Fetched: {stats.fetched}")
    logger.info(f"Saved: {stats.saved}")
    logger.info(f"Duplicates: {stats.duplicates}")
    logger.info(f"Outgoing (skipped): {stats.skipped_outgoing}")
    for error in stats.errors:
        logger.warning(f"Error: {error}")
    return 0


def main() -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Sync one wallet into the ledger")
    parser.add_argument("user_id", help="Owner of the wallet")
    parser.add_argument("address", help="Wallet address")
    parser.add_argument("--network", default=None, help="Network key or alias")
    args = parser.parse_args()

    sys.exit(asyncio.run(sync_wallet(args.user_id, args.address, args.network)))


if __name__ == "__main__":
    main()
