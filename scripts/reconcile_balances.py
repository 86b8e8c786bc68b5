#!/usr/bin/env python3
"""
Report balance drift for users.

Compares every balance aggregate with the sum of the user's recorded
incoming transactions. Read-only: nothing is rewritten.

Usage:
    python scripts/reconcile_balances.py USER_ID [USER_ID ...]
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
from walletsync.services.chain_types import format_amount  # noqa: E402


async def reconcile(user_ids: list[str]) -> int:
    """Log drift per user; returns the number of drifting keys."""
    container = Container(settings)
    total = 0
    try:
        async with container.session_maker() as session:
            ledger = container.ledger_service(session)
            for user_id in user_ids:
                drifts = await ledger.reconcile(user_id)
                if not drifts:
                    logger.info(f"User {user_id}: balances match recorded transactions")
                for drift in drifts:
                    logger.warning(
                        f"User {user_id}: {drift.token_symbol}/{drift.network} "
                        f"balance={format_amount(drift.balance)} "
                        f"incoming={format_amount(drift.incoming_total)} "
                        f"drift={format_amount(drift.drift)}"
                    )
                total += len(drifts)
    finally:
        await container.close()
    return total


def main() -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Report balance drift")
    parser.add_argument("user_ids", nargs="+", help="Users to check")
    args = parser.parse_args()

    drift_count = asyncio.run(reconcile(args.user_ids))
    sys.exit(1 if drift_count else 0)


if __name__ == "__main__":
    main()
