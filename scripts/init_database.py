#!/usr/bin/env python3
"""
Initialize database tables.

Local bootstrap only; production schemas are managed by alembic.

Usage:
    python scripts/init_database.py
"""

import asyncio
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from loguru import logger  # noqa: E402

from walletsync.config.database import create_all_tables, create_engine  # noqa: E402
from walletsync.config.settings import settings  # noqa: E402

# Configure logger for script
logger.remove()
logger.add(sys.stderr, level="INFO")


async def init_database() -> None:
    """Create all database tables (checkfirst)."""
    logger.info("Connecting to database...")
    engine = create_engine(settings.database_url, null_pool=True)
    try:
        await create_all_tables(engine)
    finally:
        await engine.dispose()
    logger.success("Database tables created successfully!")


if __name__ == "__main__":
    asyncio.run(init_database())
