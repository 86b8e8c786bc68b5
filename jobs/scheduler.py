"""
Worker scheduler.

Enqueues the wallet sync sweep on a fixed interval and serves the health
check endpoints.

Usage:
    python -m jobs.scheduler
"""

import asyncio
import signal
from datetime import UTC, datetime

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from loguru import logger

from jobs.health import set_scheduler, start_health_server, stop_health_server
from jobs.tasks.wallet_sync_task import sync_all_wallets
from walletsync.config.settings import settings
from walletsync.utils.logging import setup_logging

SWEEP_JOB_ID = "wallet_sync_sweep"

# Running scheduler (set by main)
scheduler_instance: AsyncIOScheduler | None = None


def enqueue_wallet_sweep() -> None:
    """Send the sweep actor to the queue."""
    sync_all_wallets.send()
    logger.debug("Wallet sync sweep enqueued")


def create_scheduler(interval_minutes: int | None = None) -> AsyncIOScheduler:
    """
    Create scheduler with the sweep job registered.

    Args:
        interval_minutes: Sweep interval (settings value if None)

    Returns:
        Scheduler, not yet started
    """
    scheduler = AsyncIOScheduler(timezone=UTC)
    scheduler.add_job(
        enqueue_wallet_sweep,
        "interval",
        minutes=interval_minutes or settings.sync_sweep_interval_minutes,
        id=SWEEP_JOB_ID,
        name="Wallet sync sweep",
        max_instances=1,
        coalesce=True,
        next_run_time=datetime.now(UTC),
    )
    return scheduler


async def main() -> None:
    """Run scheduler and health server until SIGINT/SIGTERM."""
    global scheduler_instance

    setup_logging(level=settings.log_level, log_file="logs/scheduler.log")

    scheduler_instance = create_scheduler()
    set_scheduler(scheduler_instance)
    scheduler_instance.start()
    logger.info(
        f"Scheduler started: sweep every {settings.sync_sweep_interval_minutes} min"
    )

    runner, _ = await start_health_server(port=settings.health_check_port)

    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop_event.set)

    try:
        await stop_event.wait()
    finally:
        logger.info("Graceful shutdown initiated...")
        scheduler_instance.shutdown(wait=False)
        await stop_health_server(runner)
        logger.info("Graceful shutdown complete")


if __name__ == "__main__":
    asyncio.run(main())
