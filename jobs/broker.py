"""
Dramatiq broker configuration.

Redis-based message broker for the background sync queue.
"""

import dramatiq
from dramatiq.brokers.redis import RedisBroker
from dramatiq.middleware import Retries, ShutdownNotifications, TimeLimit
from loguru import logger

from walletsync.config.constants import SWEEP_MAX_RETRIES
from walletsync.config.settings import settings
from walletsync.utils.exceptions import ProviderNotConfigured, ValidationError

# Failures a retry cannot fix: the operator has to change configuration
NOT_RETRIED = (ProviderNotConfigured, ValidationError)


def should_retry(retries_so_far: int, exception: Exception) -> bool:
    """Retry a failed sweep a few times unless its configuration is at fault."""
    return retries_so_far < SWEEP_MAX_RETRIES and not isinstance(exception, NOT_RETRIED)


# Only the middleware the sweep actor relies on
# TimeLimit: enforces the sweep actor's time_limit
# ShutdownNotifications: lets long sweeps stop between wallets
# Retries: exponential backoff for sweeps that died mid-way
redis_broker = RedisBroker(
    host=settings.redis_host,
    port=settings.redis_port,
    password=settings.redis_password if settings.redis_password else None,
    db=settings.redis_db,
    middleware=[
        TimeLimit(),
        ShutdownNotifications(),
        Retries(
            min_backoff=1000,  # 1 second
            max_backoff=60000,  # 1 minute
            retry_when=should_retry,
        ),
    ],
)

dramatiq.set_broker(redis_broker)

broker = redis_broker

logger.info(
    f"Dramatiq broker initialized: "
    f"redis://{settings.redis_host}:{settings.redis_port}/{settings.redis_db}"
)
