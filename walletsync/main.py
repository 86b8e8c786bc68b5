"""
HTTP API entry point.

Usage:
    python -m walletsync.main
"""

from aiohttp import web
from loguru import logger

from walletsync.api.server import create_app
from walletsync.config.networks import NETWORKS
from walletsync.config.settings import settings
from walletsync.container import Container
from walletsync.utils.logging import setup_logging


def main() -> None:
    """Configure logging, build the container and serve the API."""
    setup_logging(level=settings.log_level)

    configured = [key for key in NETWORKS if settings.get_api_key(key)]
    if not configured:
        logger.warning(
            "No block explorer API key configured. "
            "Sync requests will fail until BSCSCAN_API_KEY or ETHERSCAN_API_KEY is set."
        )
    else:
        logger.info(f"Explorer API keys configured for: {', '.join(configured)}")

    container = Container(settings)
    app = create_app(container)

    logger.info(f"API listening on {settings.api_host}:{settings.api_port}")
    web.run_app(app, host=settings.api_host, port=settings.api_port, print=None)


if __name__ == "__main__":
    main()
