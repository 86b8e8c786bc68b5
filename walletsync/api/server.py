"""
HTTP application.

aiohttp application exposing the sync, webhook and health endpoints.
Domain errors are mapped to HTTP statuses in one middleware.
"""

from aiohttp import web
from loguru import logger
from sqlalchemy import text

from walletsync.api.keys import CONTAINER_KEY
from walletsync.api.sync_routes import routes as sync_routes
from walletsync.api.webhook_routes import routes as webhook_routes
from walletsync.container import Container
from walletsync.utils.exceptions import (
    ProviderError,
    ProviderNotConfigured,
    ValidationError,
    WalletSyncError,
    WebhookAuthError,
)


@web.middleware
async def error_middleware(request: web.Request, handler) -> web.StreamResponse:
    """Translate domain exceptions into JSON error responses."""
    try:
        return await handler(request)
    except web.HTTPException:
        raise
    except ValidationError as e:
        return web.json_response(e.to_dict(), status=400)
    except WebhookAuthError as e:
        return web.json_response({"error": e.message}, status=401)
    except ProviderNotConfigured as e:
        # Operator-fixable: message is surfaced verbatim
        return web.json_response({"error": e.message, "code": e.code}, status=503)
    except ProviderError as e:
        logger.warning(f"[API] Explorer error on {request.path}: {e.message}")
        return web.json_response(
            {"error": e.message, "code": e.code, "retryable": e.transient},
            status=502,
        )
    except WalletSyncError as e:
        return web.json_response(e.to_dict(), status=500)
    except Exception as e:
        logger.exception(f"[API] Unhandled error on {request.method} {request.path}: {e}")
        return web.json_response(
            {"error": "Internal server error", "details": str(e)},
            status=500,
        )


async def health_handler(request: web.Request) -> web.Response:
    """
    Health check endpoint.

    Returns:
        JSON response with database status
    """
    container = request.app[CONTAINER_KEY]
    try:
        async with container.session_maker() as session:
            await session.execute(text("SELECT 1"))
    except Exception as e:
        logger.error(f"Health check failed: {e}")
        return web.json_response(
            {"status": "unhealthy", "database": False, "error": str(e)},
            status=503,
        )
    return web.json_response({"status": "healthy", "database": True})


async def liveness_handler(request: web.Request) -> web.Response:
    """Liveness check endpoint."""
    return web.json_response({"status": "alive", "alive": True})


async def _close_container(app: web.Application) -> None:
    await app[CONTAINER_KEY].close()


def create_app(container: Container, close_container: bool = True) -> web.Application:
    """
    Build the aiohttp application.

    Args:
        container: Process-wide dependencies
        close_container: Release container resources on application cleanup

    Returns:
        Configured application
    """
    app = web.Application(middlewares=[error_middleware])
    app[CONTAINER_KEY] = container

    app.router.add_get("/health", health_handler)
    app.router.add_get("/liveness", liveness_handler)
    app.add_routes(sync_routes)
    app.add_routes(webhook_routes)

    if close_container:
        app.on_cleanup.append(_close_container)

    return app
