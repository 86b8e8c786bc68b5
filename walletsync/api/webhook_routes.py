"""
Alchemy webhook endpoints.

POST /api/webhook/alchemy - receive Notify envelopes
GET  /api/webhook/alchemy - endpoint health
"""

import json
from datetime import UTC, datetime

from aiohttp import web

from walletsync.api.keys import CONTAINER_KEY

SIGNATURE_HEADER = "X-Alchemy-Signature"

routes = web.RouteTableDef()


@routes.post("/api/webhook/alchemy")
async def alchemy_webhook(request: web.Request) -> web.Response:
    """Authenticate, decode and apply one webhook envelope."""
    raw_body = await request.read()
    container = request.app[CONTAINER_KEY]

    async with container.session_maker() as session:
        service = container.webhook_service(session)
        service.authenticate(raw_body, request.headers.get(SIGNATURE_HEADER))

        try:
            payload = json.loads(raw_body)
        except ValueError:
            return web.json_response({"error": "Invalid JSON body"}, status=400)

        result = await service.process(payload)

    return web.json_response(result)


@routes.get("/api/webhook/alchemy")
async def alchemy_webhook_health(request: web.Request) -> web.Response:
    """Report that the webhook endpoint is up."""
    return web.json_response(
        {
            "status": "healthy",
            "message": "Alchemy webhook endpoint is active",
            "timestamp": datetime.now(UTC).isoformat(),
        }
    )
