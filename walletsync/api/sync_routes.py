"""
Sync endpoints.

POST /api/sync-transactions  - sync one wallet of a user
GET  /api/sync-transactions  - current ledger state of a user
"""

from aiohttp import web
from loguru import logger

from walletsync.api.keys import CONTAINER_KEY
from walletsync.utils.security import mask_address

routes = web.RouteTableDef()


@routes.post("/api/sync-transactions")
async def sync_transactions(request: web.Request) -> web.Response:
    """Sync new incoming activity of a wallet into the user's ledger."""
    try:
        body = await request.json()
    except ValueError:
        return web.json_response({"error": "Invalid JSON body"}, status=400)

    if not isinstance(body, dict):
        return web.json_response({"error": "Invalid JSON body"}, status=400)

    user_id = body.get("userId")
    address = body.get("address")
    if not user_id or not address:
        return web.json_response(
            {"error": "userId and address are required"}, status=400
        )

    user_id = str(user_id)
    address = str(address).strip()
    logger.info(f"[API] Sync requested by user {user_id} for {mask_address(address)}")

    container = request.app[CONTAINER_KEY]
    async with container.session_maker() as session:
        service = container.sync_service(session)
        network = service.resolve_network(body.get("network"))

        if not await service.is_wallet_bound(user_id, address, network):
            return web.json_response(
                {"error": "Wallet not found for this user"}, status=404
            )

        result = await service.sync_user(user_id, address, network)

    return web.json_response(result.to_dict())


@routes.get("/api/sync-transactions")
async def sync_status(request: web.Request) -> web.Response:
    """Balances, transaction count and last activity date of a user."""
    user_id = request.query.get("userId")
    if not user_id:
        return web.json_response({"error": "userId is required"}, status=400)

    container = request.app[CONTAINER_KEY]
    async with container.session_maker() as session:
        status = await container.sync_service(session).sync_status(user_id)

    return web.json_response(status)
