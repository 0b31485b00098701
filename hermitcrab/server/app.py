"""HTTP server exposing cached release contents."""

import logging

from aiohttp import web

from ..cache.gateway import LATEST, CacheGateway
from ..errors import ExtractError, FetchError, NotFound, ParseError

logger = logging.getLogger(__name__)

GATEWAY_KEY = web.AppKey("gateway", CacheGateway)


async def _serve(request: web.Request, requested: str, relative_path: str = "") -> web.StreamResponse:
    gateway = request.app[GATEWAY_KEY]
    try:
        version = await gateway.resolve(requested)
        handle = await gateway.ensure_cached(version)
    except ParseError as exc:
        raise web.HTTPBadRequest(text=f"Invalid version: {exc}")
    except (FetchError, ExtractError):
        # Includes versions the store does not have.
        logger.exception("Failed to prepare %s", requested)
        raise web.HTTPInternalServerError(text="Failed to prepare version")
    try:
        path = gateway.serve(handle, relative_path)
    except NotFound as exc:
        raise web.HTTPNotFound(text=str(exc))
    return web.FileResponse(path)


async def serve_latest_version(request: web.Request) -> web.StreamResponse:
    return await _serve(request, LATEST)


async def serve_specific_version(request: web.Request) -> web.StreamResponse:
    return await _serve(request, request.match_info["version"], request.match_info.get("path", ""))


def create_app(gateway: CacheGateway) -> web.Application:
    """Build the aiohttp application; the gateway's store lives as long as the app."""
    app = web.Application()
    app[GATEWAY_KEY] = gateway

    async def store_session(app: web.Application):
        async with gateway.store:
            yield

    app.cleanup_ctx.append(store_session)
    app.router.add_get("/", serve_latest_version)
    app.router.add_get("/version/{version}", serve_specific_version)
    app.router.add_get("/version/{version}/{path:.+}", serve_specific_version)
    return app
