"""aiohttp server for Pagestage.

Application factory and route registration for the preview API.
"""

import logging

from aiohttp import web

from pagestage.api.config import create_config_routes
from pagestage.api.layouts import create_layouts_routes
from pagestage.api.navigation import create_navigation_routes
from pagestage.api.pages import create_pages_routes
from pagestage.app_keys import live_reload_enabled_key, routing_key, snapshot_loader_key
from pagestage.config import Config
from pagestage.live import LiveReloadManager
from pagestage.live.reload import create_live_reload_routes
from pagestage.snapshot import SnapshotLoader

logger = logging.getLogger(__name__)

live_reload_manager_key = web.AppKey("live_reload_manager", LiveReloadManager)


@web.middleware
async def error_middleware(request: web.Request, handler) -> web.StreamResponse:
    """Translate FileNotFoundError and ValueError into JSON error responses.

    Raised mostly by the snapshot loader for a missing or invalid file.
    """
    try:
        return await handler(request)
    except (FileNotFoundError, ValueError) as e:
        logger.warning(f"Request to {request.path} failed: {e}")
        return web.json_response({"error": str(e)}, status=500)


def create_app(config: Config) -> web.Application:
    """Create aiohttp application.

    Args:
        config: Application configuration

    Returns:
        Configured aiohttp application
    """
    app = web.Application(middlewares=[error_middleware])

    loader = SnapshotLoader(config.snapshot.path)

    app[snapshot_loader_key] = loader
    app[routing_key] = config.routing
    app[live_reload_enabled_key] = config.live_reload.enabled

    app.router.add_routes(create_pages_routes())
    app.router.add_routes(create_layouts_routes())
    app.router.add_routes(create_navigation_routes())
    app.router.add_routes(create_config_routes())

    # Live reload WebSocket endpoint
    if config.live_reload.enabled:
        manager = LiveReloadManager(loader)
        app[live_reload_manager_key] = manager
        app.router.add_routes(create_live_reload_routes(manager))
        app.on_startup.append(_start_live_reload)
        app.on_cleanup.append(_stop_live_reload)

    return app


async def _start_live_reload(app: web.Application) -> None:
    """Start live reload on application startup."""
    await app[live_reload_manager_key].start()


async def _stop_live_reload(app: web.Application) -> None:
    """Stop live reload on application cleanup."""
    await app[live_reload_manager_key].stop()


def run_server(config: Config) -> None:
    """Run the server.

    Args:
        config: Application configuration
    """
    app = create_app(config)
    logger.info(f"Serving snapshot {config.snapshot.path}")
    web.run_app(app, host=config.server.host, port=config.server.port)
