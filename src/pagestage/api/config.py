"""Config API endpoint."""

from aiohttp import web

from pagestage.app_keys import live_reload_enabled_key, routing_key


def create_config_routes() -> list[web.RouteDef]:
    return [web.get("/api/config", get_config)]


async def get_config(request: web.Request) -> web.Response:
    return web.json_response(
        {
            "liveReloadEnabled": request.app[live_reload_enabled_key],
            "maxNestingDepth": request.app[routing_key].max_nesting_depth,
        },
    )
