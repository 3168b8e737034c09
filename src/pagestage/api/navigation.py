"""Navigation API endpoint.

Provides the page route tree for the routing preview.
"""

from aiohttp import web

from pagestage.app_keys import snapshot_loader_key
from pagestage.core.navigation import build_navigation


def create_navigation_routes() -> list[web.RouteDef]:
    return [web.get("/api/navigation", get_navigation)]


async def get_navigation(request: web.Request) -> web.Response:
    snapshot = request.app[snapshot_loader_key].load()
    project_id = request.query.get("project")
    nav_items = build_navigation(snapshot, project_id)
    return web.json_response({"items": [item.to_dict() for item in nav_items]})
