"""Layouts API endpoint.

Lists the slots of a layout for the slot picker.
"""

from aiohttp import web

from pagestage.app_keys import snapshot_loader_key
from pagestage.core.slots import index_slots
from pagestage.core.tree import build_forest


def create_layouts_routes() -> list[web.RouteDef]:
    return [web.get("/api/layouts/{layout_id}/slots", get_layout_slots)]


async def get_layout_slots(request: web.Request) -> web.Response:
    layout_id = request.match_info["layout_id"]
    snapshot = request.app[snapshot_loader_key].load()

    layout = snapshot.layout(layout_id)
    if layout is None:
        return web.json_response(
            {"error": "Layout not found", "layoutId": layout_id},
            status=404,
        )

    slot_index = index_slots(build_forest(snapshot.elements_for_layout(layout.id)))
    return web.json_response({"layout": layout.to_dict(), **slot_index.to_dict()})
