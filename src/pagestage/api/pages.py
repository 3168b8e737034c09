"""Pages API endpoints.

Returns the resolved element tree, the composed URL and parent assignment
checks for a page.
"""

from aiohttp import web

from pagestage.app_keys import routing_key, snapshot_loader_key
from pagestage.core.composition import resolve_page
from pagestage.core.models import Page, Snapshot
from pagestage.core.routing import build_url, check_parent_assignment, nesting_depth


def create_pages_routes() -> list[web.RouteDef]:
    return [
        web.get("/api/pages/{page_id}/resolved", get_resolved_page),
        web.get("/api/pages/{page_id}/url", get_page_url),
        web.get("/api/pages/{page_id}/parent-check", get_parent_check),
    ]


def _page_not_found(page_id: str) -> web.Response:
    return web.json_response(
        {"error": "Page not found", "pageId": page_id},
        status=404,
    )


def _lookup(request: web.Request) -> tuple[Snapshot, Page | None, str]:
    page_id = request.match_info["page_id"]
    snapshot = request.app[snapshot_loader_key].load()
    return snapshot, snapshot.page(page_id), page_id


async def get_resolved_page(request: web.Request) -> web.Response:
    snapshot, page, page_id = _lookup(request)
    if page is None:
        return _page_not_found(page_id)

    result = resolve_page(snapshot, page.id)

    response_data = result.to_dict()
    response_data["url"] = build_url(page, snapshot.layout_for(page), snapshot.pages)
    return web.json_response(response_data)


async def get_page_url(request: web.Request) -> web.Response:
    snapshot, page, page_id = _lookup(request)
    if page is None:
        return _page_not_found(page_id)

    max_depth = request.app[routing_key].max_nesting_depth
    return web.json_response(
        {
            "pageId": page.id,
            "url": build_url(page, snapshot.layout_for(page), snapshot.pages),
            "depth": nesting_depth(page.id, snapshot.pages, limit=max_depth),
        },
    )


async def get_parent_check(request: web.Request) -> web.Response:
    snapshot, page, page_id = _lookup(request)
    if page is None:
        return _page_not_found(page_id)

    candidate = request.query.get("candidate") or None
    check = check_parent_assignment(
        page.id,
        candidate,
        snapshot.pages,
        max_depth=request.app[routing_key].max_nesting_depth,
    )
    return web.json_response(check.to_dict())
