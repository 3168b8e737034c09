"""Tests for the preview API endpoints."""

import json
import logging
from pathlib import Path
from typing import Any

import pytest
from aiohttp import web
from pagestage.app_keys import live_reload_enabled_key, routing_key, snapshot_loader_key
from pagestage.config import Config
from pagestage.server import create_app


@pytest.fixture
def app(test_config: Config) -> web.Application:
    return create_app(test_config)


class TestCreateApp:
    """Tests for create_app()."""

    def test__valid_config__returns_configured_app(self, test_config: Config) -> None:
        app = create_app(test_config)

        assert app[snapshot_loader_key].path == test_config.snapshot.path
        assert app[routing_key].max_nesting_depth == 5
        assert app[live_reload_enabled_key] is False

    def test__live_reload_enabled__registers_websocket(self, test_config: Config) -> None:
        test_config.live_reload.enabled = True

        app = create_app(test_config)

        paths = {route.resource.canonical for route in app.router.routes()}
        assert "/ws/live-reload" in paths


class TestGetResolvedPage:
    """Tests for GET /api/pages/{page_id}/resolved."""

    @pytest.mark.asyncio
    async def test__layout_page__returns_composed_tree(
        self,
        aiohttp_client: Any,
        app: web.Application,
    ) -> None:
        """Page content is spliced into the layout slots."""
        client = await aiohttp_client(app)
        response = await client.get("/api/pages/shoes/resolved")

        assert response.status == 200
        data = await response.json()
        assert data["hasLayout"] is True
        assert data["validationErrors"] == []
        assert data["url"] == "/shop/products/shoes"
        body = data["resolvedTree"][0]
        assert body["element"]["id"] == "lbody"
        assert body["origin"] == "layout"
        header, main, footer = body["children"]
        assert [c["element"]["id"] for c in header["children"]] == ["shoes-title"]
        assert [c["element"]["id"] for c in main["children"]] == ["shoes-grid"]
        assert main["children"][0]["origin"] == "page"
        assert main["children"][0]["children"][0]["element"]["id"] == "shoes-card"
        assert footer["children"] == []
        assert list(data["slotContents"]) == ["header", "content"]

    @pytest.mark.asyncio
    async def test__empty_required_slots__reported(
        self,
        aiohttp_client: Any,
        app: web.Application,
    ) -> None:
        client = await aiohttp_client(app)
        response = await client.get("/api/pages/products/resolved")

        data = await response.json()
        assert [e["slotName"] for e in data["validationErrors"]] == ["header", "content"]
        assert data["url"] == "/products"

    @pytest.mark.asyncio
    async def test__page_without_layout__returns_page_tree(
        self,
        aiohttp_client: Any,
        app: web.Application,
    ) -> None:
        client = await aiohttp_client(app)
        response = await client.get("/api/pages/home/resolved")

        data = await response.json()
        assert data["hasLayout"] is False
        assert data["resolvedTree"][0]["element"]["id"] == "home-body"
        assert data["resolvedTree"][0]["origin"] == "page"

    @pytest.mark.asyncio
    async def test__unknown_page__returns_404(
        self,
        aiohttp_client: Any,
        app: web.Application,
    ) -> None:
        client = await aiohttp_client(app)
        response = await client.get("/api/pages/missing/resolved")

        assert response.status == 404
        data = await response.json()
        assert data == {"error": "Page not found", "pageId": "missing"}

    @pytest.mark.asyncio
    async def test__invalid_snapshot__returns_500(
        self,
        aiohttp_client: Any,
        app: web.Application,
        snapshot_file: Path,
    ) -> None:
        snapshot_file.write_text(json.dumps({"pages": "nope"}))
        client = await aiohttp_client(app)

        response = await client.get("/api/pages/home/resolved")

        assert response.status == 500
        data = await response.json()
        assert data == {"error": "pages must be a list"}

    @pytest.mark.asyncio
    async def test__handler_error__logged_with_request_path(
        self,
        aiohttp_client: Any,
        app: web.Application,
        snapshot_file: Path,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        snapshot_file.write_text(json.dumps({"pages": "nope"}))
        client = await aiohttp_client(app)

        with caplog.at_level(logging.WARNING, logger="pagestage.server"):
            await client.get("/api/pages/home/resolved")

        assert "Request to /api/pages/home/resolved failed: pages must be a list" in caplog.text


class TestGetPageUrl:
    """Tests for GET /api/pages/{page_id}/url."""

    @pytest.mark.asyncio
    async def test__nested_page__returns_url_and_depth(
        self,
        aiohttp_client: Any,
        app: web.Application,
    ) -> None:
        client = await aiohttp_client(app)
        response = await client.get("/api/pages/shoes/url")

        assert response.status == 200
        data = await response.json()
        assert data == {"pageId": "shoes", "url": "/shop/products/shoes", "depth": 1}

    @pytest.mark.asyncio
    async def test__unknown_page__returns_404(
        self,
        aiohttp_client: Any,
        app: web.Application,
    ) -> None:
        client = await aiohttp_client(app)
        response = await client.get("/api/pages/missing/url")

        assert response.status == 404


class TestGetParentCheck:
    """Tests for GET /api/pages/{page_id}/parent-check."""

    @pytest.mark.asyncio
    async def test__valid_parent__allowed(
        self,
        aiohttp_client: Any,
        app: web.Application,
    ) -> None:
        client = await aiohttp_client(app)
        response = await client.get("/api/pages/home/parent-check?candidate=shoes")

        data = await response.json()
        assert data == {"allowed": True, "reason": None, "depth": 2}

    @pytest.mark.asyncio
    async def test__descendant_parent__refused(
        self,
        aiohttp_client: Any,
        app: web.Application,
    ) -> None:
        client = await aiohttp_client(app)
        response = await client.get("/api/pages/products/parent-check?candidate=shoes")

        data = await response.json()
        assert data["allowed"] is False
        assert "circular" in data["reason"]

    @pytest.mark.asyncio
    async def test__no_candidate__allowed(
        self,
        aiohttp_client: Any,
        app: web.Application,
    ) -> None:
        client = await aiohttp_client(app)
        response = await client.get("/api/pages/shoes/parent-check")

        data = await response.json()
        assert data["allowed"] is True


class TestGetLayoutSlots:
    """Tests for GET /api/layouts/{layout_id}/slots."""

    @pytest.mark.asyncio
    async def test__layout__lists_slots(
        self,
        aiohttp_client: Any,
        app: web.Application,
    ) -> None:
        client = await aiohttp_client(app)
        response = await client.get("/api/layouts/main/slots")

        assert response.status == 200
        data = await response.json()
        assert data["layout"]["slug"] == "/shop"
        assert [s["name"] for s in data["slots"]] == ["header", "content"]
        assert data["slots"][1]["description"] == "Main content"
        assert data["duplicates"] == []

    @pytest.mark.asyncio
    async def test__unknown_layout__returns_404(
        self,
        aiohttp_client: Any,
        app: web.Application,
    ) -> None:
        client = await aiohttp_client(app)
        response = await client.get("/api/layouts/missing/slots")

        assert response.status == 404


class TestGetNavigation:
    """Tests for GET /api/navigation."""

    @pytest.mark.asyncio
    async def test__returns_route_tree(
        self,
        aiohttp_client: Any,
        app: web.Application,
    ) -> None:
        client = await aiohttp_client(app)
        response = await client.get("/api/navigation")

        assert response.status == 200
        data = await response.json()
        assert [i["path"] for i in data["items"]] == ["/", "/products"]
        assert data["items"][1]["children"][0]["path"] == "/shop/products/shoes"

    @pytest.mark.asyncio
    async def test__unknown_project__empty(
        self,
        aiohttp_client: Any,
        app: web.Application,
    ) -> None:
        client = await aiohttp_client(app)
        response = await client.get("/api/navigation?project=other")

        data = await response.json()
        assert data == {"items": []}


class TestGetConfig:
    """Tests for GET /api/config."""

    @pytest.mark.asyncio
    async def test__returns_client_settings(
        self,
        aiohttp_client: Any,
        app: web.Application,
    ) -> None:
        client = await aiohttp_client(app)
        response = await client.get("/api/config")

        data = await response.json()
        assert data == {"liveReloadEnabled": False, "maxNestingDepth": 5}
