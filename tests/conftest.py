"""Shared test fixtures."""

import json
from pathlib import Path

import pytest
from pagestage.config import (
    Config,
    LiveReloadConfig,
    RoutingConfig,
    ServerConfig,
    SnapshotConfig,
)


@pytest.fixture
def snapshot_data() -> dict:
    """Snapshot with a layout-bound page, a nested page and a plain page.

    Layout "main" has a header bar with a required "header" slot and a
    required "content" slot inside a <main> wrapper, plus a footer.
    """
    return {
        "pages": [
            {"id": "home", "title": "Home", "slug": "/", "parentId": None,
             "layoutId": None, "orderIndex": 0, "projectId": "proj"},
            {"id": "products", "title": "Products", "slug": "/products",
             "parentId": None, "layoutId": "main", "orderIndex": 1,
             "projectId": "proj"},
            {"id": "shoes", "title": "Shoes", "slug": "shoes",
             "parentId": "products", "layoutId": "main", "orderIndex": 0,
             "projectId": "proj"},
        ],
        "layouts": [
            {"id": "main", "name": "Main", "slug": "/shop", "projectId": "proj",
             "description": "Shop layout"},
        ],
        "elements": [
            {"id": "lbody", "tag": "body", "parentId": None, "orderIndex": 0,
             "properties": {}, "layoutId": "main"},
            {"id": "lheader", "tag": "header", "parentId": "lbody", "orderIndex": 0,
             "properties": {}, "layoutId": "main"},
            {"id": "slot-header", "tag": "Slot", "parentId": "lheader",
             "orderIndex": 0, "properties": {"name": "header", "required": True},
             "layoutId": "main"},
            {"id": "lmain", "tag": "main", "parentId": "lbody", "orderIndex": 1,
             "properties": {}, "layoutId": "main"},
            {"id": "slot-content", "tag": "Slot", "parentId": "lmain",
             "orderIndex": 0,
             "properties": {"name": "content", "required": True,
                            "description": "Main content"},
             "layoutId": "main"},
            {"id": "lfooter", "tag": "footer", "parentId": "lbody", "orderIndex": 2,
             "properties": {}, "layoutId": "main"},
            {"id": "shoes-title", "tag": "Heading", "parentId": None,
             "orderIndex": 0, "properties": {"targetSlot": "header"},
             "pageId": "shoes"},
            {"id": "shoes-grid", "tag": "Grid", "parentId": None, "orderIndex": 1,
             "properties": {}, "pageId": "shoes"},
            {"id": "shoes-card", "tag": "Card", "parentId": "shoes-grid",
             "orderIndex": 0, "properties": {}, "pageId": "shoes"},
            {"id": "home-body", "tag": "body", "parentId": None, "orderIndex": 0,
             "properties": {}, "pageId": "home"},
            {"id": "home-text", "tag": "Text", "parentId": "home-body",
             "orderIndex": 0, "properties": {}, "pageId": "home"},
        ],
    }


@pytest.fixture
def snapshot_file(tmp_path: Path, snapshot_data: dict) -> Path:
    path = tmp_path / "snapshot.json"
    path.write_text(json.dumps(snapshot_data))
    return path


@pytest.fixture
def test_config(snapshot_file: Path) -> Config:
    """Create a test configuration pointing at the sample snapshot."""
    return Config(
        server=ServerConfig(),
        snapshot=SnapshotConfig(path=snapshot_file),
        routing=RoutingConfig(),
        live_reload=LiveReloadConfig(enabled=False),
    )
