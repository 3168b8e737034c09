"""Snapshot loading from JSON.

Parses the editor's page, layout and element lists into the core model.
Keys use the editor's camelCase names; snake_case aliases are accepted.
"""

import json
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pagestage.core.models import Element, Layout, Page, Snapshot

logger = logging.getLogger(__name__)


def load_snapshot(data: object) -> Snapshot:
    """Parse a snapshot document.

    Args:
        data: Decoded JSON document with pages, layouts and elements lists

    Returns:
        Snapshot instance

    Raises:
        ValueError: If the document is invalid
    """
    if not isinstance(data, dict):
        raise ValueError("Snapshot must be a dictionary")

    pages = [
        _parse_page(item, f"pages[{i}]")
        for i, item in enumerate(_get_list(data, "pages"))
    ]
    layouts = [
        _parse_layout(item, f"layouts[{i}]")
        for i, item in enumerate(_get_list(data, "layouts"))
    ]
    elements = [
        _parse_element(item, f"elements[{i}]")
        for i, item in enumerate(_get_list(data, "elements"))
    ]
    return Snapshot(pages=pages, layouts=layouts, elements=elements)


def _get_list(data: Mapping[str, Any], key: str) -> list[object]:
    value = data.get(key, [])
    if not isinstance(value, list):
        raise ValueError(f"{key} must be a list")
    return value


def _get(data: Mapping[str, Any], camel: str, snake: str | None = None) -> object:
    if camel in data:
        return data[camel]
    if snake is not None:
        return data.get(snake)
    return None


def _require_str(value: object, where: str) -> str:
    if not isinstance(value, str) or not value:
        raise ValueError(f"{where} must be a non-empty string")
    return value


def _optional_str(value: object, where: str) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValueError(f"{where} must be a string")
    return value or None


def _order_index(value: object, where: str) -> int:
    if value is None:
        return 0
    # bool is an int subclass but never a valid order
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{where} must be an integer")
    return value


def _parse_page(data: object, where: str) -> Page:
    if not isinstance(data, dict):
        raise ValueError(f"{where} must be a dictionary")

    slug = data.get("slug", "")
    if not isinstance(slug, str):
        raise ValueError(f"{where}.slug must be a string")

    title = data.get("title", "")
    if not isinstance(title, str):
        raise ValueError(f"{where}.title must be a string")

    return Page(
        id=_require_str(data.get("id"), f"{where}.id"),
        title=title,
        slug=slug,
        parent_id=_optional_str(_get(data, "parentId", "parent_id"), f"{where}.parentId"),
        layout_id=_optional_str(_get(data, "layoutId", "layout_id"), f"{where}.layoutId"),
        order_index=_order_index(
            _get(data, "orderIndex", "order_index"), f"{where}.orderIndex"
        ),
        project_id=_optional_str(
            _get(data, "projectId", "project_id"), f"{where}.projectId"
        ),
    )


def _parse_layout(data: object, where: str) -> Layout:
    if not isinstance(data, dict):
        raise ValueError(f"{where} must be a dictionary")

    name = data.get("name", "")
    if not isinstance(name, str):
        raise ValueError(f"{where}.name must be a string")

    return Layout(
        id=_require_str(data.get("id"), f"{where}.id"),
        name=name,
        slug=_optional_str(data.get("slug"), f"{where}.slug"),
        project_id=_optional_str(
            _get(data, "projectId", "project_id"), f"{where}.projectId"
        ),
        description=_optional_str(data.get("description"), f"{where}.description"),
    )


def _parse_element(data: object, where: str) -> Element:
    if not isinstance(data, dict):
        raise ValueError(f"{where} must be a dictionary")

    properties = _get(data, "properties", "props")
    if properties is None:
        properties = {}
    if not isinstance(properties, dict):
        raise ValueError(f"{where}.properties must be a dictionary")

    page_id = _optional_str(_get(data, "pageId", "page_id"), f"{where}.pageId")
    layout_id = _optional_str(_get(data, "layoutId", "layout_id"), f"{where}.layoutId")
    if (page_id is None) == (layout_id is None):
        raise ValueError(f"{where} must have exactly one of pageId and layoutId")

    return Element(
        id=_require_str(data.get("id"), f"{where}.id"),
        tag=_require_str(data.get("tag"), f"{where}.tag"),
        parent_id=_optional_str(_get(data, "parentId", "parent_id"), f"{where}.parentId"),
        order_index=_order_index(
            _get(data, "orderIndex", "order_index"), f"{where}.orderIndex"
        ),
        properties=properties,
        page_id=page_id,
        layout_id=layout_id,
    )


class SnapshotLoader:
    """Loads a snapshot file with mtime-based caching.

    The parsed snapshot is reused until the file's mtime changes or
    invalidate() is called.
    """

    def __init__(self, path: Path) -> None:
        """Initialize loader.

        Args:
            path: Path to the snapshot JSON file
        """
        self._path = path
        self._cached: Snapshot | None = None
        self._cached_mtime: float | None = None

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> Snapshot:
        """Load the snapshot, reusing the cached copy when unchanged.

        Raises:
            FileNotFoundError: If the snapshot file doesn't exist
            ValueError: If the file is not a valid snapshot
        """
        if not self._path.exists():
            raise FileNotFoundError(f"Snapshot file not found: {self._path}")

        mtime = self._path.stat().st_mtime
        if self._cached is not None and self._cached_mtime == mtime:
            return self._cached

        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid snapshot JSON in {self._path}: {e}") from e

        snapshot = load_snapshot(data)
        logger.info(
            f"Loaded snapshot {self._path}: {len(snapshot.pages)} pages, "
            f"{len(snapshot.layouts)} layouts, {len(snapshot.elements)} elements",
        )
        self._cached = snapshot
        self._cached_mtime = mtime
        return snapshot

    def invalidate(self) -> None:
        """Drop the cached snapshot."""
        self._cached = None
        self._cached_mtime = None
