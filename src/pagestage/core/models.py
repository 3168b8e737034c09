"""Data model for pages, layouts and elements.

All entities are frozen snapshots handed over by the editor. The element
kind (regular node or slot marker) is decided once when an Element is
constructed, so downstream code dispatches on the kind type instead of
comparing tag strings.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from pagestage.core.types import SLOT_TAG

# Page-side properties naming the slot a top-level element should fill
TARGET_SLOT_PROPERTY = "targetSlot"
LEGACY_SLOT_PROPERTY = "slot_name"


@dataclass(frozen=True)
class RegularKind:
    """Ordinary element rendered as-is."""

    tag: str
    properties: Mapping[str, Any]


@dataclass(frozen=True)
class SlotMarker:
    """Layout insertion point replaced by page content during resolution."""

    name: str
    required: bool
    description: str
    display_name: str


ElementKind = RegularKind | SlotMarker


def synthetic_slot_name(element_id: str) -> str:
    """Derive a stable slot name for a marker without an explicit one."""
    return f"slot_{element_id[:8]}"


def _classify(element_id: str, tag: str, properties: Mapping[str, Any]) -> ElementKind:
    if tag != SLOT_TAG:
        return RegularKind(tag=tag, properties=properties)

    explicit = properties.get("name")
    if not isinstance(explicit, str) or not explicit:
        explicit = None
    description = properties.get("description")
    return SlotMarker(
        name=explicit or synthetic_slot_name(element_id),
        required=properties.get("required") is True,
        description=description if isinstance(description, str) else "",
        display_name=explicit or "unnamed",
    )


@dataclass(frozen=True)
class Element:
    """Node of exactly one page tree or one layout tree."""

    id: str
    tag: str
    parent_id: str | None = None
    order_index: int = 0
    properties: Mapping[str, Any] = field(default_factory=dict)
    page_id: str | None = None
    layout_id: str | None = None
    kind: ElementKind = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        properties = MappingProxyType(dict(self.properties))
        object.__setattr__(self, "properties", properties)
        object.__setattr__(self, "kind", _classify(self.id, self.tag, properties))

    @property
    def is_slot(self) -> bool:
        return isinstance(self.kind, SlotMarker)

    @property
    def target_slot(self) -> str | None:
        """Slot name requested by a page element, None when unset."""
        for key in (TARGET_SLOT_PROPERTY, LEGACY_SLOT_PROPERTY):
            value = self.properties.get(key)
            if isinstance(value, str) and value:
                return value
        return None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "tag": self.tag,
            "parentId": self.parent_id,
            "orderIndex": self.order_index,
            "properties": dict(self.properties),
            "pageId": self.page_id,
            "layoutId": self.layout_id,
        }


def page_scope(elements: Iterable[Element], page_id: str) -> list[Element]:
    """Select the elements of one page tree, in list order."""
    return [el for el in elements if el.page_id == page_id and el.layout_id is None]


def layout_scope(elements: Iterable[Element], layout_id: str) -> list[Element]:
    """Select the elements of one layout tree, in list order."""
    return [el for el in elements if el.layout_id == layout_id]


@dataclass(frozen=True)
class Layout:
    """Reusable element tree with named slots and an optional URL prefix."""

    id: str
    name: str
    slug: str | None = None
    project_id: str | None = None
    description: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "name": self.name,
            "slug": self.slug,
            "projectId": self.project_id,
            "description": self.description,
        }


@dataclass(frozen=True)
class Page:
    """Project page, optionally bound to a layout and a parent page."""

    id: str
    title: str
    slug: str
    parent_id: str | None = None
    layout_id: str | None = None
    order_index: int = 0
    project_id: str | None = None

    @property
    def has_absolute_slug(self) -> bool:
        return self.slug.startswith("/")

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "title": self.title,
            "slug": self.slug,
            "parentId": self.parent_id,
            "layoutId": self.layout_id,
            "orderIndex": self.order_index,
            "projectId": self.project_id,
        }


class Snapshot:
    """Read-only bundle of pages, layouts and elements with id lookups.

    Lists keep their original order; the indexes are built once at
    construction and never updated.
    """

    __slots__ = ("_elements", "_layout_index", "_layouts", "_page_index", "_pages")

    def __init__(
        self,
        pages: Iterable[Page] = (),
        layouts: Iterable[Layout] = (),
        elements: Iterable[Element] = (),
    ) -> None:
        self._pages = tuple(pages)
        self._layouts = tuple(layouts)
        self._elements = tuple(elements)
        self._page_index = {page.id: page for page in self._pages}
        self._layout_index = {layout.id: layout for layout in self._layouts}

    @property
    def pages(self) -> tuple[Page, ...]:
        return self._pages

    @property
    def layouts(self) -> tuple[Layout, ...]:
        return self._layouts

    @property
    def elements(self) -> tuple[Element, ...]:
        return self._elements

    def page(self, page_id: str | None) -> Page | None:
        if page_id is None:
            return None
        return self._page_index.get(page_id)

    def layout(self, layout_id: str | None) -> Layout | None:
        if layout_id is None:
            return None
        return self._layout_index.get(layout_id)

    def layout_for(self, page: Page) -> Layout | None:
        """Get the layout a page is bound to, None if unbound or missing."""
        return self.layout(page.layout_id)

    def elements_for_page(self, page_id: str) -> list[Element]:
        return page_scope(self._elements, page_id)

    def elements_for_layout(self, layout_id: str) -> list[Element]:
        return layout_scope(self._elements, layout_id)
