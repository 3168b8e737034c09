"""Layout and page composition.

Merges a layout's element tree with a page's element tree: the layout
tree is walked depth-first and every slot marker is replaced with the page
subtrees assigned to it. Resolution is a pure function of its inputs and
returns freshly allocated results on every call.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from pagestage.core.assignment import assign_slots
from pagestage.core.models import (
    Element,
    Layout,
    Page,
    SlotMarker,
    Snapshot,
    layout_scope,
    page_scope,
)
from pagestage.core.slots import SlotIndex, index_slots
from pagestage.core.tree import ElementForest, build_forest

logger = logging.getLogger(__name__)


class Origin(StrEnum):
    """Tree an output node was taken from."""

    LAYOUT = "layout"
    PAGE = "page"


class SlotErrorType(StrEnum):
    REQUIRED_SLOT_EMPTY = "REQUIRED_SLOT_EMPTY"


@dataclass(frozen=True)
class ResolvedElement:
    """Output node of the resolved tree."""

    element: Element
    origin: Origin
    children: tuple["ResolvedElement", ...] = ()

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization.

        Nested children are filled in with an explicit stack, so arbitrarily
        deep trees serialize without recursion.
        """
        root = self._node_dict()
        stack = [(self, root)]
        while stack:
            node, data = stack.pop()
            for child in node.children:
                child_data = child._node_dict()
                data["children"].append(child_data)
                stack.append((child, child_data))
        return root

    def _node_dict(self) -> dict[str, Any]:
        return {
            "element": self.element.to_dict(),
            "origin": self.origin.value,
            "children": [],
        }


@dataclass(frozen=True)
class SlotValidationError:
    """Validation condition found while resolving a layout."""

    slot_name: str
    error_type: SlotErrorType

    @property
    def message(self) -> str:
        return f'Required slot "{self.slot_name}" is empty'

    def to_dict(self) -> dict[str, str]:
        """Convert to dictionary for JSON serialization."""
        return {
            "slotName": self.slot_name,
            "errorType": self.error_type.value,
            "message": self.message,
        }


@dataclass
class LayoutResolutionResult:
    """Composed tree plus slot contents and validation report.

    slot_contents keys follow slot index order, then target names with no
    matching slot in first-seen order.
    """

    resolved_tree: list[ResolvedElement]
    slot_contents: dict[str, list[ResolvedElement]] = field(default_factory=dict)
    validation_errors: list[SlotValidationError] = field(default_factory=list)
    has_layout: bool = False
    unused_slot_names: list[str] = field(default_factory=list)
    dropped_element_ids: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "resolvedTree": [node.to_dict() for node in self.resolved_tree],
            "slotContents": {
                name: [node.to_dict() for node in nodes]
                for name, nodes in self.slot_contents.items()
            },
            "validationErrors": [error.to_dict() for error in self.validation_errors],
            "hasLayout": self.has_layout,
            "unusedSlotNames": list(self.unused_slot_names),
            "droppedElementIds": list(self.dropped_element_ids),
        }


def resolve(
    page: Page | None,
    layout: Layout | None,
    elements: Sequence[Element],
) -> LayoutResolutionResult:
    """Resolve the element tree to render for a page.

    Args:
        page: Page to render (None renders nothing)
        layout: Layout the page is bound to, None if unbound or missing
        elements: All elements of the snapshot (page and layout scopes)

    Returns:
        LayoutResolutionResult with the composed tree
    """
    if page is None:
        return LayoutResolutionResult(resolved_tree=[])

    page_elements = page_scope(elements, page.id)
    page_forest = build_forest(page_elements)

    if page.layout_id is None or layout is None or layout.id != page.layout_id:
        if page.layout_id is not None:
            logger.debug(f"Layout {page.layout_id} of page {page.id} not found")
        return LayoutResolutionResult(
            resolved_tree=_page_subtrees(page_forest, page_forest.roots()),
        )

    layout_elements = layout_scope(elements, layout.id)
    layout_forest = build_forest(layout_elements)
    slot_index = index_slots(layout_forest)
    assignment = assign_slots(page_forest, slot_index)

    slot_contents = {
        name: _page_subtrees(page_forest, roots)
        for name, roots in assignment.groups.items()
    }

    resolved_tree = _layout_tree(layout_forest, slot_index, slot_contents)

    validation_errors = [
        SlotValidationError(
            slot_name=descriptor.name,
            error_type=SlotErrorType.REQUIRED_SLOT_EMPTY,
        )
        for descriptor in slot_index.required()
        if not slot_contents.get(descriptor.name)
    ]

    dropped_ids: list[str] = []
    for idx in assignment.dropped:
        dropped_ids.extend(page_forest.subtree_ids(idx))

    logger.debug(
        f"Resolved page {page.id} with layout {layout.id}: "
        f"{len(layout_elements)} layout elements, {len(page_elements)} page elements, "
        f"{len(slot_index)} slots, {len(validation_errors)} validation errors",
    )

    return LayoutResolutionResult(
        resolved_tree=resolved_tree,
        slot_contents=slot_contents,
        validation_errors=validation_errors,
        has_layout=True,
        unused_slot_names=list(assignment.unmatched),
        dropped_element_ids=dropped_ids,
    )


def resolve_page(snapshot: Snapshot, page_id: str | None) -> LayoutResolutionResult:
    """Resolve a page of a snapshot by id.

    Unknown or None page ids resolve to an empty, layout-less result.
    """
    page = snapshot.page(page_id)
    layout = snapshot.layout_for(page) if page is not None else None
    return resolve(page, layout, snapshot.elements)


def _layout_tree(
    forest: ElementForest,
    slot_index: SlotIndex,
    slot_contents: dict[str, list[ResolvedElement]],
) -> list[ResolvedElement]:
    """Resolve the layout forest, splicing slot contents in place of markers.

    Children are built before their parents with an explicit stack, so the
    depth of the layout tree is not bounded by the interpreter stack.
    """
    # Each layout index resolves to zero or more output nodes
    built: dict[int, list[ResolvedElement]] = {}
    stack = [(idx, False) for idx in reversed(forest.roots())]
    while stack:
        idx, expanded = stack.pop()
        element = forest.element(idx)
        kind = element.kind
        if isinstance(kind, SlotMarker):
            # Shadowed duplicates receive nothing
            if slot_index.owns_marker(kind.name, element.id):
                built[idx] = list(slot_contents.get(kind.name, []))
            else:
                built[idx] = []
            continue

        child_indices = forest.children(idx)
        if not expanded:
            stack.append((idx, True))
            stack.extend((child, False) for child in reversed(child_indices))
            continue

        children: list[ResolvedElement] = []
        for child in child_indices:
            children.extend(built.pop(child))
        built[idx] = [
            ResolvedElement(element=element, origin=Origin.LAYOUT, children=tuple(children)),
        ]

    resolved: list[ResolvedElement] = []
    for idx in forest.roots():
        resolved.extend(built.pop(idx))
    return resolved


def _page_subtrees(forest: ElementForest, roots: list[int]) -> list[ResolvedElement]:
    """Build page-origin nodes for the given roots, children first."""
    built: dict[int, ResolvedElement] = {}
    stack = [(idx, False) for idx in reversed(roots)]
    while stack:
        idx, expanded = stack.pop()
        child_indices = forest.children(idx)
        if not expanded:
            stack.append((idx, True))
            stack.extend((child, False) for child in reversed(child_indices))
            continue

        built[idx] = ResolvedElement(
            element=forest.element(idx),
            origin=Origin.PAGE,
            children=tuple(built.pop(child) for child in child_indices),
        )
    return [built.pop(idx) for idx in roots]
