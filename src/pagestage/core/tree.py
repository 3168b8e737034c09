"""Element tree builder.

Turns a flat, parent-pointer list of elements sharing one scope into an
ordered forest. Elements live in a flat arena with parent/children
relationships tracked by indices, the same way pages are kept in a site
structure.
"""

import logging
from collections.abc import Iterator, Sequence

from pagestage.core.models import Element

logger = logging.getLogger(__name__)


class ElementForest:
    """Ordered forest over a flat element list.

    Children at every level are sorted by order_index, ties broken by the
    original list position. Index lookups are O(1).
    """

    __slots__ = ("_children", "_elements", "_id_index", "_parents", "_roots")

    def __init__(
        self,
        elements: Sequence[Element],
        children: list[list[int]],
        parents: list[int | None],
        roots: list[int],
    ) -> None:
        """Initialize forest structure.

        Args:
            elements: Flat list of all elements (the arena)
            children: Ordered children indices for each element
            parents: Parent index for each element (None for roots)
            roots: Ordered indices of root elements
        """
        self._elements = elements
        self._children = children
        self._parents = parents
        self._roots = roots
        self._id_index: dict[str, int] = {}
        for i, element in enumerate(elements):
            self._id_index.setdefault(element.id, i)

    def __len__(self) -> int:
        return len(self._elements)

    def roots(self) -> list[int]:
        return list(self._roots)

    def children(self, idx: int) -> list[int]:
        return list(self._children[idx])

    def parent(self, idx: int) -> int | None:
        return self._parents[idx]

    def element(self, idx: int) -> Element:
        return self._elements[idx]

    def index_of(self, element_id: str) -> int | None:
        return self._id_index.get(element_id)

    def top_level(self) -> list[Element]:
        """Get root elements in forest order."""
        return [self._elements[i] for i in self._roots]

    def walk(self) -> Iterator[tuple[int, int]]:
        """Iterate depth-first pre-order over (index, depth) pairs."""
        stack = [(i, 0) for i in reversed(self._roots)]
        while stack:
            idx, depth = stack.pop()
            yield idx, depth
            stack.extend((child, depth + 1) for child in reversed(self._children[idx]))

    def subtree_ids(self, idx: int) -> list[str]:
        """Get ids of an element and all its descendants, pre-order."""
        ids: list[str] = []
        stack = [idx]
        while stack:
            current = stack.pop()
            ids.append(self._elements[current].id)
            stack.extend(reversed(self._children[current]))
        return ids


def build_forest(elements: Sequence[Element]) -> ElementForest:
    """Build an ordered forest from a flat element list.

    Never raises. Orphans (parent id not in the list) and self-parented
    elements become roots. Elements caught in a parent cycle are detached
    at the lowest list position so that each element appears exactly once.

    Args:
        elements: Elements sharing one page or layout scope

    Returns:
        ElementForest over the given elements
    """
    arena = list(elements)
    id_index: dict[str, int] = {}
    for i, element in enumerate(arena):
        id_index.setdefault(element.id, i)

    parents: list[int | None] = []
    for i, element in enumerate(arena):
        parent_idx = id_index.get(element.parent_id) if element.parent_id else None
        if element.parent_id and parent_idx is None:
            logger.debug(f"Orphaned element {element.id} promoted to root")
        if parent_idx == i:
            parent_idx = None
        parents.append(parent_idx)

    children: list[list[int]] = [[] for _ in arena]
    for i, parent_idx in enumerate(parents):
        if parent_idx is not None:
            children[parent_idx].append(i)

    reachable = [False] * len(arena)

    def mark(start: int) -> None:
        stack = [start]
        while stack:
            current = stack.pop()
            if reachable[current]:
                continue
            reachable[current] = True
            stack.extend(children[current])

    for i, parent_idx in enumerate(parents):
        if parent_idx is None:
            mark(i)

    for i in range(len(arena)):
        if reachable[i]:
            continue
        # Unreachable from any root: part of (or hanging off) a parent cycle
        logger.debug(f"Element {arena[i].id} is in a parent cycle, promoted to root")
        parent_idx = parents[i]
        if parent_idx is not None:
            children[parent_idx].remove(i)
        parents[i] = None
        mark(i)

    def sort_key(idx: int) -> tuple[int, int]:
        return (arena[idx].order_index, idx)

    for child_list in children:
        child_list.sort(key=sort_key)
    roots = sorted((i for i, p in enumerate(parents) if p is None), key=sort_key)

    return ElementForest(arena, children, parents, roots)
