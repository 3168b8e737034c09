"""Slot index for layout trees.

Scans a layout forest for slot markers and records their contract and
position. Slot order is always the traversal order recorded in each
descriptor's position, never the iteration order of a lookup table.
"""

import logging
from collections.abc import Iterator, Mapping
from dataclasses import dataclass

from pagestage.core.models import SlotMarker
from pagestage.core.tree import ElementForest

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SlotPosition:
    """Location of a slot marker in the layout forest.

    ordinal is the marker's depth-first pre-order rank among all elements;
    path holds the sibling offsets from the root list down to the marker.
    """

    ordinal: int
    path: tuple[int, ...]


@dataclass(frozen=True)
class SlotDescriptor:
    """Declared contract of one layout slot."""

    name: str
    required: bool
    description: str
    display_name: str
    element_id: str
    position: SlotPosition

    def to_dict(self) -> dict[str, object]:
        """Convert to dictionary for JSON serialization."""
        return {
            "name": self.name,
            "displayName": self.display_name,
            "required": self.required,
            "description": self.description,
            "elementId": self.element_id,
            "position": list(self.position.path),
        }


class SlotIndex:
    """Ordered collection of slot descriptors for one layout."""

    __slots__ = ("_by_name", "_descriptors", "_duplicates")

    def __init__(
        self,
        descriptors: list[SlotDescriptor],
        duplicates: list[str] | None = None,
    ) -> None:
        self._descriptors = sorted(descriptors, key=lambda d: d.position.ordinal)
        self._by_name = {d.name: d for d in self._descriptors}
        self._duplicates = list(duplicates or [])

    def __iter__(self) -> Iterator[SlotDescriptor]:
        return iter(self._descriptors)

    def __len__(self) -> int:
        return len(self._descriptors)

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    @property
    def duplicates(self) -> list[str]:
        """Names declared by more than one marker."""
        return list(self._duplicates)

    def names(self) -> list[str]:
        return [d.name for d in self._descriptors]

    def get(self, name: str) -> SlotDescriptor | None:
        return self._by_name.get(name)

    def required(self) -> list[SlotDescriptor]:
        return [d for d in self._descriptors if d.required]

    def owns_marker(self, name: str, element_id: str) -> bool:
        """Check whether a marker element is the one indexed under its name."""
        descriptor = self._by_name.get(name)
        return descriptor is not None and descriptor.element_id == element_id

    def default_slot(self, assigned_counts: Mapping[str, int] | None = None) -> str | None:
        """Pick the slot receiving page content without a target slot.

        Precedence: first required slot still empty, then first required
        slot, then first slot, all in traversal order.

        Args:
            assigned_counts: Number of subtrees already assigned per slot name

        Returns:
            Slot name, or None if the layout has no slots
        """
        counts = assigned_counts or {}
        required = self.required()
        for descriptor in required:
            if not counts.get(descriptor.name):
                return descriptor.name
        if required:
            return required[0].name
        if self._descriptors:
            return self._descriptors[0].name
        return None

    def to_dict(self) -> dict[str, object]:
        """Convert to dictionary for JSON serialization."""
        return {
            "slots": [d.to_dict() for d in self._descriptors],
            "duplicates": self.duplicates,
        }


def index_slots(forest: ElementForest) -> SlotIndex:
    """Index slot markers of a layout forest.

    Name collisions resolve last-write-wins in traversal order; the
    collision is logged and recorded, not raised. Markers are leaves for
    indexing purposes: nothing below a marker is scanned.

    Args:
        forest: Built layout forest

    Returns:
        SlotIndex in traversal order
    """
    by_name: dict[str, SlotDescriptor] = {}
    duplicates: list[str] = []
    ordinal = 0

    stack: list[tuple[int, tuple[int, ...]]] = [
        (idx, (offset,)) for offset, idx in reversed(list(enumerate(forest.roots())))
    ]
    while stack:
        idx, path = stack.pop()
        element = forest.element(idx)
        kind = element.kind
        if isinstance(kind, SlotMarker):
            if kind.name in by_name:
                logger.warning(
                    f'Duplicate slot name "{kind.name}" in layout '
                    f"{element.layout_id}; marker {element.id} wins",
                )
                if kind.name not in duplicates:
                    duplicates.append(kind.name)
            by_name[kind.name] = SlotDescriptor(
                name=kind.name,
                required=kind.required,
                description=kind.description,
                display_name=kind.display_name,
                element_id=element.id,
                position=SlotPosition(ordinal=ordinal, path=path),
            )
        else:
            children = forest.children(idx)
            stack.extend(
                (child, (*path, offset))
                for offset, child in reversed(list(enumerate(children)))
            )
        ordinal += 1

    return SlotIndex(list(by_name.values()), duplicates)
