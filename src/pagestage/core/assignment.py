"""Slot assignment for page content.

Partitions the top-level subtrees of a page forest into groups keyed by
the slot they fill. Only top-level nodes are inspected; descendants travel
with their top-level ancestor.
"""

import logging
from dataclasses import dataclass, field

from pagestage.core.slots import SlotIndex
from pagestage.core.tree import ElementForest

logger = logging.getLogger(__name__)


@dataclass
class SlotAssignment:
    """Result of partitioning a page forest across slots.

    groups maps slot name to forest root indices. Keys follow slot index
    order, then explicit names without a matching slot in first-seen order.
    """

    groups: dict[str, list[int]] = field(default_factory=dict)
    unmatched: list[str] = field(default_factory=list)
    dropped: list[int] = field(default_factory=list)

    def count(self, slot_name: str) -> int:
        return len(self.groups.get(slot_name, []))


def assign_slots(page_forest: ElementForest, slot_index: SlotIndex) -> SlotAssignment:
    """Assign each top-level page subtree to a slot name.

    Explicit targetSlot values are honored first, even when the layout has
    no such slot. Untagged subtrees then take the default slot computed
    from the counts so far, so an empty required slot is preferred over a
    required slot that already holds tagged content.

    Args:
        page_forest: Built page forest
        slot_index: Slot index of the layout the page is bound to

    Returns:
        SlotAssignment with groups in deterministic order
    """
    roots = page_forest.roots()
    rank = {idx: position for position, idx in enumerate(roots)}
    collected: dict[str, list[int]] = {}
    unmatched: list[str] = []
    untagged: list[int] = []

    for idx in roots:
        target = page_forest.element(idx).target_slot
        if target is None:
            untagged.append(idx)
            continue
        collected.setdefault(target, []).append(idx)
        if target not in slot_index and target not in unmatched:
            logger.warning(f'Page content targets unknown slot "{target}"')
            unmatched.append(target)

    dropped: list[int] = []
    for idx in untagged:
        counts = {name: len(members) for name, members in collected.items()}
        default = slot_index.default_slot(counts)
        if default is None:
            logger.warning(
                f"Layout has no slots; dropping page element {page_forest.element(idx).id}",
            )
            dropped.append(idx)
            continue
        collected.setdefault(default, []).append(idx)

    groups: dict[str, list[int]] = {}
    for name in [*slot_index.names(), *unmatched]:
        members = collected.get(name)
        if members:
            groups[name] = sorted(members, key=rank.__getitem__)

    return SlotAssignment(groups=groups, unmatched=unmatched, dropped=dropped)
