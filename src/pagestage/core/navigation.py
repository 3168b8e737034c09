"""Route tree builder.

Builds the page route tree shown by the editor's routing preview. The tree
follows page ancestry; each item carries its composed URL.
"""

from dataclasses import dataclass, field
from typing import TypedDict

from pagestage.core.models import Page, Snapshot
from pagestage.core.routing import build_url
from pagestage.core.types import URLPath


class NavItemDict(TypedDict, total=False):
    """Dictionary representation of a navigation item."""

    id: str
    title: str
    path: str
    children: list["NavItemDict"]


@dataclass
class NavItem:
    """Navigation item with children for UI tree."""

    id: str
    title: str
    path: URLPath
    children: list["NavItem"] = field(default_factory=list)

    def to_dict(self) -> NavItemDict:
        """Convert to dictionary for JSON serialization."""
        result: NavItemDict = {"id": self.id, "title": self.title, "path": self.path}
        if self.children:
            result["children"] = [child.to_dict() for child in self.children]
        return result


def build_navigation(snapshot: Snapshot, project_id: str | None = None) -> list[NavItem]:
    """Build the route tree of a snapshot.

    Siblings are ordered by order_index, then snapshot position. Pages whose
    parent is missing (or belongs to a cycle) are shown at the root.

    Args:
        snapshot: Snapshot to build navigation from
        project_id: Restrict to pages of one project

    Returns:
        List of NavItem trees for navigation UI
    """
    pages = [
        page
        for page in snapshot.pages
        if project_id is None or page.project_id == project_id
    ]
    known = {page.id for page in pages}
    position = {page.id: i for i, page in enumerate(pages)}

    children: dict[str | None, list[Page]] = {}
    for page in pages:
        parent = page.parent_id if page.parent_id in known else None
        children.setdefault(parent, []).append(page)
    for siblings in children.values():
        siblings.sort(key=lambda p: (p.order_index, position[p.id]))

    visited: set[str] = set()
    roots = [
        _build_nav_item(snapshot, page, pages, children, visited)
        for page in children.get(None, [])
    ]
    # Pages only reachable through a parent cycle
    for page in pages:
        if page.id not in visited:
            roots.append(_build_nav_item(snapshot, page, pages, children, visited))
    return roots


def _build_nav_item(
    snapshot: Snapshot,
    page: Page,
    pages: list[Page],
    children: dict[str | None, list[Page]],
    visited: set[str],
) -> NavItem:
    """Recursively build NavItem from page."""
    visited.add(page.id)
    return NavItem(
        id=page.id,
        title=page.title,
        path=build_url(page, snapshot.layout_for(page), pages),
        children=[
            _build_nav_item(snapshot, child, pages, children, visited)
            for child in children.get(page.id, [])
            if child.id not in visited
        ],
    )
