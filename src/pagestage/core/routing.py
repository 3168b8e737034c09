"""Nested-route URL composition.

Derives a page's absolute URL from its own slug, the slugs of its ancestor
pages and the path prefix of its layout. Also provides the edit-time
guards (circular parents, nesting depth) that keep page ancestry acyclic
and shallow.
"""

import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from pagestage.core.models import Layout, Page
from pagestage.core.types import MAX_NESTING_DEPTH, URLPath

_DUPLICATE_SLASHES = re.compile(r"/{2,}")
_DYNAMIC_PARAM = re.compile(r":([a-zA-Z_][a-zA-Z0-9_]*)")


@dataclass(frozen=True)
class ParentCheck:
    """Outcome of checking a parent assignment before it is committed."""

    allowed: bool
    depth: int
    reason: str | None = None

    def to_dict(self) -> dict[str, object]:
        """Convert to dictionary for JSON serialization."""
        return {"allowed": self.allowed, "reason": self.reason, "depth": self.depth}


def normalize_url(url: str) -> URLPath:
    """Collapse duplicate slashes and enforce one leading, no trailing slash."""
    collapsed = _DUPLICATE_SLASHES.sub("/", f"/{url}")
    if len(collapsed) > 1:
        collapsed = collapsed.rstrip("/") or "/"
    return URLPath(collapsed)


def build_url(page: Page, layout: Layout | None, all_pages: Iterable[Page]) -> URLPath:
    """Build the absolute URL of a page.

    An absolute page slug is returned unchanged. Otherwise the relative
    slugs of the ancestor chain are joined root-to-leaf; an absolute
    ancestor slug becomes the base and stops the walk. The layout slug, if
    any, is prepended last.

    Args:
        page: Page to build the URL for
        layout: Layout the page is bound to, if any
        all_pages: All pages of the project (for parent lookups)

    Returns:
        Normalized absolute URL path
    """
    if page.has_absolute_slug:
        return URLPath(page.slug)

    by_id = {p.id: p for p in all_pages}
    segments = [page.slug]
    base = ""
    visited = {page.id}
    current = by_id.get(page.parent_id) if page.parent_id else None
    while current is not None and current.id not in visited:
        visited.add(current.id)
        if current.has_absolute_slug:
            base = current.slug
            break
        segments.append(current.slug)
        current = by_id.get(current.parent_id) if current.parent_id else None

    segments.reverse()
    path = "/".join([base, *segments])
    if layout is not None and layout.slug:
        path = f"{layout.slug}/{path}"
    return normalize_url(path)


def has_circular_reference(
    page_id: str,
    candidate_parent_id: str | None,
    all_pages: Iterable[Page],
) -> bool:
    """Check whether making candidate the parent of page creates a cycle.

    Self-parenting counts as circular. A cycle already present in the
    candidate's ancestor chain is also reported as circular.
    """
    if candidate_parent_id is None:
        return False

    parents = {p.id: p.parent_id for p in all_pages}
    visited: set[str] = set()
    current: str | None = candidate_parent_id
    while current is not None:
        if current == page_id or current in visited:
            return True
        visited.add(current)
        current = parents.get(current)
    return False


def nesting_depth(
    page_id: str,
    all_pages: Iterable[Page],
    limit: int = MAX_NESTING_DEPTH,
) -> int:
    """Count the ancestors of a page, stopping at limit.

    Root pages have depth 0. Missing parents end the chain.
    """
    parents = {p.id: p.parent_id for p in all_pages}
    depth = 0
    visited = {page_id}
    current = parents.get(page_id)
    while current is not None and current in parents and depth < limit:
        if current in visited:
            break
        visited.add(current)
        depth += 1
        current = parents[current]
    return depth


def check_parent_assignment(
    page_id: str,
    candidate_parent_id: str | None,
    all_pages: Sequence[Page],
    max_depth: int = MAX_NESTING_DEPTH,
) -> ParentCheck:
    """Decide whether a parent assignment may be committed.

    The page (and its whole subtree) must stay within max_depth levels, so
    with the default of 5 a chain of 5 pages refuses a 6th level.

    Args:
        page_id: Page being moved
        candidate_parent_id: New parent, None to detach
        all_pages: All pages of the project
        max_depth: Maximum number of levels

    Returns:
        ParentCheck with the decision and the page's resulting depth
    """
    if candidate_parent_id is None:
        return ParentCheck(allowed=True, depth=0)

    if not any(p.id == candidate_parent_id for p in all_pages):
        return ParentCheck(allowed=False, depth=0, reason="Parent page not found")

    if has_circular_reference(page_id, candidate_parent_id, all_pages):
        return ParentCheck(
            allowed=False,
            depth=0,
            reason="Parent assignment would create a circular reference",
        )

    depth = nesting_depth(candidate_parent_id, all_pages, limit=max_depth) + 1
    deepest = depth + _subtree_height(page_id, all_pages)
    if deepest >= max_depth:
        return ParentCheck(
            allowed=False,
            depth=depth,
            reason=f"Pages can be nested at most {max_depth} levels deep",
        )
    return ParentCheck(allowed=True, depth=depth)


def _subtree_height(page_id: str, all_pages: Iterable[Page]) -> int:
    """Count levels of descendants below a page."""
    children: dict[str, list[str]] = {}
    for page in all_pages:
        if page.parent_id is not None:
            children.setdefault(page.parent_id, []).append(page.id)

    height = 0
    visited = {page_id}
    level = [page_id]
    while True:
        next_level = [
            child
            for current in level
            for child in children.get(current, [])
            if child not in visited
        ]
        if not next_level:
            return height
        visited.update(next_level)
        level = next_level
        height += 1


def find_url_conflict(
    url: str,
    all_pages: Sequence[Page],
    layouts: Iterable[Layout] = (),
    exclude_page_id: str | None = None,
) -> Page | None:
    """Find the first page whose composed URL equals url.

    Args:
        url: Candidate URL
        all_pages: All pages of the project
        layouts: All layouts (for layout slug prefixes)
        exclude_page_id: Page to skip (the page being edited)

    Returns:
        Conflicting page or None
    """
    layouts_by_id = {layout.id: layout for layout in layouts}
    target = normalize_url(url)
    for page in all_pages:
        if page.id == exclude_page_id:
            continue
        layout = layouts_by_id.get(page.layout_id) if page.layout_id else None
        if normalize_url(build_url(page, layout, all_pages)) == target:
            return page
    return None


def extract_dynamic_params(slug: str) -> list[str]:
    """Extract ":name" parameter names from a slug, in order."""
    return _DYNAMIC_PARAM.findall(slug)


def has_dynamic_params(slug: str) -> bool:
    return _DYNAMIC_PARAM.search(slug) is not None


def fill_dynamic_params(slug: str, params: dict[str, str]) -> str:
    """Substitute parameter values into a slug.

    Parameters without a value are left in place.
    """

    def substitute(match: re.Match[str]) -> str:
        return params.get(match.group(1), match.group(0))

    return _DYNAMIC_PARAM.sub(substitute, slug)


def match_dynamic_url(pattern: str, url: str) -> dict[str, str] | None:
    """Match a URL against a parameterized pattern.

    Args:
        pattern: Pattern such as "/products/:categoryId"
        url: Concrete URL such as "/products/shoes"

    Returns:
        Parameter values by name, or None when the URL does not match
    """
    names: list[str] = []
    parts: list[str] = []
    last = 0
    for match in _DYNAMIC_PARAM.finditer(pattern):
        parts.append(re.escape(pattern[last : match.start()]))
        parts.append("([^/]+)")
        names.append(match.group(1))
        last = match.end()
    parts.append(re.escape(pattern[last:]))

    found = re.fullmatch("".join(parts), url)
    if found is None:
        return None
    return dict(zip(names, found.groups(), strict=True))
