"""Core type definitions."""

from typing import NewType

# URL path for routing (e.g., "/products", "/app/settings")
# Distinct from slugs, which may be relative segments
URLPath = NewType("URLPath", str)

# Reserved element tag marking a Layout insertion point
SLOT_TAG = "Slot"

# Maximum number of ancestors a page may have
MAX_NESTING_DEPTH = 5
