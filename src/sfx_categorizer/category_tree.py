"""Hierarchical category tree for browsing a classified library.

Effective categories such as ``Weapons/Guns/Rifle`` are split on ``/``
and merged into a tree rooted at ``(All)``.  Every node counts the
items at or below it.  Node identity is case-insensitive; the first
spelling seen is the one displayed.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

ALL_KEY = "(All)"
UNSORTED = "Unsorted"


@dataclass
class CategoryNode:
    name: str
    key: str
    count: int = 0
    children: List["CategoryNode"] = field(default_factory=list)

    @property
    def display_name(self) -> str:
        return f"{self.name} ({self.count:,})"

    def find(self, key: str) -> Optional["CategoryNode"]:
        """Depth-first lookup by key (case-insensitive)."""
        if self.key.lower() == key.lower():
            return self
        for child in self.children:
            found = child.find(key)
            if found is not None:
                return found
        return None

    def to_dict(self) -> Dict[str, object]:
        return {
            "name": self.name,
            "key": self.key,
            "count": self.count,
            "children": [child.to_dict() for child in self.children],
        }


def build_category_tree(categories: Iterable[Optional[str]]) -> CategoryNode:
    """Build the ``(All)`` tree from one effective category per item."""
    root = CategoryNode(ALL_KEY, ALL_KEY)
    lookup: Dict[str, CategoryNode] = {}

    for category in categories:
        text = (category or "").strip() or UNSORTED
        parts = [p.strip() for p in text.split("/") if p.strip()] or [UNSORTED]
        root.count += 1

        parent = root
        path = ""
        for part in parts:
            path = part if not path else f"{path}/{part}"
            node = lookup.get(path.lower())
            if node is None:
                node = CategoryNode(part, path)
                parent.children.append(node)
                lookup[path.lower()] = node
            node.count += 1
            parent = node

    return root


def _collect_keys(node: CategoryNode, out: List[str]) -> None:
    if node.key != ALL_KEY:
        out.append(node.key)
    for child in node.children:
        _collect_keys(child, out)


def category_options(root: CategoryNode) -> List[str]:
    """Sorted distinct category keys (case-insensitive distinct, ordinal sort)."""
    keys: List[str] = []
    _collect_keys(root, keys)
    seen: Dict[str, str] = {}
    for key in keys:
        seen.setdefault(key.lower(), key)
    return sorted(seen.values())


def render_tree(root: CategoryNode, indent: str = "  ") -> List[str]:
    """Indented text lines, one per node, children in insertion order."""
    lines: List[str] = []

    def _walk(node: CategoryNode, depth: int) -> None:
        lines.append(f"{indent * depth}{node.display_name}")
        for child in node.children:
            _walk(child, depth + 1)

    _walk(root, 0)
    return lines
