"""Prefix tree over MeSH tree numbers (e.g. "C01.100.200").

Edges are labelled by tree-number segments; a node carries no payload. The
tree only grows: inserting a path that already exists changes nothing.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator

PATH_SEPARATOR = "."


class MeshNode:
    """A node in the tree-number prefix tree."""

    __slots__ = ("children",)

    def __init__(self, children: dict[str, MeshNode] | None = None) -> None:
        self.children: dict[str, MeshNode] = children if children is not None else {}

    def add(self, segments: Iterable[str]) -> None:
        """Insert a path given as its segments, creating missing nodes."""
        node = self
        for segment in segments:
            child = node.children.get(segment)
            if child is None:
                child = MeshNode()
                node.children[segment] = child
            node = child

    def get_dict(self) -> dict[str, MeshNode]:
        """Direct children, keyed by segment."""
        return self.children

    def find(self, prefix: str) -> MeshNode | None:
        """Return the node at a dotted path, or None if the path is absent."""
        node = self
        for segment in prefix.split(PATH_SEPARATOR):
            node = node.children.get(segment)
            if node is None:
                return None
        return node

    def get_same_prefix(self, prefix: str) -> list[str]:
        """All descendant paths below ``prefix``, excluding the prefix itself.

        Every descendant node is returned, not only leaves. The order is
        unspecified; an absent prefix yields an empty list.
        """
        node = self.find(prefix)
        if node is None:
            return []
        return list(_descendant_paths(prefix, node))

    def iter_paths(self) -> Iterator[str]:
        """Every path in the tree, parents before their children."""
        for segment, child in self.children.items():
            yield segment
            yield from _descendant_paths(segment, child)

    def __contains__(self, path: object) -> bool:
        return isinstance(path, str) and self.find(path) is not None

    def node_count(self) -> int:
        """Number of nodes below this one."""
        return sum(1 + child.node_count() for child in self.children.values())

    def __repr__(self) -> str:
        return f"MeshNode(children={sorted(self.children)})"


def _descendant_paths(path: str, node: MeshNode) -> Iterator[str]:
    for segment, child in node.children.items():
        child_path = f"{path}{PATH_SEPARATOR}{segment}"
        yield child_path
        yield from _descendant_paths(child_path, child)
