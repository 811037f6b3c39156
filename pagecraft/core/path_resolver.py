from __future__ import annotations

"""Translate structural paths into node locations and back.

A path is a tuple of child indices descending from the top-level list. Paths
are snapshot coordinates: they are valid only against the exact tree value
they were computed from, and must be recomputed (typically via
:func:`locate`) after every structural edit.

This module holds no state.
"""

from dataclasses import dataclass
from typing import Iterable, Iterator, Optional, Sequence, Tuple

from pagecraft.core.exceptions import InvalidPath, NotFound
from pagecraft.core.models import Node, Path, Tree, as_path

__all__ = [
    "Location",
    "resolve",
    "locate",
    "find",
    "children_at",
    "walk",
    "parent_of",
    "index_of",
    "is_strict_prefix",
]


@dataclass(frozen=True)
class Location:
    """Where a path lands in a tree.

    Attributes
    ----------
    siblings
        The list (top-level tuple or a container's children) holding the slot.
    index
        Final index of the path within ``siblings``.
    node
        Node at the slot, or ``None`` for an append position.
    parent_path
        Path of the container owning ``siblings`` (``()`` for top level).
    """

    siblings: Tuple[Node, ...]
    index: int
    node: Optional[Node]
    parent_path: Path


def parent_of(path: Sequence[int]) -> Path:
    """Return the path of the list holding ``path`` (all but the last index)."""
    p = as_path(path)
    if not p:
        raise InvalidPath("Empty path has no parent.", p)
    return p[:-1]


def index_of(path: Sequence[int]) -> int:
    """Return the final index of ``path``."""
    p = as_path(path)
    if not p:
        raise InvalidPath("Empty path has no index.", p)
    return p[-1]


def is_strict_prefix(prefix: Sequence[int], path: Sequence[int]) -> bool:
    """Return True if ``prefix`` is a proper prefix of ``path``."""
    a, b = as_path(prefix), as_path(path)
    return len(a) < len(b) and b[: len(a)] == a


def children_at(tree: Tree, container_path: Optional[Sequence[int]]) -> Tuple[Node, ...]:
    """Return the children list addressed by ``container_path``.

    The empty path (or None) addresses the top-level list. Any other path must
    resolve to a container node.
    """
    p = as_path(container_path)
    current: Tuple[Node, ...] = tuple(tree)
    for depth, idx in enumerate(p):
        if idx < 0 or idx >= len(current):
            raise InvalidPath(f"Index {idx} out of range at depth {depth}.", p)
        node = current[idx]
        if not node.is_container:
            raise InvalidPath(
                f"Node '{node.id}' at depth {depth} is not a container.", p
            )
        current = node.children or ()
    return current


def resolve(tree: Tree, path: Sequence[int], *, for_insert: bool = False) -> Location:
    """Descend ``path`` through ``tree`` and return its :class:`Location`.

    Raises
    ------
    InvalidPath
        If the path is empty, an intermediate index is out of range or does
        not address a container, or the final index is out of range. For an
        insert position (``for_insert=True``) the final index may equal the
        list length, meaning "append".
    """
    p = as_path(path)
    if not p:
        raise InvalidPath("Cannot resolve an empty path.", p)
    parent_path = p[:-1]
    siblings = children_at(tree, parent_path)
    index = p[-1]
    upper = len(siblings) if for_insert else len(siblings) - 1
    if index < 0 or index > upper:
        raise InvalidPath(
            f"Final index {index} out of range (size {len(siblings)}).", p
        )
    node = siblings[index] if index < len(siblings) else None
    return Location(siblings=siblings, index=index, node=node, parent_path=parent_path)


def walk(tree: Iterable[Node], _prefix: Path = ()) -> Iterator[Tuple[Path, Node]]:
    """Yield ``(path, node)`` pairs in depth-first pre-order."""
    for i, node in enumerate(tree):
        path = _prefix + (i,)
        yield path, node
        if node.children:
            yield from walk(node.children, path)


def find(tree: Tree, node_id: str) -> Optional[Path]:
    """Return the path of ``node_id`` or None when absent."""
    for path, node in walk(tree):
        if node.id == node_id:
            return path
    return None


def locate(tree: Tree, node_id: str) -> Path:
    """Return the path of ``node_id``; raise :class:`NotFound` when absent."""
    path = find(tree, node_id)
    if path is None:
        raise NotFound("No node with this id in the tree.", node_id=node_id)
    return path
