from __future__ import annotations

"""Shared data structures used across the PageCraft core.

This package exposes the immutable value objects the editing engine works
with. It is intentionally free of UI / I/O code so that the contained objects
can be reused in any context (unit-tests, CLI, GUI, etc.).
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Iterable, Mapping, Optional, Sequence, Tuple

__all__ = [
    "NodeKind",
    "Node",
    "Tree",
    "Path",
    "Selection",
    "as_path",
]


class NodeKind(str, Enum):
    """Kinds of layout nodes. Only ``CONTAINER`` may hold children."""

    TEXT = "text"
    IMAGE = "image"
    BUTTON = "button"
    CONTAINER = "container"
    UNKNOWN = "unknown"


Path = Tuple[int, ...]


def as_path(value: Optional[Iterable[int]]) -> Path:
    """Normalise any sequence of ints (or None) into a tuple path."""
    if value is None:
        return ()
    return tuple(int(i) for i in value)


@dataclass(frozen=True)
class Node:
    """A typed entry in the layout tree.

    Attributes
    ----------
    id
        Unique, stable identifier assigned at creation time and never reused.
    kind
        One of :class:`NodeKind`.
    properties
        Opaque key/value pairs (rendering concerns). Stored read-only.
    children
        Ordered child nodes for containers (possibly empty), ``None`` for every
        other kind.
    """

    id: str
    kind: NodeKind
    properties: Mapping[str, Any] = field(default_factory=dict)
    children: Optional[Tuple["Node", ...]] = None

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("Node id cannot be empty")
        kind = NodeKind(self.kind)
        object.__setattr__(self, "kind", kind)
        object.__setattr__(self, "properties", MappingProxyType(dict(self.properties or {})))
        if kind is NodeKind.CONTAINER:
            object.__setattr__(self, "children", tuple(self.children or ()))
        elif self.children:
            raise ValueError(f"Node '{self.id}' of kind '{kind.value}' cannot have children")
        else:
            object.__setattr__(self, "children", None)

    def __hash__(self) -> int:
        # properties is a read-only mapping and cannot be hashed
        return hash((self.id, self.kind))

    @property
    def is_container(self) -> bool:
        return self.kind is NodeKind.CONTAINER

    def with_children(self, children: Sequence["Node"]) -> "Node":
        """Return a copy of this container with a new children sequence."""
        if not self.is_container:
            raise ValueError(f"Node '{self.id}' is not a container")
        return replace(self, children=tuple(children))

    def with_properties(self, changes: Mapping[str, Any]) -> "Node":
        """Return a copy of this node with ``changes`` merged into its properties."""
        merged: Dict[str, Any] = dict(self.properties)
        merged.update(changes)
        return replace(self, properties=merged)


Tree = Tuple[Node, ...]


@dataclass(frozen=True)
class Selection:
    """The currently selected node as seen by view collaborators.

    The path is a snapshot coordinate; the document re-resolves it by id after
    every publish.
    """

    id: str
    kind: NodeKind
    path: Path
