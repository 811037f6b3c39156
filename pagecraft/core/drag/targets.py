from __future__ import annotations

"""Drop targets a drag gesture can hover.

Three kinds exist:

- :class:`CanvasTarget`: append at the end of the top-level list.
- :class:`ContainerTarget`: append inside a container's body.
- :class:`NodeGapTarget`: insert at a position next to an existing node.

Each target reports a *specificity* used by the drag session's innermost-wins
rule, and a *destination* ``(parent_path, index)``, both computed against the
current tree. Specificity follows how the surfaces nest on screen: the gaps
beside a container (2d + 1 for a list at depth d) sit outside its body
(2 * depth of the container), which in turn holds the gaps among its own
children.
"""

from dataclasses import dataclass
from typing import Optional, Sequence, Tuple, Union

from pagecraft.core import path_resolver
from pagecraft.core.exceptions import TreeEditError
from pagecraft.core.models import Path, Tree, as_path

__all__ = [
    "CanvasTarget",
    "ContainerTarget",
    "NodeGapTarget",
    "DropTarget",
    "gap_target_for",
    "is_valid_move_target",
]

Destination = Tuple[Path, int]


@dataclass(frozen=True)
class CanvasTarget:
    """The canvas background (top-level append)."""

    surface = "canvas"

    @property
    def descriptor(self) -> str:
        return "canvas"

    def specificity(self, tree: Tree) -> int:
        return 0

    def destination(self, tree: Tree) -> Destination:
        return (), len(tree)


@dataclass(frozen=True)
class ContainerTarget:
    """A container's body; drops append to its children."""

    container_id: str

    surface = "container"

    @property
    def descriptor(self) -> str:
        return f"container-{self.container_id}"

    def specificity(self, tree: Tree) -> int:
        return 2 * len(path_resolver.locate(tree, self.container_id))

    def destination(self, tree: Tree) -> Destination:
        path = path_resolver.locate(tree, self.container_id)
        return path, len(path_resolver.children_at(tree, path))


@dataclass(frozen=True)
class NodeGapTarget:
    """An insertion slot among siblings, next to the hovered node."""

    parent_path: Path
    index: int
    node_id: Optional[str] = None

    surface = "node"

    def __post_init__(self) -> None:
        object.__setattr__(self, "parent_path", as_path(self.parent_path))
        object.__setattr__(self, "index", int(self.index))

    @property
    def descriptor(self) -> str:
        if self.node_id:
            return f"component-{self.node_id}"
        return f"gap-{'.'.join(str(i) for i in self.parent_path)}:{self.index}"

    def specificity(self, tree: Tree) -> int:
        return 2 * len(self.parent_path) + 1

    def destination(self, tree: Tree) -> Destination:
        path_resolver.resolve(tree, self.parent_path + (self.index,), for_insert=True)
        return self.parent_path, self.index


DropTarget = Union[CanvasTarget, ContainerTarget, NodeGapTarget]


def gap_target_for(node_path: Sequence[int], pointer_y: float, top: float, height: float,
                   node_id: Optional[str] = None) -> NodeGapTarget:
    """Pick insert-before or insert-after for a pointer over a node.

    Above the vertical midpoint of the node's box inserts before the node
    (its own index); at or below the midpoint inserts after it (index + 1),
    both within the node's parent list.
    """
    parent = path_resolver.parent_of(node_path)
    index = path_resolver.index_of(node_path)
    in_top_half = (pointer_y - top) < height / 2
    return NodeGapTarget(parent, index if in_top_half else index + 1, node_id)


def is_valid_move_target(target: DropTarget, tree: Tree, source_path: Sequence[int]) -> bool:
    """Return True if moving ``source_path`` to ``target`` is structurally allowed.

    A target is invalid when it resolves to the source location itself or to
    a slot inside the source's own subtree, or when it cannot be resolved.
    """
    src = as_path(source_path)
    try:
        parent, index = target.destination(tree)
    except TreeEditError:
        return False
    if parent + (index,) == src:
        return False
    return not (parent == src or path_resolver.is_strict_prefix(src, parent))
