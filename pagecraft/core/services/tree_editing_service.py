from __future__ import annotations

"""Structural edits on the layout tree.

This module has two layers:

- Pure functions (:func:`insert_at`, :func:`remove_at`, :func:`move_node`,
  :func:`update_properties`) that take a tree value and return a new one. They
  never mutate their input and only rebuild the chain of ancestors between the
  root and the touched list; every other subtree is shared by identity. On
  failure they raise one of the :mod:`pagecraft.core.exceptions` classes.
- :class:`TreeEditingService`, a UI-agnostic facade that runs those functions
  against a :class:`~pagecraft.core.document.LayoutDocument` through the
  rollback guard. Invalid operations return ``OperationResult(success=False,
  ...)`` with clear messaging, never raise.

Examples
--------
Basic usage:

    service = TreeEditingService(document)
    result = service.move_node((0,), (), 2)
    if not result.success:
        print(result.message)

"""

from dataclasses import dataclass
import logging
from typing import TYPE_CHECKING, Any, Dict, Mapping, Optional, Sequence, Tuple

from pagecraft.core import path_resolver
from pagecraft.core.exceptions import EditFailed, InvalidMove, TreeEditError
from pagecraft.core.models import Node, Path, Tree, as_path

if TYPE_CHECKING:
    from pagecraft.core.document import LayoutDocument
    from pagecraft.core.services.rollback_guard import BackupGuard

__all__ = [
    "OperationResult",
    "TreeEditingService",
    "insert_at",
    "remove_at",
    "move_node",
    "update_properties",
    "renormalize_destination",
    "validate_tree",
]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OperationResult:
    """Result of a structural editing operation.

    Attributes
    ----------
    success
        Whether the operation completed successfully.
    message
        Human-readable summary suitable for logs or UI display.
    details
        Optional structured details for diagnostics or caller logic.
    """
    success: bool
    message: str
    details: Optional[Dict[str, Any]] = None


# -----------------------------------------------------------------------------
# Pure operations
# -----------------------------------------------------------------------------

def _replace_children(siblings: Tuple[Node, ...], container_path: Path,
                      new_children: Tuple[Node, ...]) -> Tuple[Node, ...]:
    # Rebuild only the nodes along container_path.
    if not container_path:
        return new_children
    idx = container_path[0]
    node = siblings[idx]
    updated = node.with_children(
        _replace_children(node.children or (), container_path[1:], new_children)
    )
    return siblings[:idx] + (updated,) + siblings[idx + 1:]


def insert_at(tree: Tree, destination_path: Sequence[int], node: Node) -> Tree:
    """Insert ``node`` at ``destination_path`` and return the new tree.

    All but the last index must address containers. The last index may equal
    the length of the target list, which appends. Later siblings shift right.

    Raises
    ------
    InvalidPath
        If the destination cannot be resolved as an insert position.
    EditFailed
        If ``node`` (or any node in its subtree) reuses an id already present.
    """
    dest = as_path(destination_path)
    loc = path_resolver.resolve(tree, dest, for_insert=True)

    existing = {n.id for _p, n in path_resolver.walk(tree)}
    for _p, incoming in path_resolver.walk((node,)):
        if incoming.id in existing:
            raise EditFailed("Duplicate node id.", dest, node_id=incoming.id)

    new_siblings = loc.siblings[:loc.index] + (node,) + loc.siblings[loc.index:]
    return _replace_children(tuple(tree), loc.parent_path, new_siblings)


def remove_at(tree: Tree, path: Sequence[int]) -> Tuple[Tree, Node]:
    """Detach the node at ``path``; return ``(new_tree, removed_node)``.

    The removed subtree travels unmodified, children included.
    """
    loc = path_resolver.resolve(tree, path)
    new_siblings = loc.siblings[:loc.index] + loc.siblings[loc.index + 1:]
    return _replace_children(tuple(tree), loc.parent_path, new_siblings), loc.node


def renormalize_destination(source_path: Sequence[int],
                            destination_path: Sequence[int]) -> Path:
    """Re-express a pre-removal destination path against the post-removal tree.

    Removing the source shifts every later sibling in the source's parent list
    down by one. Any destination whose route passes through that list at a
    larger index, either as the insertion slot itself or as an ancestor of
    it, therefore needs that one component decremented.

    >>> renormalize_destination((0,), (2,))
    (1,)
    >>> renormalize_destination((0,), (2, 0))
    (1, 0)
    >>> renormalize_destination((2,), (0,))
    (0,)
    """
    src = as_path(source_path)
    dest = as_path(destination_path)
    k = len(src) - 1
    if k < 0 or len(dest) <= k:
        return dest
    if dest[:k] == src[:k] and dest[k] > src[k]:
        return dest[:k] + (dest[k] - 1,) + dest[k + 1:]
    return dest


def move_node(tree: Tree, source_path: Sequence[int],
              destination_parent_path: Optional[Sequence[int]],
              destination_index: int) -> Tree:
    """Move the node at ``source_path`` under ``destination_parent_path``.

    ``destination_parent_path`` of ``None`` or ``()`` means top level.
    ``destination_index`` is computed against the tree *before* removal and
    is renormalised here.

    Raises
    ------
    InvalidMove
        If the destination is the source location itself, or lies inside the
        source (its own subtree).
    EditFailed
        If the source or destination cannot be resolved, or the insert fails.
    """
    src = as_path(source_path)
    parent = as_path(destination_parent_path)
    dest = parent + (int(destination_index),)

    if dest == src:
        raise InvalidMove("Destination is the source location (no-op drop).", src)
    if parent == src or path_resolver.is_strict_prefix(src, parent):
        raise InvalidMove("Cannot move a node into itself or one of its descendants.", src)

    try:
        intermediate, moved = remove_at(tree, src)
        final_dest = renormalize_destination(src, dest)
        logger.debug("Move: source=%s dest=%s renormalised=%s id=%s",
                     list(src), list(dest), list(final_dest), moved.id)
        return insert_at(intermediate, final_dest, moved)
    except EditFailed:
        raise
    except TreeEditError as exc:
        raise EditFailed(f"Move aborted: {exc}", dest, cause=exc) from exc


def update_properties(tree: Tree, path: Sequence[int], changes: Mapping[str, Any]) -> Tree:
    """Merge ``changes`` into the properties of the node at ``path``."""
    loc = path_resolver.resolve(tree, path)
    updated = loc.node.with_properties(changes)
    new_siblings = loc.siblings[:loc.index] + (updated,) + loc.siblings[loc.index + 1:]
    return _replace_children(tuple(tree), loc.parent_path, new_siblings)


def validate_tree(tree: Tree) -> None:
    """Raise :class:`EditFailed` unless ``tree`` is well-formed."""
    seen = set()
    for path, node in path_resolver.walk(tree):
        if node.id in seen:
            raise EditFailed("Duplicate node id in tree.", path, node_id=node.id)
        seen.add(node.id)
        if not node.is_container and node.children:
            raise EditFailed("Non-container node carries children.", path, node_id=node.id)


# -----------------------------------------------------------------------------
# Service facade
# -----------------------------------------------------------------------------

class TreeEditingService:
    """Encapsulates structural edit operations on a layout document.

    Every operation is executed through a :class:`BackupGuard`, so it either
    publishes a new well-formed tree or leaves the document exactly as it was.

    Design principles:
    - No UI dependencies, no disk I/O.
    - No exceptions for expected invalid actions; return OperationResult.
    - Paths are resolved against the document's current tree at call time.
    """

    def __init__(self, document: "LayoutDocument", guard: Optional["BackupGuard"] = None) -> None:
        from pagecraft.core.services.rollback_guard import BackupGuard  # avoid import cycle

        self._document = document
        self._guard = guard if guard is not None else BackupGuard(document)

    @property
    def document(self) -> "LayoutDocument":
        return self._document

    @property
    def guard(self) -> "BackupGuard":
        return self._guard

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def insert_node(self, destination_path: Sequence[int], node: Node) -> OperationResult:
        """Insert a freshly created node at ``destination_path``."""
        dest = as_path(destination_path)
        logger.info("Edit: insert_node id=%s kind=%s dest=%s", node.id, node.kind.value, list(dest))
        result = self._guard.apply(
            lambda tree: insert_at(tree, dest, node),
            label="insert_node",
            success_message=f"Inserted {node.kind.value} node.",
            details={"node_id": node.id, "destination_path": list(dest)},
        )
        return self._log_outcome("insert_node", result)

    def move_node(self, source_path: Sequence[int],
                  destination_parent_path: Optional[Sequence[int]],
                  destination_index: int) -> OperationResult:
        """Move the node at ``source_path`` (reorder or reparent)."""
        src = as_path(source_path)
        parent = as_path(destination_parent_path)
        logger.info("Edit: move_node source=%s dest_parent=%s index=%d",
                    list(src), list(parent), destination_index)
        result = self._guard.apply(
            lambda tree: move_node(tree, src, parent, destination_index),
            label="move_node",
            success_message="Moved node.",
            details={
                "source_path": list(src),
                "destination_parent_path": list(parent),
                "destination_index": destination_index,
            },
        )
        return self._log_outcome("move_node", result)

    def delete_node(self, node_id: str) -> OperationResult:
        """Remove ``node_id`` (and its subtree) from the document."""
        logger.info("Edit: delete_node id=%s", node_id)

        def _delete(tree: Tree) -> Tree:
            new_tree, _removed = remove_at(tree, path_resolver.locate(tree, node_id))
            return new_tree

        result = self._guard.apply(
            _delete,
            label="delete_node",
            success_message="Deleted node.",
            details={"node_id": node_id},
        )
        return self._log_outcome("delete_node", result)

    def update_properties(self, node_id: str, changes: Mapping[str, Any]) -> OperationResult:
        """Merge ``changes`` into the properties of ``node_id``."""
        logger.info("Edit: update_properties id=%s keys=%s", node_id, sorted(changes))
        result = self._guard.apply(
            lambda tree: update_properties(tree, path_resolver.locate(tree, node_id), changes),
            label="update_properties",
            success_message="Updated node properties.",
            details={"node_id": node_id, "keys": sorted(changes)},
        )
        return self._log_outcome("update_properties", result)

    # -------------------------------------------------------------------------
    # Internal helpers
    # -------------------------------------------------------------------------

    @staticmethod
    def _log_outcome(operation: str, result: OperationResult) -> OperationResult:
        if result.success:
            logger.info("Edit OK: %s", operation)
        else:
            error = (result.details or {}).get("error")
            logger.warning("Edit FAIL: %s error=%s reason=%s", operation, error, result.message)
        return result
