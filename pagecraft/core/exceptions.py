from __future__ import annotations

"""Tree editing exception classes.

Every structural failure in the editing engine is reported through one of the
classes below. None of them is fatal: the rollback guard catches them, restores
the published tree and turns the failure into an unsuccessful
:class:`~pagecraft.core.services.tree_editing_service.OperationResult`.
"""

from typing import Optional, Sequence

__all__ = [
    "TreeEditError",
    "InvalidPath",
    "InvalidMove",
    "NotFound",
    "EditFailed",
]


class TreeEditError(Exception):
    """Base exception for all tree editing errors.

    All editing exceptions inherit from this base class so callers can catch
    the whole family in one clause.
    """

    def __init__(self, message: str, path: Optional[Sequence[int]] = None,
                 node_id: Optional[str] = None,
                 cause: Optional[Exception] = None) -> None:
        super().__init__(message)
        self.path = tuple(path) if path is not None else None
        self.node_id = node_id
        self.cause = cause

    @property
    def kind(self) -> str:
        """Short error kind name used in results and logs."""
        return type(self).__name__

    def __str__(self) -> str:
        if self.node_id:
            return f"[Node: {self.node_id}] {super().__str__()}"
        if self.path is not None:
            return f"[Path: {list(self.path)}] {super().__str__()}"
        return super().__str__()


class InvalidPath(TreeEditError):
    """Raised when a path prefix or final index cannot be resolved.

    This includes out-of-range indices, negative indices, empty paths and
    descending through a node that is not a container.
    """
    pass


class InvalidMove(TreeEditError):
    """Raised when a move would be a no-op or would create a cycle.

    Dropping a node onto its own location, or a container into itself or one
    of its descendants, is refused rather than ignored.
    """
    pass


class NotFound(TreeEditError):
    """Raised when an id lookup has no match in the tree."""
    pass


class EditFailed(TreeEditError):
    """Raised when an otherwise well-formed edit could not complete.

    Typical causes are a destination that vanished between resolution and
    insertion (stale path) or a duplicate node id.
    """
    pass
