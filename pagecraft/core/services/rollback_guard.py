from __future__ import annotations

"""Snapshot-and-restore wrapper around tree edits.

The guard makes every edit all-or-nothing from the point of view of anyone
reading the :class:`~pagecraft.core.document.LayoutDocument`.

Design principles
-----------------
- No UI imports and no I/O.
- Snapshots are immutable once taken. Trees are persistent values, so holding
  a reference to the pre-edit root is a complete, deep snapshot; nothing is
  copied.
- Routine failures (the :class:`~pagecraft.core.exceptions.TreeEditError`
  family) and unexpected exceptions are both handled gracefully: the snapshot
  is restored and an unsuccessful result is returned.
"""

from dataclasses import dataclass
import logging
from typing import TYPE_CHECKING, Any, Callable, Dict, Optional

from pagecraft.core.exceptions import TreeEditError
from pagecraft.core.models import Selection, Tree
from pagecraft.core.services.tree_editing_service import OperationResult, validate_tree

if TYPE_CHECKING:
    from pagecraft.core.document import LayoutDocument

__all__ = ["BackupGuard"]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Snapshot:
    """Immutable pre-operation state of a document.

    Attributes
    ----------
    tree :
        The published tree at the time the snapshot was taken.
    selection :
        The selection at the time the snapshot was taken.
    """

    tree: Tree
    selection: Optional[Selection]


class BackupGuard:
    """Apply tree operations to a document with rollback on failure.

    Parameters
    ----------
    document : LayoutDocument
        The document whose published tree is guarded.

    Examples
    --------
    >>> guard = BackupGuard(document)
    >>> result = guard.apply(lambda tree: insert_at(tree, (0,), node), label="insert")
    >>> result.success
    True
    """

    def __init__(self, document: "LayoutDocument") -> None:
        self._document = document
        self._last_snapshot: Optional[_Snapshot] = None

    @property
    def last_snapshot(self) -> Optional[_Snapshot]:
        """Snapshot retained before the most recent :meth:`apply` call."""
        return self._last_snapshot

    def apply(
        self,
        operation: Callable[[Tree], Tree],
        *,
        label: str,
        success_message: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> OperationResult:
        """Run ``operation`` on the current tree and publish its result.

        Parameters
        ----------
        operation : callable
            Pure function taking the current tree and returning a new one.
        label : str
            Operation name for logs and result details.
        success_message : str, optional
            Message used for the successful result.
        details : dict, optional
            Extra structured details copied into the result.

        Returns
        -------
        OperationResult
            Successful result when the new tree was published; otherwise an
            unsuccessful result whose details carry the error kind. In the
            failure case the document has been restored to the snapshot.
        """
        base_details: Dict[str, Any] = dict(details or {})
        base_details["operation"] = label
        snap = _Snapshot(tree=self._document.tree, selection=self._document.selection)
        self._last_snapshot = snap

        try:
            new_tree = operation(snap.tree)
            validate_tree(new_tree)
        except TreeEditError as exc:
            self._restore(snap)
            logger.info("Rollback: %s refused (%s): %s", label, exc.kind, exc)
            base_details.update({"error": exc.kind, "reason": str(exc)})
            return OperationResult(False, str(exc), base_details)
        except Exception as exc:
            self._restore(snap)
            logger.error("Rollback: %s failed unexpectedly: %s", label, exc, exc_info=True)
            base_details.update({"error": "EditFailed", "reason": str(exc)})
            return OperationResult(False, f"Edit failed: {exc}", base_details)

        self._document.publish(new_tree)
        return OperationResult(True, success_message or f"{label} applied.", base_details)

    # --------------------------------------------------------------- Internals

    def _restore(self, snap: _Snapshot) -> None:
        # Build-then-swap: the document only ever holds whole snapshots.
        self._document.restore(snap.tree, snap.selection)
