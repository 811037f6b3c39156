from __future__ import annotations

"""Published layout document shared with view collaborators.

The document holds the current tree snapshot and the selection. Trees are
immutable, so publishing simply swaps the reference; readers never observe a
half-built tree. Subscribers (canvas view, layer browser) are notified after
each publish and are isolated from one another: a failing subscriber is logged
and skipped.
"""

import logging
from typing import Callable, Iterable, List, Optional

from pagecraft.core import path_resolver
from pagecraft.core.models import Node, Selection, Tree

__all__ = ["LayoutDocument"]

logger = logging.getLogger(__name__)

Subscriber = Callable[[Tree], None]


class LayoutDocument:
    """In-memory representation of the page being built.

    Parameters
    ----------
    tree : iterable of Node, optional
        Initial top-level nodes. Defaults to an empty canvas.
    """

    def __init__(self, tree: Iterable[Node] = ()) -> None:
        self._tree: Tree = tuple(tree)
        self._selection: Optional[Selection] = None
        self._subscribers: List[Subscriber] = []

    @property
    def tree(self) -> Tree:
        return self._tree

    @property
    def selection(self) -> Optional[Selection]:
        return self._selection

    # ------------------------------------------------------------------ publish

    def publish(self, tree: Tree) -> None:
        """Make ``tree`` the current snapshot and notify subscribers."""
        self._tree = tuple(tree)
        self._selection = self._reresolve_selection(self._selection)
        self._notify()

    def restore(self, tree: Tree, selection: Optional[Selection]) -> None:
        """Put back a previously retained snapshot.

        Subscribers are only notified when the tree reference actually changes.
        """
        changed = tree is not self._tree
        self._tree = tree
        self._selection = selection
        if changed:
            self._notify()

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register a read-only consumer; returns a function that unsubscribes it."""
        self._subscribers.append(callback)

        def _unsubscribe() -> None:
            try:
                self._subscribers.remove(callback)
            except ValueError:
                pass

        return _unsubscribe

    # ---------------------------------------------------------------- selection

    def select(self, node_id: str) -> Optional[Selection]:
        """Select ``node_id``; unknown ids clear the selection."""
        path = path_resolver.find(self._tree, node_id)
        if path is None:
            logger.debug("Select ignored: unknown node id=%s", node_id)
            self._selection = None
            return None
        node = path_resolver.resolve(self._tree, path).node
        self._selection = Selection(id=node.id, kind=node.kind, path=path)
        return self._selection

    def clear_selection(self) -> None:
        self._selection = None

    # ---------------------------------------------------------------- internals

    def _reresolve_selection(self, selection: Optional[Selection]) -> Optional[Selection]:
        if selection is None:
            return None
        path = path_resolver.find(self._tree, selection.id)
        if path is None:
            logger.debug("Selection dropped: node id=%s no longer in tree", selection.id)
            return None
        if path == selection.path:
            return selection
        return Selection(id=selection.id, kind=selection.kind, path=path)

    def _notify(self) -> None:
        for callback in list(self._subscribers):
            try:
                callback(self._tree)
            except Exception:
                logger.warning("Document subscriber failed", exc_info=True)
