from __future__ import annotations

import logging
import time
from typing import Any, Callable, List, Mapping, Optional, Sequence, Tuple

from pagecraft.core import path_resolver
from pagecraft.core.document import LayoutDocument
from pagecraft.core.drag.scheduler import Scheduler
from pagecraft.core.drag.session import DragSession, DragSessionConfig
from pagecraft.core.drag.targets import (
    CanvasTarget,
    ContainerTarget,
    NodeGapTarget,
    gap_target_for,
)
from pagecraft.core.models import Node, Path, Selection, as_path
from pagecraft.core.services.event_log_service import DragEventLog
from pagecraft.core.services.palette_service import PaletteService
from pagecraft.core.services.tree_editing_service import OperationResult, TreeEditingService

__all__ = ["CanvasController"]

logger = logging.getLogger(__name__)


class CanvasController:
    """Controller routing canvas view intents into the editing engine.

    The canvas view, the layer browser and the properties panel report user
    intents (drag start, hover, leave, drop, click-to-select, edits) as plain
    method calls. This controller forwards them to the drag session and the
    editing service, and owns the session's lifecycle: :meth:`mount` creates
    it, :meth:`unmount` disposes it.

    Parameters
    ----------
    document : LayoutDocument
        The published document views read from.
    editing_service : TreeEditingService, optional
        Defaults to a service bound to ``document``.
    palette : PaletteService, optional
        Defaults to the configured palette.
    event_log : DragEventLog, optional
        Observability sink shared with the event-log panel.
    config : DragSessionConfig, optional
        Defaults to the ``drag_session`` config section.

    Notes
    -----
    - No Tkinter or UI framework code should appear in this module.
    - Methods are non-raising for routine validation failures; they return
      booleans or OperationResult objects.
    """

    def __init__(
        self,
        document: LayoutDocument,
        editing_service: Optional[TreeEditingService] = None,
        palette: Optional[PaletteService] = None,
        event_log: Optional[DragEventLog] = None,
        config: Optional[DragSessionConfig] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.document: LayoutDocument = document
        self.editing_service: TreeEditingService = editing_service or TreeEditingService(document)
        self.palette: PaletteService = palette or PaletteService.from_config()
        self.event_log: Optional[DragEventLog] = event_log
        self._config = config
        self._clock = clock
        self._session: Optional[DragSession] = None

    # ---------------------------------------------------------------------------------
    # Lifecycle
    # ---------------------------------------------------------------------------------

    @property
    def session(self) -> Optional[DragSession]:
        return self._session

    def mount(self, scheduler: Optional[Scheduler] = None) -> DragSession:
        """Create the drag session for the hosting surface.

        Mounting twice disposes the previous session first.
        """
        if self._session is not None:
            self._session.dispose()
        self._session = DragSession(
            self.editing_service,
            self.palette,
            config=self._config,
            scheduler=scheduler,
            clock=self._clock,
            event_log=self.event_log,
        )
        return self._session

    def unmount(self) -> None:
        """Dispose the drag session; pending cooldown timers are cancelled."""
        if self._session is not None:
            self._session.dispose()
            self._session = None

    # ---------------------------------------------------------------------------------
    # Drag intents
    # ---------------------------------------------------------------------------------

    def start_palette_drag(self, template_id: str) -> bool:
        session = self._active_session()
        return session.arm_from_palette(template_id) if session else False

    def start_node_drag(self, node_id: str) -> bool:
        session = self._active_session()
        return session.arm_from_node(node_id) if session else False

    def hover_canvas(self) -> bool:
        session = self._active_session()
        return session.hover(CanvasTarget()) if session else False

    def leave_canvas(self) -> bool:
        session = self._active_session()
        return session.leave(CanvasTarget()) if session else False

    def hover_container(self, container_id: str) -> bool:
        session = self._active_session()
        return session.hover(ContainerTarget(container_id)) if session else False

    def leave_container(self, container_id: str) -> bool:
        session = self._active_session()
        return session.leave(ContainerTarget(container_id)) if session else False

    def hover_node(self, node_id: str, pointer_y: float, top: float, height: float) -> bool:
        """Pointer over an existing node's box; picks the gap above or below it."""
        session = self._active_session()
        if session is None:
            return False
        path = path_resolver.find(self.document.tree, node_id)
        if path is None:
            return False
        return session.hover(gap_target_for(path, pointer_y, top, height, node_id=node_id))

    def leave_node(self, node_id: str) -> bool:
        session = self._active_session()
        if session is None:
            return False
        # Gap targets are matched by the hovered node, whichever half was active.
        return session.leave(NodeGapTarget((), 0, node_id))

    def drop(self) -> Optional[OperationResult]:
        session = self._active_session()
        return session.drop() if session else None

    def end_drag(self) -> None:
        session = self._active_session()
        if session:
            session.drag_end()

    def is_drop_target_position(self, parent_path: Sequence[int], index: int) -> bool:
        """Return True if the gap indicator should be drawn at ``(parent_path, index)``."""
        session = self._session
        if session is None or not session.is_highlighting:
            return False
        target = session.target
        if not isinstance(target, NodeGapTarget):
            return False
        return target.parent_path == as_path(parent_path) and target.index == index

    # ---------------------------------------------------------------------------------
    # Selection and direct edits
    # ---------------------------------------------------------------------------------

    def select(self, node_id: str) -> Optional[Selection]:
        return self.document.select(node_id)

    def clear_selection(self) -> None:
        self.document.clear_selection()

    def delete_selected(self) -> OperationResult:
        selection = self.document.selection
        if selection is None:
            return OperationResult(False, "Nothing selected.")
        return self.editing_service.delete_node(selection.id)

    def update_selected_properties(self, changes: Mapping[str, Any]) -> OperationResult:
        selection = self.document.selection
        if selection is None:
            return OperationResult(False, "Nothing selected.")
        return self.editing_service.update_properties(selection.id, changes)

    def layers(self) -> List[Tuple[int, Path, Node]]:
        """Rows for the layer-tree browser: ``(depth, path, node)`` in pre-order."""
        return [(len(path) - 1, path, node) for path, node in path_resolver.walk(self.document.tree)]

    # ---------------------------------------------------------------------------------
    # Internal helpers
    # ---------------------------------------------------------------------------------

    def _active_session(self) -> Optional[DragSession]:
        if self._session is None:
            logger.debug("Drag intent ignored: canvas not mounted")
        return self._session
