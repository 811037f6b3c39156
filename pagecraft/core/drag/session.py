from __future__ import annotations

"""Drag session state machine.

One :class:`DragSession` tracks one drag gesture at a time and turns the
stream of pointer events reported by the view into exactly one structural
edit per gesture::

    IDLE -> ARMED -> HOVERING -> DROPPED -> COOLDOWN -> IDLE

Key rules
---------
- Innermost wins: drag enter/over events bubble, so an ancestor container or
  the canvas keeps reporting hovers while the pointer is over a nested
  target. A new hover is accepted only if it is at least as specific (as
  deeply nested) as the current target, or after the current target was
  released by an explicit :meth:`DragSession.leave`.
- Every drop consumes the gesture, including a refused one (node dropped into
  itself or a descendant). The tree is left unchanged in that case.
- After a drop (or an aborted gesture) a short cooldown ignores re-entrant
  hovers so that the drop surface does not light up again under the pointer.
- Source paths are snapshot coordinates. If the published tree changed since
  the drag was armed, the source is re-resolved by id before the move.

The session is owned by the hosting surface (see
:class:`pagecraft.ui.controllers.canvas_controller.CanvasController`) and must
be disposed when the surface goes away so that no stray timer fires.
"""

from dataclasses import dataclass, field
from enum import Enum
import logging
import time
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Mapping, Optional

from pagecraft.core import path_resolver
from pagecraft.core.drag.targets import DropTarget, is_valid_move_target
from pagecraft.core.exceptions import TreeEditError
from pagecraft.core.models import Path, Tree
from pagecraft.core.services.tree_editing_service import OperationResult, TreeEditingService

if TYPE_CHECKING:
    from pagecraft.core.drag.scheduler import Scheduler
    from pagecraft.core.services.event_log_service import DragEventLog
    from pagecraft.core.services.palette_service import PaletteService

__all__ = ["DragState", "SourceKind", "DragSource", "DragSessionConfig", "DragSession"]

logger = logging.getLogger(__name__)


class DragState(str, Enum):
    IDLE = "idle"
    ARMED = "armed"
    HOVERING = "hovering"
    DROPPED = "dropped"
    COOLDOWN = "cooldown"


class SourceKind(str, Enum):
    PALETTE = "palette"
    TREE_NODE = "tree_node"


@dataclass(frozen=True)
class DragSource:
    """What is being dragged.

    For palette drags ``source_id`` is the template id and ``source_path`` is
    None. For tree node drags ``source_id`` is the node id and ``source_path``
    its path in ``tree``, the snapshot it was resolved against.
    """

    kind: SourceKind
    source_id: str
    source_path: Optional[Path] = None
    tree: Optional[Tree] = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class DragSessionConfig:
    """Tunables for a drag session."""

    cooldown_ms: int = 300

    @classmethod
    def from_config(cls, config: Optional[Mapping[str, Any]] = None) -> "DragSessionConfig":
        if config is None:
            from pagecraft.config import ConfigManager
            config = ConfigManager().get_drag_session_config()
        return cls(cooldown_ms=max(0, int(config.get("cooldown_ms", cls.cooldown_ms))))


_ACTIVE_STATES = (DragState.ARMED, DragState.HOVERING)

StateListener = Callable[[DragState, DragState], None]


class DragSession:
    """State machine for a single drag gesture on one canvas.

    Parameters
    ----------
    editing_service : TreeEditingService
        Applies the drop edit through the rollback guard.
    palette : PaletteService
        Supplies fresh ids and node factories for palette drops.
    config : DragSessionConfig, optional
        Cooldown window; defaults to the ``drag_session`` config section.
    scheduler : Scheduler, optional
        Hosting event loop used to end the cooldown on time. Without one the
        cooldown still expires, lazily, the next time the state is read.
    clock : callable, optional
        Monotonic clock in seconds.
    event_log : DragEventLog, optional
        Best-effort observability sink.
    """

    def __init__(
        self,
        editing_service: TreeEditingService,
        palette: "PaletteService",
        *,
        config: Optional[DragSessionConfig] = None,
        scheduler: Optional["Scheduler"] = None,
        clock: Callable[[], float] = time.monotonic,
        event_log: Optional["DragEventLog"] = None,
    ) -> None:
        self._service = editing_service
        self._palette = palette
        self._config = config if config is not None else DragSessionConfig.from_config()
        self._scheduler = scheduler
        self._clock = clock
        self._event_log = event_log

        self._state = DragState.IDLE
        self._source: Optional[DragSource] = None
        self._target: Optional[DropTarget] = None
        self._target_specificity = -1
        self._target_valid = False
        self._last_result: Optional[OperationResult] = None
        self._cooldown_until = 0.0
        self._timer: Any = None
        self._timer_generation = 0
        self._disposed = False
        self._listeners: List[StateListener] = []

    # ------------------------------------------------------------------ state

    @property
    def state(self) -> DragState:
        self._expire_cooldown_if_due()
        return self._state

    @property
    def source(self) -> Optional[DragSource]:
        return self._source

    @property
    def target(self) -> Optional[DropTarget]:
        return self._target

    @property
    def target_valid(self) -> bool:
        """Whether the current target would accept the dragged source."""
        return self._target is not None and self._target_valid

    @property
    def is_highlighting(self) -> bool:
        """True when a view should highlight the current target."""
        return self.state is DragState.HOVERING and self.target_valid

    @property
    def last_result(self) -> Optional[OperationResult]:
        """Outcome of the most recent drop, if any."""
        return self._last_result

    @property
    def disposed(self) -> bool:
        return self._disposed

    def add_listener(self, callback: StateListener) -> Callable[[], None]:
        """Register ``callback(old_state, new_state)``; returns an unsubscribe function."""
        self._listeners.append(callback)

        def _unsubscribe() -> None:
            try:
                self._listeners.remove(callback)
            except ValueError:
                pass

        return _unsubscribe

    # ---------------------------------------------------------------- arming

    def arm_from_palette(self, template_id: str) -> bool:
        """Start dragging a new node from the palette."""
        if not self._prepare_arm():
            return False
        self._source = DragSource(kind=SourceKind.PALETTE, source_id=template_id)
        self._set_state(DragState.ARMED)
        self._emit("dragstart", f"palette-{template_id}", {"component_type": template_id})
        logger.debug("Drag armed: palette template=%s", template_id)
        return True

    def arm_from_node(self, node_id: str) -> bool:
        """Start dragging an existing node; its current path is recorded."""
        if not self._prepare_arm():
            return False
        tree = self._service.document.tree
        path = path_resolver.find(tree, node_id)
        if path is None:
            logger.warning("Drag not armed: unknown node id=%s", node_id)
            return False
        node = path_resolver.resolve(tree, path).node
        self._source = DragSource(kind=SourceKind.TREE_NODE, source_id=node_id,
                                  source_path=path, tree=tree)
        self._set_state(DragState.ARMED)
        self._emit("dragstart", f"component-{node_id}",
                   {"component_type": node.kind.value, "path": list(path)})
        logger.debug("Drag armed: node id=%s path=%s", node_id, list(path))
        return True

    # ---------------------------------------------------------------- hovering

    def hover(self, target: DropTarget) -> bool:
        """Report the pointer over ``target``; return True if it became current."""
        if self._disposed:
            return False
        state = self.state
        if state is DragState.COOLDOWN:
            logger.debug("Hover suppressed during cooldown: %s", target.descriptor)
            return False
        if state not in _ACTIVE_STATES:
            return False

        tree = self._service.document.tree
        try:
            specificity = target.specificity(tree)
            target.destination(tree)
        except TreeEditError as exc:
            logger.debug("Hover ignored: %s does not resolve (%s)", target.descriptor, exc)
            return False

        current = self._target
        if current is not None and target != current and specificity < self._target_specificity:
            # Bubbled event from an enclosing surface.
            logger.debug("Hover ignored: %s less specific than %s",
                         target.descriptor, current.descriptor)
            return False

        if current is None or target.descriptor != current.descriptor:
            self._emit("dragenter", target.descriptor, self._source_extra())
        else:
            self._emit("dragover", target.descriptor, self._source_extra(), surface=target.surface)

        self._target = target
        self._target_specificity = specificity
        self._target_valid = self._is_valid(target, tree)
        self._set_state(DragState.HOVERING)
        return True

    def leave(self, target: DropTarget) -> bool:
        """Report the pointer leaving ``target``'s bounds.

        Only a leave for the current target releases it; leaves for other
        surfaces are bubbling noise and are ignored.
        """
        if self._disposed or self.state is not DragState.HOVERING:
            return False
        self._emit("dragleave", target.descriptor, self._source_extra())
        current = self._target
        if current is None or target.descriptor != current.descriptor:
            return False
        self._clear_target()
        self._set_state(DragState.ARMED)
        return True

    # ------------------------------------------------------------ drop / end

    def drop(self) -> Optional[OperationResult]:
        """Complete the gesture on the current target.

        Returns the edit result, or None when there was nothing to drop on.
        The gesture is consumed either way and the session enters cooldown.
        """
        if self._disposed:
            return None
        state = self.state
        if state is DragState.ARMED:
            logger.info("Drop without target: gesture discarded")
            self._emit("drop", None, self._source_extra())
            self._enter_cooldown()
            return None
        if state is not DragState.HOVERING:
            return None

        source, target = self._source, self._target
        tree = self._service.document.tree
        extra = self._source_extra()
        try:
            drop_parent, drop_index = target.destination(tree)
            extra["drop_path"] = list(drop_parent + (drop_index,))
        except TreeEditError:
            pass
        self._emit("drop", target.descriptor, extra)

        self._set_state(DragState.DROPPED)
        if source.kind is SourceKind.PALETTE:
            result = self._drop_palette(source, target, tree)
        else:
            result = self._drop_node(source, target, tree)
        self._last_result = result
        logger.info("Drop %s: source=%s target=%s",
                    "applied" if result.success else "refused",
                    source.source_id, target.descriptor)
        self._enter_cooldown()
        return result

    def drag_end(self) -> None:
        """Report the end of the gesture (pointer released anywhere).

        Without a prior drop the armed state is discarded and no edit occurs.
        """
        if self._disposed:
            return
        state = self.state
        if state in _ACTIVE_STATES:
            self._emit("dragend", None, {"success": False})
            logger.info("Drag ended without drop: gesture discarded")
            self._enter_cooldown()
            return
        self._emit("dragend", None, {"success": bool(self._last_result and self._last_result.success)})

    def dispose(self) -> None:
        """Tear the session down; cancels the pending cooldown timer."""
        if self._disposed:
            return
        self._cancel_timer()
        self._source = None
        self._clear_target()
        self._set_state(DragState.IDLE)
        self._disposed = True
        self._listeners.clear()
        logger.debug("Drag session disposed")

    # ------------------------------------------------------------ internals

    def _prepare_arm(self) -> bool:
        if self._disposed:
            logger.debug("Arm ignored: session disposed")
            return False
        state = self.state
        if state in _ACTIVE_STATES:
            logger.info("Drag: forcing previous gesture (%s) terminal", self._source.source_id)
        self._cancel_timer()
        self._source = None
        self._clear_target()
        self._last_result = None
        self._set_state(DragState.IDLE)
        return True

    def _drop_palette(self, source: DragSource, target: DropTarget, tree: Tree) -> OperationResult:
        try:
            parent, index = target.destination(tree)
        except TreeEditError as exc:
            return self._refused(exc)
        node_id = self._palette.new_id(source.source_id)
        try:
            node = self._palette.factory_for(source.source_id)(node_id)
        except Exception as exc:
            logger.error("Palette factory failed for template=%s: %s",
                         source.source_id, exc, exc_info=True)
            return OperationResult(False, f"Could not create node: {exc}",
                                   {"error": "EditFailed", "template_id": source.source_id})
        return self._service.insert_node(parent + (index,), node)

    def _drop_node(self, source: DragSource, target: DropTarget, tree: Tree) -> OperationResult:
        try:
            source_path = self._current_source_path(tree)
            parent, index = target.destination(tree)
        except TreeEditError as exc:
            return self._refused(exc)
        # Invalid targets (self/descendant) are refused by move_node itself.
        return self._service.move_node(source_path, parent, index)

    def _current_source_path(self, tree: Tree) -> Path:
        source = self._source
        if source.tree is tree and source.source_path is not None:
            return source.source_path
        path = path_resolver.locate(tree, source.source_id)
        logger.debug("Source re-resolved: id=%s %s -> %s",
                     source.source_id, list(source.source_path or ()), list(path))
        return path

    def _is_valid(self, target: DropTarget, tree: Tree) -> bool:
        if self._source is None:
            return False
        try:
            if self._source.kind is SourceKind.PALETTE:
                target.destination(tree)
                return True
            return is_valid_move_target(target, tree, self._current_source_path(tree))
        except TreeEditError:
            return False

    @staticmethod
    def _refused(exc: TreeEditError) -> OperationResult:
        return OperationResult(False, str(exc), {"error": exc.kind, "reason": str(exc)})

    def _source_extra(self) -> Dict[str, Any]:
        source = self._source
        if source is None:
            return {}
        extra: Dict[str, Any] = {"source": source.kind.value}
        if source.kind is SourceKind.PALETTE:
            extra["component_type"] = source.source_id
        else:
            extra["source_path"] = list(source.source_path or ())
        return extra

    def _clear_target(self) -> None:
        self._target = None
        self._target_specificity = -1
        self._target_valid = False

    def _enter_cooldown(self) -> None:
        self._source = None
        self._clear_target()
        self._cancel_timer()
        delay_ms = self._config.cooldown_ms
        self._cooldown_until = self._clock() + delay_ms / 1000.0
        self._set_state(DragState.COOLDOWN)
        if self._scheduler is None:
            return
        self._timer_generation += 1
        generation = self._timer_generation
        try:
            self._timer = self._scheduler.schedule(
                delay_ms, lambda: self._on_cooldown_elapsed(generation)
            )
        except Exception:
            # Cooldown still expires lazily through the clock.
            logger.warning("Could not schedule cooldown timer", exc_info=True)
            self._timer = None

    def _on_cooldown_elapsed(self, generation: int) -> None:
        if generation != self._timer_generation:
            return
        self._timer = None
        if self._disposed or self._state is not DragState.COOLDOWN:
            return
        self._set_state(DragState.IDLE)

    def _expire_cooldown_if_due(self) -> None:
        if self._state is DragState.COOLDOWN and self._clock() >= self._cooldown_until:
            self._cancel_timer()
            self._set_state(DragState.IDLE)

    def _cancel_timer(self) -> None:
        self._timer_generation += 1
        if self._timer is None:
            return
        handle, self._timer = self._timer, None
        if self._scheduler is not None:
            try:
                self._scheduler.cancel(handle)
            except Exception:
                logger.warning("Could not cancel cooldown timer", exc_info=True)

    def _set_state(self, new_state: DragState) -> None:
        old_state = self._state
        if old_state is new_state:
            return
        self._state = new_state
        logger.debug("Drag state: %s -> %s", old_state.value, new_state.value)
        for callback in list(self._listeners):
            try:
                callback(old_state, new_state)
            except Exception:
                logger.warning("Drag state listener failed", exc_info=True)

    def _emit(self, kind: str, target: Optional[str], extra: Dict[str, Any],
              surface: Optional[str] = None) -> None:
        if self._event_log is None:
            return
        try:
            self._event_log.record(kind, target, extra, surface=surface)
        except Exception:
            logger.warning("Drag event log failed for %s", kind, exc_info=True)
