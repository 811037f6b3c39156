from __future__ import annotations

"""Best-effort drag event log (observability sink).

The drag session reports every lifecycle event (dragstart, dragenter,
dragover, dragleave, drop, dragend) here. The log keeps a short history of the
newest events, counts reorder drops and forwards events to subscribers such
as an event-logger panel.

The log is fire-and-forget: the session wraps every call so that a failing or
absent log never changes an edit outcome.
"""

from collections import deque
from dataclasses import dataclass, field
import logging
import random
import time
import uuid
from typing import Any, Callable, Deque, Dict, List, Mapping, Optional

__all__ = ["DragEvent", "DragEventLog", "EVENT_KINDS"]

logger = logging.getLogger(__name__)

EVENT_KINDS = frozenset({"dragstart", "dragenter", "dragover", "dragleave", "drop", "dragend"})


@dataclass(frozen=True)
class DragEvent:
    """A single logged drag lifecycle event.

    Attributes
    ----------
    id
        Unique event id (``<kind>-<millis>-<suffix>``).
    kind
        One of :data:`EVENT_KINDS`.
    timestamp
        Unix epoch seconds.
    target
        Descriptor of the surface the event happened on, e.g. ``canvas`` or
        ``container-<id>``.
    extra
        Free-form fields supplied by the reporter.
    """

    id: str
    kind: str
    timestamp: float
    target: Optional[str]
    extra: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_reordering(self) -> bool:
        return bool(self.extra.get("reordering"))


class DragEventLog:
    """In-memory ring of recent drag events.

    Parameters
    ----------
    capacity : int, default=10
        Number of most recent events to keep. Coerced to at least 1.
    sample_rates : mapping, optional
        Per-surface fraction of ``dragover`` events to keep (continuous events
        would otherwise flood the log). Surfaces without a rate keep all.
    rng : callable, optional
        Source of uniform floats in [0, 1); injectable for tests.
    clock : callable, optional
        Wall clock returning epoch seconds.
    """

    def __init__(
        self,
        capacity: int = 10,
        sample_rates: Optional[Mapping[str, float]] = None,
        rng: Callable[[], float] = random.random,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._events: Deque[DragEvent] = deque(maxlen=max(1, int(capacity)))
        self._sample_rates: Dict[str, float] = dict(sample_rates or {})
        self._rng = rng
        self._clock = clock
        self._paused = False
        self._reorder_count = 0
        self._subscribers: List[Callable[[DragEvent], None]] = []

    @classmethod
    def from_config(cls, config: Optional[Mapping[str, Any]] = None, **kwargs: Any) -> "DragEventLog":
        """Build a log from the ``drag_session`` configuration section."""
        if config is None:
            from pagecraft.config import ConfigManager
            config = ConfigManager().get_drag_session_config()
        return cls(
            capacity=int(config.get("event_log_capacity", 10)),
            sample_rates=config.get("dragover_sample_rate") or {},
            **kwargs,
        )

    # --------------------------------------------------------------------- API

    @property
    def paused(self) -> bool:
        return self._paused

    @property
    def reorder_count(self) -> int:
        """Number of drops recorded with both a source and a drop path."""
        return self._reorder_count

    def events(self) -> List[DragEvent]:
        """Return kept events, newest first."""
        return list(self._events)

    def record(self, kind: str, target: Optional[str] = None,
               extra: Optional[Mapping[str, Any]] = None,
               surface: Optional[str] = None) -> Optional[DragEvent]:
        """Record an event; return it, or None when paused, sampled out or invalid."""
        if self._paused:
            return None
        if kind not in EVENT_KINDS:
            logger.warning("Ignoring unknown drag event kind '%s'", kind)
            return None
        if kind == "dragover" and surface is not None:
            rate = self._sample_rates.get(surface, 1.0)
            if self._rng() >= rate:
                return None

        payload: Dict[str, Any] = dict(extra or {})
        if kind == "drop" and payload.get("source_path") is not None and payload.get("drop_path") is not None:
            payload["reordering"] = True
            payload["operation"] = "move"

        now = self._clock()
        event = DragEvent(
            id=f"{kind}-{int(now * 1000)}-{uuid.uuid4().hex[:5]}",
            kind=kind,
            timestamp=now,
            target=target,
            extra=payload,
        )
        if event.is_reordering:
            self._reorder_count += 1
        self._events.appendleft(event)

        for callback in list(self._subscribers):
            try:
                callback(event)
            except Exception:
                logger.warning("Drag event subscriber failed", exc_info=True)
        return event

    def subscribe(self, callback: Callable[[DragEvent], None]) -> Callable[[], None]:
        """Register a listener; returns a function that unsubscribes it."""
        self._subscribers.append(callback)

        def _unsubscribe() -> None:
            try:
                self._subscribers.remove(callback)
            except ValueError:
                pass

        return _unsubscribe

    def pause(self) -> None:
        self._paused = True

    def resume(self) -> None:
        self._paused = False

    def clear(self) -> None:
        """Drop kept events and reset the reorder counter."""
        self._events.clear()
        self._reorder_count = 0
