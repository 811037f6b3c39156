from __future__ import annotations

"""Deferred-callback protocol used for the post-drop cooldown timer.

The engine itself is single-threaded; the hosting surface owns the event loop
and therefore the timer. A Tk surface uses
:class:`pagecraft.ui.scheduler.TkAfterScheduler`.
"""

from typing import Any, Callable, Protocol

__all__ = ["Scheduler"]


class Scheduler(Protocol):
    """Schedules one-shot callbacks on the hosting event loop."""

    def schedule(self, delay_ms: int, callback: Callable[[], None]) -> Any:
        """Run ``callback`` once after ``delay_ms``; return a cancellable handle."""
        ...

    def cancel(self, handle: Any) -> None:
        """Cancel a pending callback. Unknown or fired handles are ignored."""
        ...
