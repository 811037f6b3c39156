# -*- coding: utf-8 -*-
"""
Tk event-loop scheduler for drag session timers.
Wraps ``widget.after`` / ``widget.after_cancel`` of the hosting canvas widget.
"""

from __future__ import annotations

import logging
import tkinter as tk
from typing import Callable, Optional

__all__ = ["TkAfterScheduler"]

logger = logging.getLogger(__name__)


class TkAfterScheduler:
    """Schedule one-shot callbacks on a Tk widget's event loop.

    Use as:

        session = DragSession(service, palette, scheduler=TkAfterScheduler(canvas))

    Callbacks run on the Tk main loop, so they never overlap with event
    handlers. Once the widget is destroyed, scheduling and cancelling become
    no-ops.
    """

    def __init__(self, widget: tk.Misc) -> None:
        self.widget = widget

    def schedule(self, delay_ms: int, callback: Callable[[], None]) -> Optional[str]:
        try:
            return self.widget.after(max(0, int(delay_ms)), callback)
        except tk.TclError:
            # Widget already destroyed
            logger.debug("Cannot schedule callback: widget destroyed")
            return None

    def cancel(self, handle: Optional[str]) -> None:
        if handle is None:
            return
        try:
            self.widget.after_cancel(handle)
        except tk.TclError:
            logger.debug("Cannot cancel callback %s: widget destroyed", handle)
