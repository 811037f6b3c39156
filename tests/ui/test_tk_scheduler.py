import pytest

tk = pytest.importorskip("tkinter")

from pagecraft.ui.scheduler import TkAfterScheduler


class FakeWidget:
    """Records after/after_cancel calls like a Tk widget would."""

    def __init__(self, destroyed=False):
        self.destroyed = destroyed
        self.scheduled = {}
        self.cancelled = []

    def after(self, delay_ms, callback):
        if self.destroyed:
            raise tk.TclError("application has been destroyed")
        handle = f"after#{len(self.scheduled)}"
        self.scheduled[handle] = (delay_ms, callback)
        return handle

    def after_cancel(self, handle):
        if self.destroyed:
            raise tk.TclError("application has been destroyed")
        self.cancelled.append(handle)


def test_schedule_and_cancel():
    widget = FakeWidget()
    scheduler = TkAfterScheduler(widget)
    handle = scheduler.schedule(300, lambda: None)
    assert widget.scheduled[handle][0] == 300
    scheduler.cancel(handle)
    assert widget.cancelled == [handle]


def test_negative_delay_is_clamped():
    widget = FakeWidget()
    handle = TkAfterScheduler(widget).schedule(-5, lambda: None)
    assert widget.scheduled[handle][0] == 0


def test_destroyed_widget_is_tolerated():
    scheduler = TkAfterScheduler(FakeWidget(destroyed=True))
    assert scheduler.schedule(10, lambda: None) is None
    scheduler.cancel("after#0")
    scheduler.cancel(None)
