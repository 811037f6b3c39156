import pytest

from pagecraft.core.services.event_log_service import DragEventLog


class _Rng:
    def __init__(self, values):
        self._values = list(values)

    def __call__(self):
        return self._values.pop(0)


def test_events_are_newest_first_and_capped():
    log = DragEventLog(capacity=3)
    for kind in ("dragstart", "dragenter", "dragover", "dragleave", "dragend"):
        log.record(kind, "canvas")
    assert [e.kind for e in log.events()] == ["dragend", "dragleave", "dragover"]


def test_event_ids_and_timestamps():
    log = DragEventLog(clock=lambda: 1700000000.5)
    event = log.record("dragstart", "palette-text", {"component_type": "text"})
    assert event.id.startswith("dragstart-1700000000500-")
    assert event.timestamp == 1700000000.5
    assert event.extra == {"component_type": "text"}


def test_unknown_kind_is_ignored():
    log = DragEventLog()
    assert log.record("dragwobble", "canvas") is None
    assert log.events() == []


def test_dragover_is_sampled_per_surface():
    log = DragEventLog(sample_rates={"canvas": 0.1}, rng=_Rng([0.05, 0.5]))
    assert log.record("dragover", "canvas", surface="canvas") is not None
    assert log.record("dragover", "canvas", surface="canvas") is None
    # Non-continuous events are never sampled
    assert log.record("dragenter", "canvas", surface="canvas") is not None


def test_drop_with_source_and_drop_path_counts_as_reorder():
    log = DragEventLog()
    event = log.record("drop", "canvas", {"source_path": [0], "drop_path": [2]})
    assert event.is_reordering
    assert event.extra["operation"] == "move"
    log.record("drop", "canvas", {"component_type": "text", "drop_path": [3]})
    assert log.reorder_count == 1


def test_pause_and_resume():
    log = DragEventLog()
    log.pause()
    assert log.paused
    assert log.record("dragstart") is None
    log.resume()
    assert log.record("dragstart") is not None
    assert len(log.events()) == 1


def test_subscribers_are_notified_and_isolated():
    log = DragEventLog()
    seen = []

    def _broken(event):
        raise RuntimeError("panel gone")

    log.subscribe(_broken)
    unsubscribe = log.subscribe(seen.append)
    log.record("dragstart")
    assert [e.kind for e in seen] == ["dragstart"]

    unsubscribe()
    log.record("dragend")
    assert len(seen) == 1


def test_clear_resets_history_and_counter():
    log = DragEventLog()
    log.record("drop", None, {"source_path": [0], "drop_path": [1]})
    log.clear()
    assert log.events() == []
    assert log.reorder_count == 0


@pytest.mark.parametrize("config,capacity", [
    ({"event_log_capacity": 2}, 2),
    ({}, 10),
])
def test_from_config(config, capacity):
    log = DragEventLog.from_config(config)
    for _ in range(15):
        log.record("dragstart")
    assert len(log.events()) == capacity
