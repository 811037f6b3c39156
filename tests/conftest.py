"""Shared fixtures for the PageCraft engine tests.

Trees are built with the small ``leaf`` / ``box`` helpers so that each test can
spell out its layout inline.
"""

import logging
import sys
from pathlib import Path

import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from pagecraft.config import ConfigManager
from pagecraft.core.document import LayoutDocument
from pagecraft.core.drag.session import DragSessionConfig
from pagecraft.core.models import Node, NodeKind
from pagecraft.core.services.event_log_service import DragEventLog
from pagecraft.core.services.palette_service import PaletteService, PaletteTemplate
from pagecraft.core.services.tree_editing_service import TreeEditingService

# Configure test logging
logging.basicConfig(
    level=logging.DEBUG,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)


def leaf(node_id, kind=NodeKind.TEXT, **props):
    return Node(id=node_id, kind=kind, properties=props)


def box(node_id, *children, **props):
    return Node(id=node_id, kind=NodeKind.CONTAINER, properties=props, children=children)


def ids(nodes):
    """Flatten a tree into nested id lists for readable assertions."""
    out = []
    for n in nodes:
        if n.is_container:
            out.append((n.id, ids(n.children)))
        else:
            out.append(n.id)
    return out


class FakeClock:
    """Monotonic clock advanced by hand."""

    def __init__(self, start=100.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


class ManualScheduler:
    """Scheduler that only runs callbacks when told to."""

    def __init__(self):
        self.pending = {}
        self.cancelled = []
        self._next = 0

    def schedule(self, delay_ms, callback):
        self._next += 1
        self.pending[self._next] = (delay_ms, callback)
        return self._next

    def cancel(self, handle):
        self.cancelled.append(handle)
        self.pending.pop(handle, None)

    def fire_all(self):
        for handle in list(self.pending):
            _delay, callback = self.pending.pop(handle)
            callback()


@pytest.fixture
def sample_tree():
    """Top level: A, S(B, C, T(D)), E."""
    return (
        leaf("A"),
        box("S", leaf("B"), leaf("C", NodeKind.IMAGE), box("T", leaf("D", NodeKind.BUTTON))),
        leaf("E"),
    )


@pytest.fixture
def document(sample_tree):
    return LayoutDocument(sample_tree)


@pytest.fixture
def editing_service(document):
    return TreeEditingService(document)


@pytest.fixture
def palette():
    return PaletteService([
        PaletteTemplate("text", "Text Block", NodeKind.TEXT, {"text": "Text block"}),
        PaletteTemplate("image", "Image Placeholder", NodeKind.IMAGE),
        PaletteTemplate("button", "Button", NodeKind.BUTTON, {"label": "Button"}),
        PaletteTemplate("section", "Section Container", NodeKind.CONTAINER),
    ])


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def session_config():
    return DragSessionConfig(cooldown_ms=300)


@pytest.fixture
def event_log():
    return DragEventLog(capacity=10, sample_rates={"canvas": 1.0, "container": 1.0, "node": 1.0})


@pytest.fixture(autouse=True)
def reset_singletons():
    """Reset the config singleton between tests."""
    yield
    ConfigManager.reset()
