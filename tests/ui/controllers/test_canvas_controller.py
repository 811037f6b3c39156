import pytest

from pagecraft.core.drag.session import DragState
from pagecraft.core.models import NodeKind
from pagecraft.ui.controllers.canvas_controller import CanvasController
from tests.conftest import ids


# ---------------------------
# Fixtures
# ---------------------------

@pytest.fixture
def controller(document, editing_service, palette, event_log, session_config, clock):
    return CanvasController(
        document,
        editing_service=editing_service,
        palette=palette,
        event_log=event_log,
        config=session_config,
        clock=clock,
    )


@pytest.fixture
def mounted(controller, scheduler):
    controller.mount(scheduler)
    return controller


# ---------------------------
# Lifecycle
# ---------------------------

def test_intents_ignored_before_mount(controller, document):
    before = document.tree
    assert controller.session is None
    assert controller.start_palette_drag("text") is False
    assert controller.hover_canvas() is False
    assert controller.drop() is None
    assert document.tree is before


def test_remount_disposes_previous_session(controller, scheduler):
    first = controller.mount(scheduler)
    second = controller.mount(scheduler)
    assert first.disposed
    assert second is controller.session


def test_unmount_cancels_cooldown(mounted, scheduler):
    mounted.start_palette_drag("text")
    mounted.hover_canvas()
    mounted.drop()
    assert scheduler.pending

    session = mounted.session
    mounted.unmount()
    assert mounted.session is None
    assert session.disposed
    assert scheduler.pending == {}


# ---------------------------
# Drag intents
# ---------------------------

def test_palette_drag_into_container(mounted, document):
    assert mounted.start_palette_drag("image") is True
    assert mounted.hover_canvas() is True
    assert mounted.hover_container("S") is True
    # Canvas keeps reporting while the pointer is over the section
    assert mounted.hover_canvas() is False

    result = mounted.drop()
    assert result.success is True
    section = document.tree[1]
    assert section.children[-1].kind is NodeKind.IMAGE


def test_node_hover_picks_gap_by_midpoint(mounted, document):
    mounted.start_node_drag("E")
    # Upper half of A: insert before A
    assert mounted.hover_node("A", pointer_y=105, top=100, height=40) is True
    assert mounted.is_drop_target_position((), 0)
    assert not mounted.is_drop_target_position((), 1)

    # Lower half of A: same node, gap moves below it
    mounted.hover_node("A", pointer_y=130, top=100, height=40)
    assert mounted.is_drop_target_position((), 1)

    mounted.drop()
    assert ids(document.tree) == ["A", "E", ("S", ["B", "C", ("T", ["D"])])]


def test_leave_node_releases_gap(mounted):
    mounted.start_palette_drag("text")
    mounted.hover_node("B", pointer_y=0, top=0, height=10)
    assert mounted.leave_node("B") is True
    assert mounted.session.state is DragState.ARMED
    assert not mounted.is_drop_target_position((1,), 0)


def test_hover_unknown_node(mounted):
    mounted.start_palette_drag("text")
    assert mounted.hover_node("ghost", 0, 0, 10) is False


def test_leave_container_then_canvas_takes_over(mounted, document):
    mounted.start_palette_drag("text")
    mounted.hover_container("T")
    assert mounted.leave_container("T") is True
    assert mounted.hover_canvas() is True
    mounted.drop()
    assert document.tree[-1].kind is NodeKind.TEXT


def test_end_drag_discards_gesture(mounted, document):
    before = document.tree
    mounted.start_node_drag("A")
    mounted.hover_canvas()
    mounted.end_drag()
    assert document.tree is before
    assert mounted.session.state is DragState.COOLDOWN


def test_invalid_drop_is_not_highlighted(mounted, document):
    before = document.tree
    mounted.start_node_drag("S")
    mounted.hover_node("D", pointer_y=0, top=0, height=10)
    assert not mounted.is_drop_target_position((1, 2), 0)

    result = mounted.drop()
    assert result.success is False
    assert document.tree is before


# ---------------------------
# Selection and direct edits
# ---------------------------

def test_delete_selected(controller, document):
    controller.select("T")
    result = controller.delete_selected()
    assert result.success is True
    assert ids(document.tree) == ["A", ("S", ["B", "C"]), "E"]
    assert document.selection is None


def test_edits_without_selection_fail(controller):
    controller.clear_selection()
    assert controller.delete_selected().success is False
    assert controller.update_selected_properties({"text": "x"}).message == "Nothing selected."


def test_update_selected_properties(controller, document):
    controller.select("B")
    result = controller.update_selected_properties({"text": "Welcome"})
    assert result.success is True
    assert document.tree[1].children[0].properties["text"] == "Welcome"


def test_layers_lists_tree_in_preorder(controller):
    rows = [(depth, node.id) for depth, _path, node in controller.layers()]
    assert rows == [(0, "A"), (0, "S"), (1, "B"), (1, "C"), (1, "T"), (2, "D"), (0, "E")]
