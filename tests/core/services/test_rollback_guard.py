import pytest

from pagecraft.core.exceptions import InvalidPath
from pagecraft.core.services.rollback_guard import BackupGuard
from pagecraft.core.services.tree_editing_service import insert_at, move_node
from tests.conftest import box, ids, leaf


@pytest.fixture
def guard(document):
    return BackupGuard(document)


def test_successful_operation_publishes(document, guard):
    published = []
    document.subscribe(published.append)

    result = guard.apply(lambda tree: insert_at(tree, (0,), leaf("X")), label="insert")

    assert result.success is True
    assert result.details["operation"] == "insert"
    assert ids(document.tree)[0] == "X"
    assert published == [document.tree]


def test_failed_operation_leaves_tree_identical(document, guard):
    before = document.tree
    published = []
    document.subscribe(published.append)

    result = guard.apply(lambda tree: move_node(tree, (1,), (1, 2), 0), label="move")

    assert result.success is False
    assert result.details["error"] == "InvalidMove"
    assert result.details["reason"]
    assert document.tree is before
    assert document.tree == guard.last_snapshot.tree
    assert published == []


def test_error_raised_after_partial_work_is_rolled_back(document, guard):
    before = document.tree

    def _half_done(tree):
        # First half succeeds, second half addresses a stale path.
        insert_at(tree, (0,), leaf("X"))
        raise InvalidPath("stale", (9, 9))

    result = guard.apply(_half_done, label="two-step")
    assert result.success is False
    assert result.details["error"] == "InvalidPath"
    assert document.tree is before


def test_unexpected_exception_is_reported_as_edit_failed(document, guard):
    before = document.tree

    def _boom(tree):
        raise RuntimeError("disk on fire")

    result = guard.apply(_boom, label="boom")
    assert result.success is False
    assert result.details["error"] == "EditFailed"
    assert "disk on fire" in result.message
    assert document.tree is before


def test_malformed_result_is_refused(document, guard):
    before = document.tree
    result = guard.apply(lambda tree: tree + (box("Z", leaf("A")),), label="dup")
    assert result.success is False
    assert result.details["error"] == "EditFailed"
    assert document.tree is before


def test_selection_restored_on_failure(document, guard):
    selection = document.select("C")
    result = guard.apply(lambda tree: move_node(tree, (0,), (0,), 0), label="move")
    assert result.success is False
    assert document.selection is selection


def test_selection_follows_node_after_success(document, guard):
    document.select("C")
    result = guard.apply(lambda tree: move_node(tree, (1, 1), (), 0), label="move")
    assert result.success is True
    assert document.selection.id == "C"
    assert document.selection.path == (0,)


def test_snapshot_is_taken_per_call(document, guard):
    guard.apply(lambda tree: insert_at(tree, (0,), leaf("X")), label="first")
    first = guard.last_snapshot
    guard.apply(lambda tree: insert_at(tree, (0,), leaf("Y")), label="second")
    assert guard.last_snapshot is not first
    assert ids(guard.last_snapshot.tree)[0] == "X"
