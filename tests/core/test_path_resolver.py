import pytest

from pagecraft.core import path_resolver
from pagecraft.core.exceptions import InvalidPath, NotFound


def test_resolve_top_level(sample_tree):
    loc = path_resolver.resolve(sample_tree, [0])
    assert loc.node.id == "A"
    assert loc.index == 0
    assert loc.parent_path == ()
    assert loc.siblings == sample_tree


def test_resolve_nested(sample_tree):
    loc = path_resolver.resolve(sample_tree, (1, 2, 0))
    assert loc.node.id == "D"
    assert loc.parent_path == (1, 2)


@pytest.mark.parametrize("path", [
    (),
    (3,),
    (-1,),
    (1, 5),
    (0, 0),      # A is not a container
    (1, 0, 0),   # B is not a container
    (7, 0),
])
def test_resolve_invalid_paths(sample_tree, path):
    with pytest.raises(InvalidPath):
        path_resolver.resolve(sample_tree, path)


def test_resolve_for_insert_allows_append(sample_tree):
    loc = path_resolver.resolve(sample_tree, (1, 3), for_insert=True)
    assert loc.node is None
    assert loc.index == 3
    with pytest.raises(InvalidPath):
        path_resolver.resolve(sample_tree, (1, 4), for_insert=True)


def test_resolve_for_insert_into_empty_canvas():
    loc = path_resolver.resolve((), (0,), for_insert=True)
    assert loc.siblings == ()
    assert loc.node is None


def test_locate_and_find(sample_tree):
    assert path_resolver.locate(sample_tree, "D") == (1, 2, 0)
    assert path_resolver.locate(sample_tree, "E") == (2,)
    assert path_resolver.find(sample_tree, "missing") is None
    with pytest.raises(NotFound) as excinfo:
        path_resolver.locate(sample_tree, "missing")
    assert excinfo.value.node_id == "missing"
    assert "missing" in str(excinfo.value)


def test_walk_is_pre_order(sample_tree):
    order = [node.id for _path, node in path_resolver.walk(sample_tree)]
    assert order == ["A", "S", "B", "C", "T", "D", "E"]


def test_children_at(sample_tree):
    assert path_resolver.children_at(sample_tree, ()) == sample_tree
    assert [n.id for n in path_resolver.children_at(sample_tree, (1,))] == ["B", "C", "T"]
    with pytest.raises(InvalidPath):
        path_resolver.children_at(sample_tree, (0,))


def test_path_helpers():
    assert path_resolver.parent_of((1, 2)) == (1,)
    assert path_resolver.index_of([1, 2]) == 2
    assert path_resolver.is_strict_prefix((1,), (1, 0)) is True
    assert path_resolver.is_strict_prefix((1,), (1,)) is False
    assert path_resolver.is_strict_prefix((), (0,)) is True
    assert path_resolver.is_strict_prefix((2,), (1, 0)) is False
    with pytest.raises(InvalidPath):
        path_resolver.parent_of(())
