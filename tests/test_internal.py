import pytest

from gapbuf.internal import Internal
from gapbuf.metric import Metric
from gapbuf.node import MAX_CHILDREN, MAX_LEAF, MIN_CHILDREN, Leaf


def m(x):
    return Metric(bytes=x * 2, chars=x)


def leaf(count, step=1, max_leaf=MAX_LEAF):
    return Leaf([m(step)] * count, max_leaf)


def mock_search(node, needle):
    base, offset = node.search_char(needle)
    return Metric(base.bytes + offset * 2, base.chars + offset)


def assert_integrity(node):
    if isinstance(node, Internal):
        assert len(node.sizes) == len(node.children)
        assert node.sizes == [child.metrics() for child in node.children]
        for child in node.children:
            assert_integrity(child)


def assert_searchable(node):
    for i in range(node.metrics().chars):
        assert mock_search(node, i) == m(i)


def test_constructor_sizes_match_children():
    node = Internal([leaf(3), leaf(4, step=2)])
    assert_integrity(node)
    assert len(node) == 2
    assert node.metrics() == node.children[0].metrics() + node.children[1].metrics()
    assert node.depth() == 1


def test_depth_of_nested_internal():
    inner = Internal([leaf(3), leaf(3)])
    outer = Internal([inner, Internal([leaf(3), leaf(3)])])
    assert outer.depth() == inner.depth() + 1


def test_push_and_insert():
    node = Internal([leaf(3)])
    node.push(leaf(4))
    node.insert(0, leaf(5))
    assert [len(c) for c in node.children] == [5, 3, 4]
    assert_integrity(node)


def test_search():
    node = Internal([leaf(5), leaf(5), leaf(5), leaf(5)])
    for i in range(20):
        assert mock_search(node, i) == m(i)


def test_search_char_pos_empty_raises():
    with pytest.raises(IndexError):
        Internal().search_char_pos(0)


def test_insert_impl_grows_chunk():
    node = Internal([leaf(5), leaf(5)])
    result = node.insert_impl(m(5), m(5))
    assert result is None
    assert node.metrics() == m(15)
    assert_integrity(node)
    for i in range(15):
        assert mock_search(node, i) == m(i)


def test_insert_impl_splits_leaf():
    node = Internal([leaf(6, max_leaf=3), leaf(6, max_leaf=3)], max_leaf=3)
    before = node.metrics()
    result = node.insert_impl(m(0), m(1))
    assert result is None
    assert len(node) == 3
    assert node.metrics() == before + m(1)
    assert_integrity(node)
    assert_searchable(node)


def test_insert_impl_splits_full_internal():
    children = [leaf(6, max_leaf=3) for _ in range(MAX_CHILDREN)]
    node = Internal(children, max_leaf=3)
    before = node.metrics()
    right = node.insert_impl(m(0), m(1))
    assert isinstance(right, Internal)
    assert len(node) + len(right) == MAX_CHILDREN + 1
    assert node.metrics() + right.metrics() == before + m(1)
    assert node.depth() == right.depth()
    assert_integrity(node)
    assert_integrity(right)


def test_delete_whole_first_child():
    node = Internal([leaf(3, step=4), leaf(3, step=4), leaf(3, step=4)])
    before = node.metrics()
    fix = node.delete_impl(m(0), m(12))
    assert fix is False
    assert node.metrics() == before - m(12)
    assert all(len(c) >= MIN_CHILDREN for c in node.children)
    assert_integrity(node)
    assert_searchable(node)


def test_delete_across_children():
    node = Internal([leaf(3, step=4), leaf(3, step=4), leaf(3, step=4)])
    before = node.metrics()
    node.delete_impl(m(6), m(18))
    assert node.metrics() == before - (m(18) - m(6))
    assert all(len(c) >= MIN_CHILDREN for c in node.children)
    assert_integrity(node)
    assert_searchable(node)


def test_delete_reversed_range_raises():
    node = Internal([leaf(3), leaf(3)])
    with pytest.raises(ValueError):
        node.delete_impl(m(4), m(2))


def test_balance_steals_from_right():
    node = Internal([leaf(2), leaf(5)])
    before = node.metrics()
    assert node.balance_node(0) is False
    assert [len(c) for c in node.children] == [MIN_CHILDREN, 4]
    assert node.metrics() == before
    assert_integrity(node)


def test_balance_merges_when_siblings_are_minimal():
    node = Internal([leaf(2), leaf(3)])
    before = node.metrics()
    assert node.balance_node(0) is False
    assert len(node) == 1
    assert len(node.children[0]) == 5
    assert node.metrics() == before
    assert_integrity(node)


def test_balance_not_needed():
    node = Internal([leaf(3), leaf(3)])
    assert node.balance_node(1) is False
    assert [len(c) for c in node.children] == [3, 3]


def test_steal_at_edges_fails():
    node = Internal([leaf(2), leaf(2)])
    assert node.try_steal_left(0) is True
    assert node.try_steal_right(1) is True


def test_try_steal_left_moves_last_entries():
    node = Internal([leaf(6), leaf(1)])
    assert node.try_steal_left(1) is False
    assert [len(c) for c in node.children] == [4, MIN_CHILDREN]
    assert_integrity(node)


def test_merge_children_single_child():
    node = Internal([leaf(2)])
    assert node.merge_children(0) is True


def test_merge_node_rejects_missing_child():
    node = Internal([leaf(3)])
    with pytest.raises(TypeError):
        node.merge_node(None, m(1), 0)


def test_merge_sibling_rejects_leaf():
    node = Internal([leaf(3)])
    with pytest.raises(TypeError):
        node.merge_sibling(leaf(3))


def test_merge_sibling_combines_children():
    left = Internal([leaf(3)])
    right = Internal([leaf(3), leaf(3)])
    total = left.metrics() + right.metrics()
    assert left.merge_sibling(right) is False
    assert len(left) == 3
    assert len(right) == 0
    assert left.metrics() == total
    assert_integrity(left)


def test_merge_sibling_too_large():
    left = Internal([leaf(3) for _ in range(4)])
    right = Internal([leaf(3) for _ in range(3)])
    with pytest.raises(ValueError):
        left.merge_sibling(right)


def test_split():
    node = Internal([leaf(5), leaf(5), leaf(5), leaf(5)])
    right = node.split(m(10))
    assert node.metrics() == right.metrics()
    assert_integrity(node)
    assert_integrity(right)
    for i in range(10):
        assert mock_search(node, i) == m(i)
        assert mock_search(right, i) == m(i)


def test_split_inside_child():
    node = Internal([leaf(5), leaf(5), leaf(5), leaf(5)])
    before = node.metrics()
    right = node.split(m(7))
    assert node.metrics() == m(7)
    assert node.metrics() + right.metrics() == before
    assert_integrity(node)
    assert_integrity(right)
    assert_searchable(right)


def test_fix_seam_refills_underfull_child():
    node = Internal([leaf(6), leaf(1), leaf(6)])
    before = node.metrics()
    assert node.fix_seam(6) is False
    assert all(len(c) >= MIN_CHILDREN for c in node.children)
    assert node.metrics() == before
    assert_integrity(node)
    assert_searchable(node)


def test_fix_seam_recurses_into_internal_children():
    left = Internal([leaf(3), leaf(3), leaf(3)])
    right = Internal([leaf(1), leaf(3), leaf(3)])
    root = Internal([left, right])
    before = root.metrics()
    root.fix_seam(left.metrics().chars)
    assert root.metrics() == before
    for child in root.children:
        assert all(len(c) >= MIN_CHILDREN for c in child.children)
    assert_integrity(root)
    assert_searchable(root)


def test_search_char_delegates_to_children():
    node = Internal([Internal([leaf(3), leaf(3)]), Internal([leaf(3), leaf(3)])])
    for i in range(12):
        assert mock_search(node, i) == m(i)
    assert mock_search(node, 12) == node.metrics()