"""Internal nodes of the metrics B-tree."""

from __future__ import annotations

from typing import Iterable, Optional

from gapbuf.metric import Metric
from gapbuf.node import MAX_CHILDREN, MAX_LEAF, MIN_CHILDREN, Node


def _fix_child_seam(node: Node, char_pos: int) -> bool:
    if isinstance(node, Internal):
        return node.fix_seam(char_pos)
    return False


class Internal(Node):
    """A node whose entries are child nodes, each with its cached size."""

    is_leaf = False

    def __init__(
        self, children: Optional[Iterable[Node]] = None, max_leaf: int = MAX_LEAF
    ) -> None:
        self.children = list(children) if children is not None else []
        self.sizes = [child.metrics() for child in self.children]
        self.max_leaf = max_leaf

    def __len__(self) -> int:
        return len(self.sizes)

    def __repr__(self) -> str:
        return f"Internal([{', '.join(f'({m})' for m in self.sizes)}])"

    def push(self, child: Node) -> None:
        """Append a child at the end."""
        self.children.append(child)
        self.sizes.append(child.metrics())

    def insert(self, idx: int, child: Node) -> None:
        """Insert a child before position ``idx``."""
        self.children.insert(idx, child)
        self.sizes.insert(idx, child.metrics())

    def insert_node(self, idx: int, new_child: Node) -> Optional[Internal]:
        """Place ``new_child`` right after child ``idx``.

        A full node splits, keeps the left half and returns the right half.
        """
        self.sizes[idx] = self.children[idx].metrics()
        idx += 1
        if len(self) < MAX_CHILDREN:
            self.insert(idx, new_child)
            return None
        middle = MAX_CHILDREN // 2
        right = Internal(self.children[middle:], self.max_leaf)
        del self.children[middle:]
        del self.sizes[middle:]
        if idx < middle:
            self.insert(idx, new_child)
        else:
            right.insert(idx - middle, new_child)
        return right

    def insert_impl(self, pos: Metric, data: Metric) -> Optional[Internal]:
        """Insert ``data`` at ``pos``; returns a split-off right node if any."""
        idx, before = self.search_char_pos(pos.chars)
        new = self.children[idx].insert_impl(pos - before, data)
        if new is not None:
            return self.insert_node(idx, new)
        self.sizes[idx] = self.sizes[idx] + data
        return None

    def balance_node(self, idx: int) -> bool:
        """Refill an underfull child from its siblings or merge it.

        Returns True if the node is still underfull afterwards.
        """
        missing = max(0, MIN_CHILDREN - len(self.children[idx]))
        if missing == 0:
            return False
        left_free = 0 if idx == 0 else max(0, len(self.children[idx - 1]) - MIN_CHILDREN)
        right_free = (
            max(0, len(self.children[idx + 1]) - MIN_CHILDREN)
            if idx + 1 < len(self.children)
            else 0
        )
        if left_free + right_free >= missing:
            self.try_steal_left(idx) and self.try_steal_right(idx)
            return False
        return self.merge_children(idx)

    def merge_children(self, idx: int) -> bool:
        """Merge child ``idx`` with a neighbour; True if the result is underfull."""
        if len(self) <= 1:
            return True
        right_idx = idx + 1 if idx == 0 else idx
        left_idx = right_idx - 1
        underfull = self.children[left_idx].merge_sibling(self.children[right_idx])
        del self.children[right_idx]
        right_metric = self.sizes.pop(right_idx)
        self.sizes[left_idx] = self.sizes[left_idx] + right_metric
        return underfull

    def try_steal_left(self, idx: int) -> bool:
        """Move entries from the left sibling; True if that was not enough."""
        if idx == 0:
            return True
        left_idx = idx - 1
        while len(self.children[idx]) < MIN_CHILDREN:
            stolen = self.children[left_idx].steal(False)
            if stolen is None:
                return True
            node, metric = stolen
            self.children[idx].merge_node(node, metric, 0)
            self.sizes[idx] = self.sizes[idx] + metric
            self.sizes[left_idx] = self.sizes[left_idx] - metric
        return False

    def try_steal_right(self, idx: int) -> bool:
        """Move entries from the right sibling; True if that was not enough."""
        right_idx = idx + 1
        if right_idx >= len(self.children):
            return True
        while len(self.children[idx]) < MIN_CHILDREN:
            stolen = self.children[right_idx].steal(True)
            if stolen is None:
                return True
            node, metric = stolen
            child = self.children[idx]
            child.merge_node(node, metric, len(child))
            self.sizes[idx] = self.sizes[idx] + metric
            self.sizes[right_idx] = self.sizes[right_idx] - metric
        return False

    def delete_impl(self, start: Metric, end: Metric) -> bool:
        """Remove ``start..end``; True if a seam at ``start`` needs fixing."""
        if start.chars > end.chars:
            raise ValueError(f"delete start ({start}) is after end ({end})")
        (start_idx, start), (end_idx, end) = self._delete_indices(start, end)
        if start_idx == end_idx:
            idx = start_idx
            fix_seam = self.children[idx].delete_impl(start, end)
            self.sizes[idx] = self.sizes[idx] - (end - start)
            if self.children[idx].is_underfull():
                self.balance_node(idx)
            return fix_seam

        start_delete = start_idx if start.bytes == 0 else start_idx + 1
        end_size = self.sizes[end_idx].bytes
        end_delete = end_idx + 1 if end.bytes == end_size else end_idx
        if start_delete < end_delete:
            del self.children[start_delete:end_delete]
            del self.sizes[start_delete:end_delete]

        fix_seam = False
        merge_left = False
        if start_delete > start_idx:
            fix_seam |= self.children[start_idx].delete_impl(start, self.sizes[start_idx])
            self.sizes[start_idx] = start
            merge_left = self.children[start_idx].is_underfull()
        if end_delete <= end_idx:
            right_idx = start_idx if start_idx == start_delete else start_idx + 1
            fix_seam |= self.children[right_idx].delete_impl(Metric(), end)
            self.sizes[right_idx] = self.sizes[right_idx] - end
            # balance the right child first so the left index stays valid
            if self.children[right_idx].is_underfull():
                fix_seam |= self.balance_node(right_idx)
        if merge_left:
            fix_seam |= self.balance_node(start_idx)
        return fix_seam

    def merge_node(self, node: Optional[Node], metric: Metric, idx: int) -> None:
        """Take in a child stolen from a sibling internal node."""
        if node is None:
            raise TypeError("cannot merge internal and leaf nodes")
        self.insert(idx, node)

    def merge_sibling(self, right: Node) -> bool:
        """Absorb every child of ``right``; True if still underfull."""
        if not isinstance(right, Internal):
            raise TypeError("cannot merge internal and leaf nodes")
        if len(self) + len(right) > MAX_CHILDREN:
            raise ValueError("merged node would exceed the maximum size")
        self.sizes.extend(right.sizes)
        self.children.extend(right.children)
        right.sizes.clear()
        right.children.clear()
        return len(self) < MIN_CHILDREN

    def fix_seam(self, char_pos: int) -> bool:
        """Repair underfull nodes along the path to ``char_pos``.

        Returns True if this node lost children and is now underfull.
        """
        prev_len = len(self)
        while True:
            idx, before = self.search_char_pos(char_pos)
            if self.children[idx].is_underfull():
                self.balance_node(idx)
            on_seam = before.chars == char_pos and idx > 0
            if on_seam and self.children[idx - 1].is_underfull():
                self.balance_node(idx - 1)

            idx, before = self.search_char_pos(char_pos)
            retry = False
            if before.chars == char_pos and idx > 0:
                retry |= _fix_child_seam(self.children[idx - 1], self.sizes[idx - 1].chars)
            retry |= _fix_child_seam(self.children[idx], char_pos - before.chars)
            if not retry:
                break
        length = len(self)
        return length < prev_len and length < MIN_CHILDREN

    def split(self, pos: Metric) -> Internal:
        """Cut the subtree at ``pos``, keeping the left part and returning the right.

        Both halves may hold underfull nodes until a seam fix runs.
        """
        idx, before = self.search_char_pos(pos.chars)
        offset = pos - before
        if offset.bytes == 0:
            right = Internal(self.children[idx:], self.max_leaf)
            del self.children[idx:]
            del self.sizes[idx:]
            return right
        right_node = self.children[idx].split(offset)
        self.sizes[idx] = offset
        right = Internal([right_node, *self.children[idx + 1 :]], self.max_leaf)
        del self.children[idx + 1 :]
        del self.sizes[idx + 1 :]
        return right

    def search_char(self, chars: int) -> tuple[Metric, int]:
        """Find the chunk holding character ``chars`` anywhere below this node."""
        return super().search_char(chars)