"""Nodes of the metrics B-tree: the shared node behaviour and leaf nodes."""

from __future__ import annotations

from typing import Iterable, Optional

from gapbuf.metric import Metric, sum_metrics

MAX_CHILDREN = 6
MIN_CHILDREN = MAX_CHILDREN // 2
MAX_LEAF = 8000


class Node:
    """Behaviour shared by leaf and internal nodes of the metrics tree.

    ``sizes`` holds one metric per entry: per text chunk in a leaf, per
    child in an internal node. Internal nodes also keep ``children``.
    """

    is_leaf: bool = False
    sizes: list[Metric]
    children: list[Node]
    max_leaf: int

    def __len__(self) -> int:
        return len(self.sizes)

    def metrics(self) -> Metric:
        """Total size of everything below this node."""
        return sum_metrics(self.sizes)

    def is_underfull(self) -> bool:
        return len(self) < MIN_CHILDREN

    def depth(self) -> int:
        """Number of internal levels between this node and the leaves."""
        if self.is_leaf:
            return 0
        return 1 + self.children[0].depth()

    def search_char_pos(self, char_pos: int) -> tuple[int, Metric]:
        """Index of the entry holding ``char_pos`` and the size before it.

        Positions past the end fall into the last entry.
        """
        if not self.sizes:
            raise IndexError("search in an empty node")
        acc = Metric()
        last = len(self.sizes) - 1
        for idx, size in enumerate(self.sizes[:last]):
            if char_pos < acc.chars + size.chars:
                return idx, acc
            acc = acc + size
        return last, acc

    def search_char(self, chars: int) -> tuple[Metric, int]:
        """Find the chunk containing character ``chars``.

        Returns the metric of the chunk start and the remaining character
        offset inside it; ASCII chunks resolve the offset exactly.
        """
        needle = chars
        total = Metric()
        for idx, size in enumerate(self.sizes):
            if needle == 0:
                break
            if needle < size.chars:
                if size.is_ascii():
                    return total + Metric(needle, needle), 0
                if self.is_leaf:
                    return total, needle
                base, offset = self.children[idx].search_char(needle)
                return total + base, offset
            total = total + size
            needle -= size.chars
        return total, needle

    def steal(self, first: bool) -> Optional[tuple[Optional[Node], Metric]]:
        """Remove the first or last entry if the node can spare one."""
        if len(self) <= MIN_CHILDREN:
            return None
        idx = 0 if first else len(self) - 1
        metric = self.sizes.pop(idx)
        child = None if self.is_leaf else self.children.pop(idx)
        return child, metric

    def _delete_indices(
        self, start: Metric, end: Metric
    ) -> tuple[tuple[int, Metric], tuple[int, Metric]]:
        """Entries holding ``start`` and ``end`` and the offsets within them."""
        start_idx: Optional[int] = None
        end_idx: Optional[int] = None
        for idx, size in enumerate(self.sizes):
            if start_idx is None and (start.chars < size.chars or start.chars == 0):
                start_idx = idx
            if end.chars <= size.chars:
                end_idx = idx
                break
            if start_idx is None:
                start = start - size
            end = end - size
        if start_idx is None or end_idx is None:
            raise IndexError("delete range out of bounds")
        return (start_idx, start), (end_idx, end)


class Leaf(Node):
    """A bottom-level node holding the metrics of consecutive text chunks."""

    is_leaf = True

    def __init__(
        self, metrics: Optional[Iterable[Metric]] = None, max_leaf: int = MAX_LEAF
    ) -> None:
        self.sizes = list(metrics) if metrics is not None else []
        self.max_leaf = max_leaf

    def __len__(self) -> int:
        return len(self.sizes)

    def __repr__(self) -> str:
        return f"Leaf([{', '.join(f'({m})' for m in self.sizes)}])"

    def insert_at(self, idx: int, pos: Metric, data: Metric) -> Optional[Leaf]:
        """Insert ``data`` at offset ``pos`` inside chunk ``idx``.

        A chunk that would grow too large is split in two. If the leaf then
        overflows it splits as well and the new right half is returned.
        """
        if self.sizes[idx].bytes + data.bytes < self.max_leaf:
            self.sizes[idx] = self.sizes[idx] + data
            return None
        left = pos
        right = self.sizes[idx] - left
        if left.bytes <= right.bytes:
            self.sizes[idx] = left + data
            new = right
        else:
            self.sizes[idx] = left
            new = right + data
        idx += 1
        if len(self) < MAX_CHILDREN:
            self.sizes.insert(idx, new)
            return None
        middle = MAX_CHILDREN // 2
        right_sizes = self.sizes[middle:]
        del self.sizes[middle:]
        if idx < middle:
            self.sizes.insert(idx, new)
        else:
            right_sizes.insert(idx - middle, new)
        return Leaf(right_sizes, self.max_leaf)

    def push(self, metric: Metric) -> Optional[Leaf]:
        """Append a chunk; a full leaf returns a new leaf holding it instead."""
        if len(self) < MAX_CHILDREN:
            self.sizes.append(metric)
            return None
        return Leaf([metric], self.max_leaf)

    def insert_impl(self, pos: Metric, data: Metric) -> Optional[Leaf]:
        """Insert ``data`` at absolute position ``pos`` within this leaf."""
        if not self.sizes:
            if pos.bytes != 0:
                raise IndexError("insert position out of bounds")
            self.sizes.append(data)
            return None
        idx, before = self.search_char_pos(pos.chars)
        return self.insert_at(idx, pos - before, data)

    def split(self, pos: Metric) -> Leaf:
        """Cut the leaf at ``pos``, keeping the left part and returning the right."""
        idx, before = self.search_char_pos(pos.chars)
        offset = pos - before
        if offset.bytes == 0:
            right = self.sizes[idx:]
            del self.sizes[idx:]
        else:
            right = [self.sizes[idx] - offset, *self.sizes[idx + 1 :]]
            self.sizes[idx] = offset
            del self.sizes[idx + 1 :]
        return Leaf(right, self.max_leaf)

    def delete_impl(self, start: Metric, end: Metric) -> bool:
        """Remove the range ``start..end``; leaves never need a seam fix."""
        if start.chars > end.chars:
            raise ValueError(f"delete start ({start}) is after end ({end})")
        (start_idx, start), (end_idx, end) = self._delete_indices(start, end)
        if start_idx == end_idx:
            chunk = end - start
            if chunk == self.sizes[start_idx]:
                del self.sizes[start_idx]
            else:
                self.sizes[start_idx] = self.sizes[start_idx] - chunk
        else:
            start_delete = start_idx if start.bytes == 0 else start_idx + 1
            end_size = self.sizes[end_idx].bytes
            end_delete = end_idx + 1 if end_size == end.bytes else end_idx
            self.sizes[end_idx] = self.sizes[end_idx] - end
            self.sizes[start_idx] = start
            if start_delete < end_delete:
                del self.sizes[start_delete:end_delete]
        return False

    def merge_node(self, node: Optional[Node], metric: Metric, idx: int) -> None:
        """Take in a chunk stolen from a sibling leaf."""
        if node is not None:
            raise TypeError("cannot merge internal and leaf nodes")
        self.sizes.insert(idx, metric)

    def merge_sibling(self, right: Node) -> bool:
        """Absorb every chunk of ``right``; True if still underfull."""
        if not isinstance(right, Leaf):
            raise TypeError("cannot merge internal and leaf nodes")
        if len(self) + len(right) > MAX_CHILDREN:
            raise ValueError("merged leaf would exceed the maximum size")
        self.sizes.extend(right.sizes)
        right.sizes.clear()
        return len(self) < MIN_CHILDREN