# gapbuf

`gapbuf` holds the building blocks of a text buffer for an editor:

- `gapbuf.gap`: `GapStorage`, UTF-8 text kept around a movable gap of unused
  bytes, so that inserting and deleting where the gap sits is cheap.
- `gapbuf.metric`: `Metric`, a pair of byte and character counts, and helpers
  for measuring text.
- `gapbuf.node` and `gapbuf.internal`: the nodes (`Leaf`, `Internal`, both
  built on `Node`) of a balanced tree that keeps the byte and character size of
  each chunk of text, so a character position can be found without scanning
  the whole text.

## Installing

```
pip install .
```

To run the test suite:

```
pip install ".[test]"
pytest
```

## Measuring text

```python
from gapbuf.metric import Metric, metric_of, metric_chunks, sum_metrics

m = metric_of("aΘb")          # Metric(bytes=4, chars=3)
print(m, m.is_ascii())        # "b:4, c:3" False

chunks = list(metric_chunks("hello world", 4))   # pieces of at most 4 bytes
assert sum_metrics(chunks) == metric_of("hello world")
```

`metric_chunks` never cuts a character in two; a piece ends early instead.
Subtracting a larger `Metric` from a smaller one raises `ValueError`.
`is_char_boundary(byte)` tells whether a byte value can start a UTF-8
character.

## Gap storage

```python
from gapbuf.gap import GapStorage
from gapbuf.metric import Metric

store = GapStorage("world", gap_size=5)   # the gap starts at the front
store.fill_gap("hi ")                     # write into the gap
assert str(store) == "hi world"

store.move_gap(Metric(6, 4))              # data offset 6 is character 4, after "hi w"
store.fill_gap("X")
assert str(store) == "hi wXorld"
```

Positions passed to `move_gap` and `delete_byte_range` are `Metric` values
whose `bytes` field is an offset into the raw data, gap included, and whose
`chars` field counts characters from the start of the text. `grow(text)`
inserts at the gap and allocates a fresh gap; `fill_gap` raises `ValueError`
when the text does not fit. `read(start, end)` returns the text between two
byte offsets of the text with the gap skipped, and `len(store)` is the text
length in bytes. Positions that fall inside the gap or off a character
boundary raise `ValueError`.

## The metrics tree

```python
from gapbuf.metric import Metric
from gapbuf.node import Leaf
from gapbuf.internal import Internal

leaf = Leaf([Metric(4, 4), Metric(6, 3)])
print(leaf.search_char(5))     # (Metric(bytes=4, chars=4), 1)

root = Internal([Leaf([Metric(2, 2)] * 3), Leaf([Metric(2, 2)] * 3)])
print(root.metrics(), root.depth())
```

`search_char` returns the metric at the start of the chunk holding a
character and the character offset still to walk inside it (zero for ASCII
chunks, which are resolved exactly). Nodes support `insert_impl`,
`delete_impl` and `split`; internal nodes also rebalance underfull children
with `balance_node` and `fix_seam`. A node holds at most six entries.

## What the package does not do

There is no single buffer object that keeps a `GapStorage` and a metrics tree
in step, and no tree root wrapper: callers drive the nodes directly and keep
positions consistent themselves. There is no cursor-based editing interface
in character positions, no loader or command for replaying recorded editing
sessions, and no command-line program.