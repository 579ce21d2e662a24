"""Gap storage: UTF-8 bytes with a movable hole where edits happen."""

from __future__ import annotations

from typing import Optional

from gapbuf.metric import Metric, is_char_boundary, metric_of

GAP_SIZE = 2000


class GapStorage:
    """UTF-8 text stored around a gap of unused bytes.

    ``gap_start`` is never a valid byte index: a position at the gap is
    always written as ``gap_end``. Byte positions given as ``Metric`` values
    are offsets into ``data`` (the gap included); their ``chars`` field is a
    character count from the start of the text.
    """

    def __init__(self, text: Optional[str] = None, gap_size: int = GAP_SIZE) -> None:
        if gap_size < 0:
            raise ValueError("gap_size must not be negative")
        self.gap_size = gap_size
        if text is None:
            self.data = bytearray()
            self.gap_start = 0
            self.gap_end = 0
            self.cursor = Metric()
            self.total = Metric()
        else:
            self.data = bytearray(gap_size) + text.encode("utf-8")
            self.gap_start = 0
            self.gap_end = gap_size
            self.cursor = Metric(gap_size, 0)
            self.total = metric_of(text)
        self.gap_chars = 0

    def __len__(self) -> int:
        """Number of text bytes, the gap excluded."""
        return self.total.bytes

    def gap_len(self) -> int:
        return self.gap_end - self.gap_start

    def grow(self, text: str) -> None:
        """Insert ``text`` at the gap while making room for a fresh gap."""
        encoded = text.encode("utf-8")
        self.data = (
            self.data[: self.gap_start]
            + encoded
            + bytearray(self.gap_size)
            + self.data[self.gap_end :]
        )
        self.gap_start += len(encoded)
        self.gap_end = self.gap_start + self.gap_size
        new = metric_of(text)
        self.gap_chars += new.chars
        self.cursor = Metric(self.gap_end, self.gap_chars)
        self.total = self.total + new

    def fill_gap(self, text: str) -> None:
        """Write ``text`` into the start of the gap, which must be large enough."""
        encoded = text.encode("utf-8")
        if len(encoded) > self.gap_len():
            raise ValueError(
                f"text of {len(encoded)} bytes does not fit in a gap of {self.gap_len()}"
            )
        self.data[self.gap_start : self.gap_start + len(encoded)] = encoded
        self.gap_start += len(encoded)
        new = metric_of(text)
        self.gap_chars += new.chars
        self.cursor = Metric(self.cursor.bytes, self.cursor.chars + new.chars)
        self.total = self.total + new

    def _check_boundary(self, pos: int) -> None:
        if pos == self.gap_start:
            return
        if not self.is_char_boundary(pos):
            raise ValueError(f"position ({pos}) not on utf8 boundary")

    def _copy_within(self, start: int, end: int, dest: int) -> None:
        self.data[dest : dest + (end - start)] = self.data[start:end]

    def move_gap(self, pos: Metric) -> None:
        """Move the gap so that it begins at text position ``pos``."""
        if pos.bytes > len(self.data):
            raise IndexError("attempt to move gap out of bounds")
        self._check_boundary(pos.bytes)
        if pos.bytes < self.gap_start:
            shift = Metric(self.gap_start, self.gap_chars) - pos
            self.gap_chars -= shift.chars
            self._copy_within(pos.bytes, self.gap_start, self.gap_end - shift.bytes)
            if pos.bytes <= self.cursor.bytes < self.gap_start:
                self.cursor = Metric(self.cursor.bytes + self.gap_len(), self.cursor.chars)
            self.gap_start = pos.bytes
            self.gap_end -= shift.bytes
        elif pos.bytes >= self.gap_end:
            self.gap_chars = pos.chars
            self._copy_within(self.gap_end, pos.bytes, self.gap_start)
            size = pos.bytes - self.gap_end
            if self.gap_end <= self.cursor.bytes < pos.bytes:
                self.cursor = Metric(self.cursor.bytes - self.gap_len(), self.cursor.chars)
            self.gap_start += size
            self.gap_end = pos.bytes
        else:
            raise ValueError(
                f"move gap position byte: ({pos}) inside gap ({self.gap_start}-{self.gap_end})"
            )

    def _update_cursor_chars(self, beg: int, end: int, size: int) -> None:
        if self.cursor.bytes > beg:
            if self.cursor.bytes > end:
                chars = self.cursor.chars - size
            else:
                chars = self.gap_chars
            self.cursor = Metric(self.cursor.bytes, chars)

    def delete_byte_range(self, beg: Metric, end: Metric) -> None:
        """Remove the text between ``beg`` and ``end``, widening the gap."""
        if beg.bytes > end.bytes:
            raise ValueError(f"beg ({beg}) is greater then end ({end})")
        if end.bytes > len(self.data):
            raise IndexError("end out of bounds")
        self._check_boundary(beg.bytes)
        self._check_boundary(end.bytes)
        if end.bytes < self.gap_start:
            # before the gap: shift end..gap_start up against gap_end
            deleted = end - beg
            self.gap_chars = beg.chars
            self.total = self.total - deleted
            new_end = self.gap_end - (self.gap_start - end.bytes)
            self._copy_within(end.bytes, self.gap_start, new_end)
            self._update_cursor_chars(beg.bytes, end.bytes, deleted.chars)
            if self.cursor.bytes < self.gap_start:
                if self.cursor.bytes > end.bytes:
                    self.cursor = Metric(self.cursor.bytes + self.gap_len(), self.cursor.chars)
                elif self.cursor.bytes >= beg.bytes:
                    self.cursor = Metric(new_end, self.cursor.chars)
            self.gap_end = new_end
            self.gap_start = beg.bytes
        elif beg.bytes >= self.gap_end:
            # after the gap: shift gap_end..beg down onto gap_start
            deleted = end - beg
            self.total = self.total - deleted
            self.gap_chars = beg.chars
            self._copy_within(self.gap_end, beg.bytes, self.gap_start)
            self._update_cursor_chars(beg.bytes, end.bytes, deleted.chars)
            if self.cursor.bytes >= self.gap_end:
                if self.cursor.bytes < beg.bytes:
                    self.cursor = Metric(self.cursor.bytes - self.gap_len(), self.cursor.chars)
                elif self.cursor.bytes < end.bytes:
                    self.cursor = Metric(end.bytes, self.cursor.chars)
            self.gap_start += beg.bytes - self.gap_end
            self.gap_end = end.bytes
        elif beg.bytes < self.gap_start and end.bytes >= self.gap_end:
            # the range spans the gap: just widen it
            before = Metric(self.gap_start, self.gap_chars) - beg
            after = end - Metric(self.gap_end, self.gap_chars)
            self.gap_chars -= before.chars
            self.total = self.total - (before + after)
            self.gap_start = beg.bytes
            self.gap_end = end.bytes
            self._update_cursor_chars(beg.bytes, end.bytes, before.chars + after.chars)
            if beg.bytes <= self.cursor.bytes < end.bytes:
                self.cursor = Metric(end.bytes, self.cursor.chars)
        else:
            raise ValueError(
                f"delete region inside gap -- gap: {self.gap_start}-{self.gap_end}, "
                f"span: {beg}-{end}"
            )

    def is_char_boundary(self, pos: int) -> bool:
        """True if data offset ``pos`` starts a character or is the end."""
        if pos < 0:
            return False
        if pos < len(self.data):
            return is_char_boundary(self.data[pos])
        return pos == len(self.data)

    def to_str(self, start: int, end: int) -> str:
        """Decode the raw data between two offsets."""
        return self.data[start:end].decode("utf-8")

    def read(self, start: int, end: int) -> str:
        """Text between byte offsets ``start`` and ``end``, the gap skipped."""
        if start > end:
            raise ValueError(f"range start ({start}) is after end ({end})")
        if start >= self.gap_start:
            start += self.gap_len()
        if end >= self.gap_start:
            end += self.gap_len()
        if end > len(self.data):
            raise IndexError("range end out of bounds")
        if start > len(self.data):
            raise IndexError("range start out of bounds")
        for i in range(4):
            if self.is_char_boundary(end - i):
                end -= i
                break
        for i in range(4):
            if self.is_char_boundary(start + i):
                start += i
                break
        if self.gap_start <= start < self.gap_end or self.gap_start <= end < self.gap_end:
            raise ValueError("read range overlaps the gap")
        if start < self.gap_start < end:
            return self.to_str(start, self.gap_start) + self.to_str(self.gap_end, end)
        return self.to_str(start, end)

    def __str__(self) -> str:
        return self.read(0, len(self))

    def __repr__(self) -> str:
        head = self.to_str(0, self.gap_start)
        tail = self.to_str(self.gap_end, len(self.data))
        gap = "_" * self.gap_len()
        return (
            f"GapStorage(data={head + gap + tail!r}, gap_start={self.gap_start}, "
            f"gap_end={self.gap_end}, gap_chars={self.gap_chars}, "
            f"cursor=({self.cursor}), total_chars={self.total.chars})"
        )