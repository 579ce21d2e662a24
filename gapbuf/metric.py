"""Byte/character measurements of text and helpers for cutting text into chunks."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Iterator


@dataclass(frozen=True)
class Metric:
    """The size of a run of UTF-8 text, in bytes and in characters."""

    bytes: int = 0
    chars: int = 0

    def is_ascii(self) -> bool:
        """True when every character in the measured text is a single byte."""
        return self.bytes == self.chars

    def __add__(self, other: Metric) -> Metric:
        if not isinstance(other, Metric):
            return NotImplemented
        return Metric(self.bytes + other.bytes, self.chars + other.chars)

    def __sub__(self, other: Metric) -> Metric:
        if not isinstance(other, Metric):
            return NotImplemented
        result = Metric(self.bytes - other.bytes, self.chars - other.chars)
        if result.bytes < 0 or result.chars < 0:
            raise ValueError(f"metric underflow: ({self}) - ({other})")
        return result

    def __str__(self) -> str:
        return f"b:{self.bytes}, c:{self.chars}"


def metric_of(text: str) -> Metric:
    """Measure a string as UTF-8."""
    return Metric(len(text.encode("utf-8")), len(text))


def is_char_boundary(byte: int) -> bool:
    """True if ``byte`` can start a UTF-8 encoded character."""
    if not 0 <= byte <= 0xFF:
        raise ValueError(f"not a byte value: {byte}")
    return byte < 0x80 or byte >= 0xC0


def metric_chunks(text: str, chunk_size: int) -> Iterator[Metric]:
    """Yield the metrics of consecutive pieces of ``text``.

    Each piece holds at most ``chunk_size`` bytes; a piece ends early rather
    than split a character.
    """
    if chunk_size <= 0:
        raise ValueError("chunk_size must be positive")
    data = text.encode("utf-8")
    size = len(data)
    start = 0
    end = min(size, chunk_size)
    while start != size:
        cut = min(end, size)
        if cut != size:
            while not is_char_boundary(data[cut]):
                cut -= 1
        if cut <= start:
            raise ValueError("chunk_size is smaller than a single character")
        piece = data[start:cut]
        yield Metric(len(piece), len(piece.decode("utf-8")))
        start = cut
        end += chunk_size


def sum_metrics(metrics: Iterable[Metric]) -> Metric:
    """Add up a sequence of metrics; an empty sequence sums to zero."""
    total = Metric()
    for metric in metrics:
        total = total + metric
    return total