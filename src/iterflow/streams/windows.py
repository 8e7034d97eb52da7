"""
Windowing operators.

Sliding windows keep a bounded buffer and emit one output per incoming
element once the window is full. Generic windows use a circular buffer;
windowed extrema use a monotonic deque so every element is pushed once and
popped at most once, giving O(n) total work instead of O(n * size).
"""

from collections import deque
from typing import Deque, Iterator, List, Optional, Tuple, TypeVar

from iterflow.config import config
from iterflow.streams.operators import StreamOperator
from iterflow.validation import validate_positive_integer

T = TypeVar('T')


class CircularBuffer:
    """Fixed-capacity ring holding the most recent ``size`` items."""

    def __init__(self, size: int):
        validate_positive_integer(size, "size", "window")
        self.size = size
        self._slots: List[Optional[T]] = [None] * size
        self._next = 0  # slot the next push writes to (the oldest once full)
        self._count = 0

    def push(self, item: T) -> None:
        self._slots[self._next] = item
        self._next = (self._next + 1) % self.size
        if self._count < self.size:
            self._count += 1

    @property
    def is_full(self) -> bool:
        return self._count == self.size

    def __len__(self) -> int:
        return self._count

    def snapshot(self) -> List[T]:
        """Current contents, oldest first, as a new list."""
        if not self.is_full:
            return self._slots[:self._count]
        start = self._next
        return self._slots[start:] + self._slots[:start]


class MonotonicDeque:
    """
    Sliding-window extremum tracker.

    Holds ``(index, value)`` pairs with values weakly increasing (for the
    minimum) or weakly decreasing (for the maximum). The front entry is the
    extremum of the active window.
    """

    def __init__(self, size: int, maximum: bool = False):
        validate_positive_integer(size, "size", "windowed_max" if maximum else "windowed_min")
        self.size = size
        self.maximum = maximum
        self._entries: Deque[Tuple[int, T]] = deque()
        self._index = -1

    def push(self, value: T) -> None:
        self._index += 1
        entries = self._entries

        # Back entries that can never again be the extremum
        if self.maximum:
            while entries and entries[-1][1] <= value:
                entries.pop()
        else:
            while entries and entries[-1][1] >= value:
                entries.pop()
        entries.append((self._index, value))

        # Front entries that slid out of the window
        cutoff = self._index - self.size
        while entries[0][0] <= cutoff:
            entries.popleft()

    @property
    def ready(self) -> bool:
        """Whether a full window has been seen."""
        return self._index >= self.size - 1

    @property
    def extremum(self) -> T:
        return self._entries[0][1]

    def __len__(self) -> int:
        return len(self._entries)


class WindowOperator(StreamOperator):
    """Sliding window of ``size`` consecutive elements, advancing by one."""

    name = "window"

    def __init__(self, size: int):
        validate_positive_integer(size, "size", self.name)
        self.size = size

    def apply(self, iterator: Iterator[T]) -> Iterator[List[T]]:
        buffer = CircularBuffer(self.size)

        for item in iterator:
            buffer.push(item)
            if buffer.is_full:
                yield buffer.snapshot()

    def __repr__(self) -> str:
        return f"WindowOperator(size={self.size})"


class ChunkOperator(StreamOperator):
    """Group elements into fixed-size chunks."""

    name = "chunk"

    def __init__(self, size: Optional[int] = None):
        if size is None:
            size = config.default_chunk_size
        validate_positive_integer(size, "size", self.name)
        self.size = size

    def apply(self, iterator: Iterator[T]) -> Iterator[List[T]]:
        chunk = []

        for item in iterator:
            chunk.append(item)

            if len(chunk) >= self.size:
                yield chunk
                chunk = []

        # Don't forget last chunk
        if chunk:
            yield chunk

    def __repr__(self) -> str:
        return f"ChunkOperator(size={self.size})"


class PairwiseOperator(StreamOperator):
    """Overlapping ``(previous, current)`` pairs."""

    name = "pairwise"

    def apply(self, iterator: Iterator[T]) -> Iterator[Tuple[T, T]]:
        missing = object()
        previous = missing
        for item in iterator:
            if previous is not missing:
                yield previous, item
            previous = item


class WindowedExtremumOperator(StreamOperator):
    """Minimum or maximum of each sliding window via a monotonic deque."""

    def __init__(self, size: int, maximum: bool = False):
        self.name = "windowed_max" if maximum else "windowed_min"
        validate_positive_integer(size, "size", self.name)
        self.size = size
        self.maximum = maximum

    def apply(self, iterator: Iterator[T]) -> Iterator[T]:
        tracker = MonotonicDeque(self.size, self.maximum)

        for item in iterator:
            tracker.push(item)
            if tracker.ready:
                yield tracker.extremum

    def __repr__(self) -> str:
        return f"WindowedExtremumOperator(size={self.size}, maximum={self.maximum})"
