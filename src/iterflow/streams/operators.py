"""
Stream operators for transformation.

Each operator validates its arguments when constructed and is applied
lazily: ``apply`` returns a generator that pulls from upstream only when
its own output is demanded.
"""

from abc import ABC, abstractmethod
from functools import cmp_to_key
from typing import Any, Callable, Iterable, Iterator, List, Optional, Tuple, TypeVar

from iterflow.algorithms.materialize import materialize
from iterflow.errors import ValidationError
from iterflow.validation import validate_callable, validate_non_negative_integer

T = TypeVar('T')
U = TypeVar('U')


class StreamOperator(ABC):
    """Base class for stream operators."""

    name = "operator"

    @abstractmethod
    def apply(self, iterator: Iterator[T]) -> Iterator[Any]:
        """Apply operator to iterator."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class MapOperator(StreamOperator):
    """Map each element to a new value."""

    name = "map"

    def __init__(self, func: Callable[[T], U]):
        validate_callable(func, "func", self.name)
        self.func = func

    def apply(self, iterator: Iterator[T]) -> Iterator[U]:
        for item in iterator:
            yield self.func(item)


class FilterOperator(StreamOperator):
    """Filter elements by predicate."""

    name = "filter"

    def __init__(self, predicate: Callable[[T], bool]):
        validate_callable(predicate, "predicate", self.name)
        self.predicate = predicate

    def apply(self, iterator: Iterator[T]) -> Iterator[T]:
        for item in iterator:
            if self.predicate(item):
                yield item


def is_expandable(value: Any) -> bool:
    """Whether flat_map should expand ``value`` rather than yield it whole."""
    return hasattr(value, '__iter__') and not isinstance(value, (str, bytes, bytearray))


class FlatMapOperator(StreamOperator):
    """Map each element to multiple elements."""

    name = "flat_map"

    def __init__(self, func: Callable[[T], Iterable[U]]):
        validate_callable(func, "func", self.name)
        self.func = func

    def apply(self, iterator: Iterator[T]) -> Iterator[U]:
        for item in iterator:
            result = self.func(item)
            if is_expandable(result):
                yield from result
            else:
                yield result


class TakeOperator(StreamOperator):
    """Take first n elements."""

    name = "take"

    def __init__(self, n: int):
        validate_non_negative_integer(n, "n", self.name)
        self.n = n

    def apply(self, iterator: Iterator[T]) -> Iterator[T]:
        # Check the budget before pulling so an exhausted take never touches upstream
        remaining = self.n
        while remaining > 0:
            try:
                item = next(iterator)
            except StopIteration:
                return
            remaining -= 1
            yield item

    def __repr__(self) -> str:
        return f"TakeOperator(n={self.n})"


class SkipOperator(StreamOperator):
    """Skip first n elements."""

    name = "drop"

    def __init__(self, n: int):
        validate_non_negative_integer(n, "n", self.name)
        self.n = n

    def apply(self, iterator: Iterator[T]) -> Iterator[T]:
        for i, item in enumerate(iterator):
            if i >= self.n:
                yield item

    def __repr__(self) -> str:
        return f"SkipOperator(n={self.n})"


class TakeWhileOperator(StreamOperator):
    """Take elements while predicate is true."""

    name = "take_while"

    def __init__(self, predicate: Callable[[T], bool]):
        validate_callable(predicate, "predicate", self.name)
        self.predicate = predicate

    def apply(self, iterator: Iterator[T]) -> Iterator[T]:
        for item in iterator:
            if self.predicate(item):
                yield item
            else:
                break


class DropWhileOperator(StreamOperator):
    """Drop elements while predicate is true."""

    name = "drop_while"

    def __init__(self, predicate: Callable[[T], bool]):
        validate_callable(predicate, "predicate", self.name)
        self.predicate = predicate

    def apply(self, iterator: Iterator[T]) -> Iterator[T]:
        dropping = True
        for item in iterator:
            if dropping and self.predicate(item):
                continue
            dropping = False
            yield item


class DistinctOperator(StreamOperator):
    """Remove duplicate elements, keeping the first occurrence."""

    name = "distinct"

    def __init__(self, key_func: Optional[Callable[[T], Any]] = None):
        if key_func is not None:
            validate_callable(key_func, "key_func", "distinct_by")
        self.key_func = key_func

    def apply(self, iterator: Iterator[T]) -> Iterator[T]:
        seen = set()
        key_func = self.key_func

        for item in iterator:
            key = item if key_func is None else key_func(item)
            if key not in seen:
                seen.add(key)
                yield item


class TapOperator(StreamOperator):
    """Call a function for its side effect and pass each element through."""

    name = "tap"

    def __init__(self, func: Callable[[T], Any]):
        validate_callable(func, "func", self.name)
        self.func = func

    def apply(self, iterator: Iterator[T]) -> Iterator[T]:
        for item in iterator:
            self.func(item)
            yield item


class EnumerateOperator(StreamOperator):
    """Pair each element with its position."""

    name = "enumerate"

    def __init__(self, start: int = 0):
        validate_non_negative_integer(start, "start", self.name)
        self.start = start

    def apply(self, iterator: Iterator[T]) -> Iterator[Tuple[int, T]]:
        index = self.start
        for item in iterator:
            yield index, item
            index += 1


class ScanOperator(StreamOperator):
    """Emit the initial value, then every intermediate accumulation."""

    name = "scan"

    def __init__(self, func: Callable[[U, T], U], initial: U):
        validate_callable(func, "func", self.name)
        self.func = func
        self.initial = initial

    def apply(self, iterator: Iterator[T]) -> Iterator[U]:
        accumulator = self.initial
        yield accumulator
        for item in iterator:
            accumulator = self.func(accumulator, item)
            yield accumulator


class ConcatOperator(StreamOperator):
    """Drain the stream, then each of the given iterables in order."""

    name = "concat"

    def __init__(self, others: Tuple[Iterable[T], ...]):
        self.others = others

    def apply(self, iterator: Iterator[T]) -> Iterator[T]:
        yield from iterator
        for other in self.others:
            yield from other


class IntersperseOperator(StreamOperator):
    """Insert a separator between consecutive elements."""

    name = "intersperse"

    def __init__(self, separator: T):
        self.separator = separator

    def apply(self, iterator: Iterator[T]) -> Iterator[T]:
        first = True
        for item in iterator:
            if not first:
                yield self.separator
            yield item
            first = False


class SortOperator(StreamOperator):
    """Buffer the whole input and emit it sorted (stable)."""

    name = "sort_by"

    def __init__(self,
                 key: Optional[Callable[[T], Any]] = None,
                 reverse: bool = False,
                 comparator: Optional[Callable[[T, T], int]] = None):
        if key is not None and comparator is not None:
            raise ValidationError("Pass either key or comparator, not both", self.name)
        if comparator is not None:
            validate_callable(comparator, "comparator", self.name)
            key = cmp_to_key(comparator)
        elif key is not None:
            validate_callable(key, "key", self.name)
        self.key = key
        self.reverse = reverse

    def sort(self, buffer: List[T]) -> List[T]:
        buffer.sort(key=self.key, reverse=self.reverse)
        return buffer

    def apply(self, iterator: Iterator[T]) -> Iterator[T]:
        yield from self.sort(materialize(iterator, self.name))


class ReverseOperator(StreamOperator):
    """Buffer the whole input and emit it back to front."""

    name = "reverse"

    def apply(self, iterator: Iterator[T]) -> Iterator[T]:
        yield from reversed(materialize(iterator, self.name))
