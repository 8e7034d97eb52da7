"""
Multi-source combinators and source constructors.

Every function returns a lazy ``Stream``; no source is touched until the
first element is demanded.
"""

import heapq
from functools import cmp_to_key
from typing import Any, Callable, Iterable, Iterator, Optional, Tuple, TypeVar

from iterflow.errors import ValidationError
from iterflow.streams.stream import Stream
from iterflow.validation import (
    validate_callable,
    validate_iterable,
    validate_non_negative_integer,
    validate_non_zero,
)

T = TypeVar('T')
R = TypeVar('R')


def _zip(sources: Tuple[Iterable[Any], ...]) -> Iterator[Tuple[Any, ...]]:
    iterators = [iter(source) for source in sources]
    if not iterators:
        return
    while True:
        row = []
        for iterator in iterators:
            for item in iterator:
                row.append(item)
                break
            else:
                return
        yield tuple(row)


def zip(*sources: Iterable[Any]) -> Stream[Tuple[Any, ...]]:
    """Tuples of one element from each source, stopping at the shortest."""
    for source in sources:
        validate_iterable(source, "source", "zip")
    return Stream(lambda: _zip(sources))


def zip_with(func: Callable[..., R], *sources: Iterable[Any]) -> Stream[R]:
    """Combine one element from each source with ``func``."""
    validate_callable(func, "func", "zip_with")
    return zip(*sources).map(lambda row: func(*row))


def _chain(sources: Tuple[Iterable[T], ...]) -> Iterator[T]:
    for source in sources:
        yield from source


def chain(*sources: Iterable[T]) -> Stream[T]:
    """Drain each source fully before moving to the next."""
    for source in sources:
        validate_iterable(source, "source", "chain")
    return Stream(lambda: _chain(sources))


def _interleave(sources: Tuple[Iterable[T], ...]) -> Iterator[T]:
    active = [iter(source) for source in sources]
    while active:
        still_active = []
        for iterator in active:
            for item in iterator:
                yield item
                still_active.append(iterator)
                break
        active = still_active


def interleave(*sources: Iterable[T]) -> Stream[T]:
    """Round-robin across sources, skipping those that are exhausted."""
    for source in sources:
        validate_iterable(source, "source", "interleave")
    return Stream(lambda: _interleave(sources))


def merge_key(comparator: Optional[Callable[[T, T], int]] = None,
              key: Optional[Callable[[T], Any]] = None) -> Callable[[T], Any]:
    """Build the heap ordering key from a comparator or a key function."""
    if comparator is not None and key is not None:
        raise ValidationError("Pass either comparator or key, not both", "merge")
    if comparator is not None:
        validate_callable(comparator, "comparator", "merge")
        return cmp_to_key(comparator)
    if key is not None:
        validate_callable(key, "key", "merge")
        return key
    return lambda item: item


def _kway_merge(sources: Tuple[Iterable[T], ...], key: Callable[[T], Any]) -> Iterator[T]:
    """
    Merge individually sorted sources using a binary min-heap of their heads.

    Heap entries are ``(key, source_index, item, iterator)``; the source
    index breaks ties, so equal items come out in source order and the
    items themselves are never compared.
    """
    heap = []
    for index, source in enumerate(sources):
        iterator = iter(source)
        for item in iterator:
            heap.append((key(item), index, item, iterator))
            break
    heapq.heapify(heap)

    while heap:
        _, index, item, iterator = heap[0]
        yield item

        # Refill from the same source, or drop it once exhausted
        for next_item in iterator:
            heapq.heapreplace(heap, (key(next_item), index, next_item, iterator))
            break
        else:
            heapq.heappop(heap)


def merge(*sources: Any,
          comparator: Optional[Callable[[T, T], int]] = None,
          key: Optional[Callable[[T], Any]] = None) -> Stream[T]:
    """
    k-way merge of individually sorted sources into one sorted stream.

    Costs O(log k) comparisons per element and never holds more than one
    pending element per source.

    Args:
        *sources: Sorted iterables. A callable given as the first positional
            argument is taken as the comparator.
        comparator: ``cmp(a, b)`` returning negative, zero or positive
        key: Sort key, as for ``sorted``

    Example:
        >>> merge([1, 3, 5], [2, 4, 6]).to_list()
        [1, 2, 3, 4, 5, 6]
    """
    if sources and callable(sources[0]) and not hasattr(sources[0], '__iter__'):
        if comparator is not None:
            raise ValidationError("Comparator given twice", "merge")
        comparator, sources = sources[0], sources[1:]
    for source in sources:
        validate_iterable(source, "source", "merge")
    order = merge_key(comparator, key)
    return Stream(lambda: _kway_merge(sources, order))


def _count(start: float, stop: float, step: float) -> Iterator[float]:
    value = start
    if step > 0:
        while value < stop:
            yield value
            value += step
    else:
        while value > stop:
            yield value
            value += step


def range(start: float, stop: Optional[float] = None, step: float = 1) -> Stream[float]:
    """
    Arithmetic progression, like the builtin but lazy and float friendly.

    ``range(stop)`` counts from 0; a negative step counts down.

    Raises:
        ValidationError: If step is zero
    """
    validate_non_zero(step, "step", "range")
    if stop is None:
        start, stop = 0, start
    return Stream(lambda: _count(start, stop, step))


def _repeat(value: T, times: Optional[int]) -> Iterator[T]:
    if times is None:
        while True:
            yield value
    else:
        for _ in _count(0, times, 1):
            yield value


def repeat(value: T, times: Optional[int] = None) -> Stream[T]:
    """Yield ``value`` ``times`` times, or forever when ``times`` is None."""
    if times is not None:
        validate_non_negative_integer(times, "times", "repeat")
    return Stream(lambda: _repeat(value, times))
