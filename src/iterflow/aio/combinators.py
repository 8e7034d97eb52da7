"""Async multi-source combinators. Each returns a lazy ``AsyncStream``."""

from typing import Any, AsyncIterator, Callable, Optional, Tuple, TypeVar

from iterflow.aio.operators import resolve, to_async_iterator
from iterflow.aio.stream import AsyncStream
from iterflow.errors import ValidationError
from iterflow.validation import validate_callable, validate_iterable

T = TypeVar('T')

_MISSING = object()


async def _zip(sources: Tuple[Any, ...]) -> AsyncIterator[Tuple[Any, ...]]:
    iterators = [to_async_iterator(source) for source in sources]
    if not iterators:
        return
    while True:
        row = []
        for iterator in iterators:
            item = await anext(iterator, _MISSING)
            if item is _MISSING:
                return
            row.append(item)
        yield tuple(row)


def zip(*sources: Any) -> AsyncStream[Tuple[Any, ...]]:
    """Tuples of one element from each source, stopping at the shortest."""
    for source in sources:
        validate_iterable(source, "source", "zip")
    return AsyncStream(_zip(sources))


def zip_with(func: Callable[..., Any], *sources: Any) -> AsyncStream[Any]:
    validate_callable(func, "func", "zip_with")
    return zip(*sources).map(lambda row: resolve(func(*row)))


async def _chain(sources: Tuple[Any, ...]) -> AsyncIterator[Any]:
    for source in sources:
        async for item in to_async_iterator(source):
            yield item


def chain(*sources: Any) -> AsyncStream[Any]:
    for source in sources:
        validate_iterable(source, "source", "chain")
    return AsyncStream(_chain(sources))


async def _interleave(sources: Tuple[Any, ...]) -> AsyncIterator[Any]:
    active = [to_async_iterator(source) for source in sources]
    while active:
        still_active = []
        for iterator in active:
            item = await anext(iterator, _MISSING)
            if item is _MISSING:
                continue
            yield item
            still_active.append(iterator)
        active = still_active


def interleave(*sources: Any) -> AsyncStream[Any]:
    """Round-robin across sources, skipping those that are exhausted."""
    for source in sources:
        validate_iterable(source, "source", "interleave")
    return AsyncStream(_interleave(sources))


async def _before(a: list, b: list, comparator: Optional[Callable]) -> bool:
    """Heap order of two ``[key, source_index, item, iterator]`` entries."""
    if comparator is not None:
        order = await resolve(comparator(a[2], b[2]))
        if order != 0:
            return order < 0
        return a[1] < b[1]
    return (a[0], a[1]) < (b[0], b[1])


async def _sift_up(heap: list, pos: int, comparator: Optional[Callable]) -> None:
    while pos > 0:
        parent = (pos - 1) // 2
        if not await _before(heap[pos], heap[parent], comparator):
            return
        heap[pos], heap[parent] = heap[parent], heap[pos]
        pos = parent


async def _sift_down(heap: list, pos: int, comparator: Optional[Callable]) -> None:
    size = len(heap)
    while True:
        smallest = pos
        for child in (2 * pos + 1, 2 * pos + 2):
            if child < size and await _before(heap[child], heap[smallest], comparator):
                smallest = child
        if smallest == pos:
            return
        heap[pos], heap[smallest] = heap[smallest], heap[pos]
        pos = smallest


async def _kway_merge(sources: Tuple[Any, ...],
                      comparator: Optional[Callable],
                      key: Optional[Callable]) -> AsyncIterator[T]:
    """
    Merge sorted async sources with a binary heap of their heads.

    ``heapq`` cannot await, so the heap is sifted by hand; keys and
    comparator results are awaited when the callback returns an awaitable.
    The source index breaks ties, so equal items come out in source order.
    """
    async def entry(item, index, iterator):
        item_key = await resolve(key(item)) if key is not None else item
        return [item_key, index, item, iterator]

    heap = []
    for index, source in enumerate(sources):
        iterator = to_async_iterator(source)
        item = await anext(iterator, _MISSING)
        if item is not _MISSING:
            heap.append(await entry(item, index, iterator))
            await _sift_up(heap, len(heap) - 1, comparator)

    while heap:
        _, index, item, iterator = heap[0]
        yield item

        next_item = await anext(iterator, _MISSING)
        if next_item is _MISSING:
            last = heap.pop()
            if not heap:
                return
            heap[0] = last
        else:
            heap[0] = await entry(next_item, index, iterator)
        await _sift_down(heap, 0, comparator)


def merge(*sources: Any,
          comparator: Optional[Callable[[T, T], Any]] = None,
          key: Optional[Callable[[T], Any]] = None) -> AsyncStream[T]:
    """
    k-way merge of individually sorted sources into one sorted stream.

    A callable given as the first positional argument is taken as the
    comparator, as in the synchronous ``merge``. Both ``comparator`` and
    ``key`` may be coroutine functions.
    """
    if sources and callable(sources[0]) and not (
            hasattr(sources[0], '__iter__') or hasattr(sources[0], '__aiter__')):
        if comparator is not None:
            raise ValidationError("Comparator given twice", "merge")
        comparator, sources = sources[0], sources[1:]
    if comparator is not None and key is not None:
        raise ValidationError("Pass either comparator or key, not both", "merge")
    if comparator is not None:
        validate_callable(comparator, "comparator", "merge")
    if key is not None:
        validate_callable(key, "key", "merge")
    for source in sources:
        validate_iterable(source, "source", "merge")
    return AsyncStream(_kway_merge(sources, comparator, key))
