"""
Async stages.

Each stage is an async generator over an upstream async iterator. The only
suspension point is the pull from upstream (plus awaiting a callback that
returns an awaitable); the stage logic itself runs synchronously and reuses
the state objects of the synchronous engine.
"""

import inspect
import math
from typing import Any, AsyncIterator, Callable, Iterable, List, Optional, Tuple, TypeVar

from iterflow.algorithms.materialize import Materializer
from iterflow.algorithms.running import Ewma, RunningCovariance, RunningStats
from iterflow.errors import ValidationError
from iterflow.streams.operators import is_expandable
from iterflow.streams.windows import CircularBuffer, MonotonicDeque

T = TypeVar('T')
U = TypeVar('U')

_MISSING = object()


async def resolve(value: Any) -> Any:
    """Await ``value`` if it is awaitable, otherwise return it unchanged."""
    if inspect.isawaitable(value):
        return await value
    return value


async def _from_sync(iterable: Iterable[T]) -> AsyncIterator[T]:
    for item in iterable:
        yield item


def to_async_iterator(source: Any) -> AsyncIterator[Any]:
    """Normalize an async iterable, async iterator or sync iterable."""
    if hasattr(source, '__aiter__'):
        return aiter(source)
    if hasattr(source, '__anext__'):
        return source
    if hasattr(source, '__iter__'):
        return _from_sync(source)
    raise ValidationError(
        "Source must be an iterable or async iterable",
        "async_stream",
        {"type": type(source).__name__},
    )


async def map_stage(iterator: AsyncIterator[T], func: Callable) -> AsyncIterator[U]:
    async for item in iterator:
        yield await resolve(func(item))


async def filter_stage(iterator: AsyncIterator[T], predicate: Callable) -> AsyncIterator[T]:
    async for item in iterator:
        if await resolve(predicate(item)):
            yield item


async def flat_map_stage(iterator: AsyncIterator[T], func: Callable) -> AsyncIterator[U]:
    async for item in iterator:
        result = await resolve(func(item))
        if hasattr(result, '__aiter__'):
            async for inner in result:
                yield inner
        elif is_expandable(result):
            for inner in result:
                yield inner
        else:
            yield result


async def take_stage(iterator: AsyncIterator[T], n: int) -> AsyncIterator[T]:
    remaining = n
    while remaining > 0:
        item = await anext(iterator, _MISSING)
        if item is _MISSING:
            return
        remaining -= 1
        yield item


async def drop_stage(iterator: AsyncIterator[T], n: int) -> AsyncIterator[T]:
    dropped = 0
    async for item in iterator:
        if dropped < n:
            dropped += 1
            continue
        yield item


async def take_while_stage(iterator: AsyncIterator[T], predicate: Callable) -> AsyncIterator[T]:
    async for item in iterator:
        if not await resolve(predicate(item)):
            break
        yield item


async def drop_while_stage(iterator: AsyncIterator[T], predicate: Callable) -> AsyncIterator[T]:
    dropping = True
    async for item in iterator:
        if dropping and await resolve(predicate(item)):
            continue
        dropping = False
        yield item


async def distinct_stage(iterator: AsyncIterator[T], key_func: Optional[Callable] = None) -> AsyncIterator[T]:
    seen = set()
    async for item in iterator:
        key = item if key_func is None else await resolve(key_func(item))
        if key not in seen:
            seen.add(key)
            yield item


async def tap_stage(iterator: AsyncIterator[T], func: Callable) -> AsyncIterator[T]:
    async for item in iterator:
        await resolve(func(item))
        yield item


async def enumerate_stage(iterator: AsyncIterator[T], start: int = 0) -> AsyncIterator[Tuple[int, T]]:
    index = start
    async for item in iterator:
        yield index, item
        index += 1


async def scan_stage(iterator: AsyncIterator[T], func: Callable, initial: U) -> AsyncIterator[U]:
    accumulator = initial
    yield accumulator
    async for item in iterator:
        accumulator = await resolve(func(accumulator, item))
        yield accumulator


async def concat_stage(iterator: AsyncIterator[T], others: Tuple[Any, ...]) -> AsyncIterator[T]:
    async for item in iterator:
        yield item
    for other in others:
        async for item in to_async_iterator(other):
            yield item


async def intersperse_stage(iterator: AsyncIterator[T], separator: T) -> AsyncIterator[T]:
    first = True
    async for item in iterator:
        if not first:
            yield separator
        yield item
        first = False


async def collect(iterator: AsyncIterator[T], operation: str) -> List[T]:
    """Buffer the whole upstream, sampling memory pressure as it grows."""
    buffer = Materializer(operation)
    async for item in iterator:
        buffer.append(item)
    return buffer.finish()


async def _merge_sorted(items: List[T], comparator: Callable, reverse: bool) -> List[T]:
    """Stable merge sort that awaits each comparison."""
    if len(items) <= 1:
        return items
    middle = len(items) // 2
    left = await _merge_sorted(items[:middle], comparator, reverse)
    right = await _merge_sorted(items[middle:], comparator, reverse)

    merged = []
    i = j = 0
    while i < len(left) and j < len(right):
        order = await resolve(comparator(right[j], left[i]))
        # Right wins only when strictly ahead, so equal items keep input order
        if (order > 0) if reverse else (order < 0):
            merged.append(right[j])
            j += 1
        else:
            merged.append(left[i])
            i += 1
    merged.extend(left[i:])
    merged.extend(right[j:])
    return merged


async def sort_stage(iterator: AsyncIterator[T],
                     key: Optional[Callable] = None,
                     reverse: bool = False,
                     comparator: Optional[Callable] = None) -> AsyncIterator[T]:
    items = await collect(iterator, "sort_by")
    if comparator is not None:
        items = await _merge_sorted(items, comparator, reverse)
    elif key is not None:
        keys = [await resolve(key(item)) for item in items]
        order = sorted(range(len(items)), key=keys.__getitem__, reverse=reverse)
        items = [items[index] for index in order]
    else:
        items.sort(reverse=reverse)
    for item in items:
        yield item


async def reverse_stage(iterator: AsyncIterator[T]) -> AsyncIterator[T]:
    items = await collect(iterator, "reverse")
    for item in reversed(items):
        yield item


async def window_stage(iterator: AsyncIterator[T], size: int) -> AsyncIterator[List[T]]:
    buffer = CircularBuffer(size)
    async for item in iterator:
        buffer.push(item)
        if buffer.is_full:
            yield buffer.snapshot()


async def chunk_stage(iterator: AsyncIterator[T], size: int) -> AsyncIterator[List[T]]:
    chunk = []
    async for item in iterator:
        chunk.append(item)
        if len(chunk) >= size:
            yield chunk
            chunk = []
    if chunk:
        yield chunk


async def pairwise_stage(iterator: AsyncIterator[T]) -> AsyncIterator[Tuple[T, T]]:
    previous = _MISSING
    async for item in iterator:
        if previous is not _MISSING:
            yield previous, item
        previous = item


async def extremum_stage(iterator: AsyncIterator[T], size: int, maximum: bool) -> AsyncIterator[T]:
    tracker = MonotonicDeque(size, maximum)
    async for item in iterator:
        tracker.push(item)
        if tracker.ready:
            yield tracker.extremum


async def ewma_stage(iterator: AsyncIterator[float], alpha: float) -> AsyncIterator[float]:
    state = Ewma(alpha)
    async for value in iterator:
        yield state.update(value)


async def mean_stage(iterator: AsyncIterator[float]) -> AsyncIterator[float]:
    stats = RunningStats()
    async for value in iterator:
        stats.update(value)
        yield stats.mean


async def variance_stage(iterator: AsyncIterator[float]) -> AsyncIterator[float]:
    stats = RunningStats()
    async for value in iterator:
        stats.update(value)
        yield stats.variance


async def covariance_stage(iterator: AsyncIterator[Tuple[float, float]]) -> AsyncIterator[float]:
    acc = RunningCovariance()
    async for x, y in iterator:
        acc.update(x, y)
        yield acc.covariance


async def zscore_stage(iterator: AsyncIterator[float]) -> AsyncIterator[float]:
    stats = RunningStats()
    async for value in iterator:
        yield stats.z_score(value)
        stats.update(value)


async def correlation_stage(iterator: AsyncIterator[Tuple[float, float]]) -> AsyncIterator[float]:
    acc = RunningCovariance()
    async for x, y in iterator:
        acc.update(x, y)
        r = acc.correlation
        yield math.nan if r is None else r
