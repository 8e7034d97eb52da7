"""
Async streams.

``AsyncStream`` mirrors ``Stream`` over async iterators: the same operators,
the same terminals, the same single-pass semantics. Terminals are coroutines.
Callbacks may be plain functions or return awaitables.
"""

import logging
from typing import (
    Any, AsyncIterable, AsyncIterator, Awaitable, Callable, Dict, Iterable,
    List, Optional, Tuple, TypeVar, Union
)

from iterflow.aio import operators as stages
from iterflow.aio.operators import resolve, to_async_iterator
from iterflow.algorithms import statistics
from iterflow.algorithms.running import Ewma, RunningCovariance, RunningStats
from iterflow.config import config
from iterflow.errors import EmptySequenceError, IndexOutOfBoundsError, ValidationError
from iterflow.validation import (
    validate_callable,
    validate_non_negative_integer,
    validate_positive_integer,
    validate_range,
)

logger = logging.getLogger(__name__)

T = TypeVar('T')
U = TypeVar('U')

_MISSING = object()

Stage = Tuple[str, Callable[[AsyncIterator[Any]], AsyncIterator[Any]]]


class AsyncStream(AsyncIterator[T]):
    """
    A lazy, single-pass async stream with chainable operators.

    Example:
        >>> await async_stream([1, 2, 3]).map(lambda x: x * 2).to_list()
        [2, 4, 6]
    """

    def __init__(self, source: Union[AsyncIterable[T], Iterable[T]]):
        self._source = to_async_iterator(source)
        self._stages: List[Stage] = []
        self._iterator: Optional[AsyncIterator[Any]] = None

    # Pull protocol

    def __aiter__(self) -> AsyncIterator[T]:
        return self

    async def __anext__(self) -> T:
        return await self._pull().__anext__()

    def _pull(self) -> AsyncIterator[Any]:
        if self._iterator is None:
            iterator = self._source
            for _, stage in self._stages:
                iterator = stage(iterator)
            self._iterator = iterator
            if self._stages:
                logger.debug("Async pipeline started: %s",
                             " | ".join(name for name, _ in self._stages))
        return self._iterator

    def _then(self, name: str, stage: Callable[..., AsyncIterator[Any]], *args: Any) -> 'AsyncStream[Any]':
        if self._iterator is not None:
            new_stream = AsyncStream(self)
        else:
            new_stream = AsyncStream(self._source)
            new_stream._stages = self._stages.copy()
        new_stream._stages.append((name, lambda iterator: stage(iterator, *args)))
        return new_stream

    @property
    def stages(self) -> Tuple[str, ...]:
        return tuple(name for name, _ in self._stages)

    def __repr__(self) -> str:
        return f"AsyncStream(stages={list(self.stages)!r})"

    # Transformation operators

    def map(self, func: Callable[[T], Union[U, Awaitable[U]]]) -> 'AsyncStream[U]':
        validate_callable(func, "func", "map")
        return self._then("map", stages.map_stage, func)

    def filter(self, predicate: Callable[[T], Any]) -> 'AsyncStream[T]':
        validate_callable(predicate, "predicate", "filter")
        return self._then("filter", stages.filter_stage, predicate)

    def flat_map(self, func: Callable[[T], Any]) -> 'AsyncStream[U]':
        validate_callable(func, "func", "flat_map")
        return self._then("flat_map", stages.flat_map_stage, func)

    def take(self, n: int) -> 'AsyncStream[T]':
        validate_non_negative_integer(n, "n", "take")
        return self._then("take", stages.take_stage, n)

    def take_while(self, predicate: Callable[[T], Any]) -> 'AsyncStream[T]':
        validate_callable(predicate, "predicate", "take_while")
        return self._then("take_while", stages.take_while_stage, predicate)

    def drop(self, n: int) -> 'AsyncStream[T]':
        validate_non_negative_integer(n, "n", "drop")
        return self._then("drop", stages.drop_stage, n)

    skip = drop

    def drop_while(self, predicate: Callable[[T], Any]) -> 'AsyncStream[T]':
        validate_callable(predicate, "predicate", "drop_while")
        return self._then("drop_while", stages.drop_while_stage, predicate)

    def distinct(self) -> 'AsyncStream[T]':
        return self._then("distinct", stages.distinct_stage)

    def distinct_by(self, key_func: Callable[[T], Any]) -> 'AsyncStream[T]':
        validate_callable(key_func, "key_func", "distinct_by")
        return self._then("distinct_by", stages.distinct_stage, key_func)

    def tap(self, func: Callable[[T], Any]) -> 'AsyncStream[T]':
        validate_callable(func, "func", "tap")
        return self._then("tap", stages.tap_stage, func)

    def enumerate(self, start: int = 0) -> 'AsyncStream[Tuple[int, T]]':
        validate_non_negative_integer(start, "start", "enumerate")
        return self._then("enumerate", stages.enumerate_stage, start)

    def scan(self, func: Callable[[U, T], Any], initial: U) -> 'AsyncStream[U]':
        """Running accumulation; yields ``initial`` first."""
        validate_callable(func, "func", "scan")
        return self._then("scan", stages.scan_stage, func, initial)

    def concat(self, *others: Any) -> 'AsyncStream[T]':
        return self._then("concat", stages.concat_stage, others)

    def intersperse(self, separator: T) -> 'AsyncStream[T]':
        return self._then("intersperse", stages.intersperse_stage, separator)

    def sort_by(self,
                key: Optional[Callable[[T], Any]] = None,
                reverse: bool = False,
                comparator: Optional[Callable[[T, T], int]] = None) -> 'AsyncStream[T]':
        """Stable sort by key function or ``cmp``-style comparator. Buffers the input."""
        if key is not None and comparator is not None:
            raise ValidationError("Pass either key or comparator, not both", "sort_by")
        if key is not None:
            validate_callable(key, "key", "sort_by")
        if comparator is not None:
            validate_callable(comparator, "comparator", "sort_by")
        return self._then("sort_by", stages.sort_stage, key, reverse, comparator)

    def sort(self, reverse: bool = False) -> 'AsyncStream[T]':
        return self._then("sort", stages.sort_stage, None, reverse, None)

    def reverse(self) -> 'AsyncStream[T]':
        return self._then("reverse", stages.reverse_stage)

    # Windowing

    def window(self, size: int) -> 'AsyncStream[List[T]]':
        validate_positive_integer(size, "size", "window")
        return self._then("window", stages.window_stage, size)

    def chunk(self, size: Optional[int] = None) -> 'AsyncStream[List[T]]':
        if size is None:
            size = config.default_chunk_size
        validate_positive_integer(size, "size", "chunk")
        return self._then("chunk", stages.chunk_stage, size)

    def pairwise(self) -> 'AsyncStream[Tuple[T, T]]':
        return self._then("pairwise", stages.pairwise_stage)

    def windowed_min(self, size: int) -> 'AsyncStream[T]':
        validate_positive_integer(size, "size", "windowed_min")
        return self._then("windowed_min", stages.extremum_stage, size, False)

    def windowed_max(self, size: int) -> 'AsyncStream[T]':
        validate_positive_integer(size, "size", "windowed_max")
        return self._then("windowed_max", stages.extremum_stage, size, True)

    # Streaming statistics

    def ewma(self, alpha: float) -> 'AsyncStream[float]':
        Ewma(alpha)
        return self._then("ewma", stages.ewma_stage, alpha)

    def streaming_mean(self) -> 'AsyncStream[float]':
        return self._then("streaming_mean", stages.mean_stage)

    def streaming_variance(self) -> 'AsyncStream[float]':
        return self._then("streaming_variance", stages.variance_stage)

    def streaming_covariance(self) -> 'AsyncStream[float]':
        return self._then("streaming_covariance", stages.covariance_stage)

    def streaming_zscore(self) -> 'AsyncStream[float]':
        return self._then("streaming_zscore", stages.zscore_stage)

    def streaming_correlation(self) -> 'AsyncStream[float]':
        return self._then("streaming_correlation", stages.correlation_stage)

    # Combinators

    def zip(self, *others: Any) -> 'AsyncStream[Tuple[Any, ...]]':
        from iterflow.aio.combinators import zip
        return zip(self, *others)

    def zip_with(self, func: Callable[..., Any], *others: Any) -> 'AsyncStream[Any]':
        from iterflow.aio.combinators import zip_with
        return zip_with(func, self, *others)

    def interleave(self, *others: Any) -> 'AsyncStream[T]':
        from iterflow.aio.combinators import interleave
        return interleave(self, *others)

    def merge(self, *others: Any,
              comparator: Optional[Callable[[T, T], int]] = None,
              key: Optional[Callable[[T], Any]] = None) -> 'AsyncStream[T]':
        from iterflow.aio.combinators import merge
        return merge(self, *others, comparator=comparator, key=key)

    # Terminal operators

    async def to_list(self) -> List[T]:
        return [item async for item in self._pull()]

    collect = to_list

    async def reduce(self, func: Callable[[U, T], Any], initial: U) -> U:
        validate_callable(func, "func", "reduce")
        result = initial
        async for item in self._pull():
            result = await resolve(func(result, item))
        return result

    async def for_each(self, func: Callable[[T], Any]) -> None:
        validate_callable(func, "func", "for_each")
        async for item in self._pull():
            await resolve(func(item))

    async def count(self) -> int:
        total = 0
        async for _ in self._pull():
            total += 1
        return total

    async def sum(self) -> float:
        total = 0
        async for item in self._pull():
            total += item
        return total

    async def product(self) -> float:
        return statistics.product(await self.to_list())

    async def min(self) -> Optional[T]:
        result = None
        async for item in self._pull():
            if result is None or item < result:
                result = item
        return result

    async def max(self) -> Optional[T]:
        result = None
        async for item in self._pull():
            if result is None or item > result:
                result = item
        return result

    async def span(self) -> Optional[float]:
        return statistics.span(await self.to_list())

    async def _running_stats(self) -> RunningStats:
        stats = RunningStats()
        async for value in self._pull():
            stats.update(value)
        return stats

    async def mean(self) -> Optional[float]:
        stats = await self._running_stats()
        return stats.mean if stats.count else None

    async def variance(self) -> Optional[float]:
        return (await self._running_stats()).variance

    async def std_dev(self) -> Optional[float]:
        return (await self._running_stats()).std_dev

    async def median(self) -> Optional[float]:
        return statistics.median(await self.to_list())

    async def percentile(self, p: float) -> Optional[float]:
        validate_range(p, 0, 100, "p", "percentile")
        return statistics.percentile(await self.to_list(), p)

    async def quartiles(self) -> Optional[statistics.Quartiles]:
        return statistics.quartiles(await self.to_list())

    async def mode(self) -> Optional[List[float]]:
        return statistics.mode(await self.to_list())

    async def _running_covariance(self, other: Any) -> Optional[RunningCovariance]:
        acc = RunningCovariance()
        it_y = to_async_iterator(other)
        async for x in self._pull():
            y = await anext(it_y, _MISSING)
            if y is _MISSING:
                return None
            acc.update(x, y)
        if acc.count == 0:
            return None
        if await anext(it_y, _MISSING) is not _MISSING:
            return None
        return acc

    async def covariance(self, other: Any) -> Optional[float]:
        """Population covariance against ``other``; None for empty or unequal lengths."""
        acc = await self._running_covariance(other)
        return None if acc is None else acc.covariance

    async def correlation(self, other: Any) -> Optional[float]:
        acc = await self._running_covariance(other)
        return None if acc is None else acc.correlation

    async def group_by(self, key_func: Callable[[T], Any]) -> Dict[Any, List[T]]:
        validate_callable(key_func, "key_func", "group_by")
        groups: Dict[Any, List[T]] = {}
        async for item in self._pull():
            groups.setdefault(await resolve(key_func(item)), []).append(item)
        return groups

    async def partition(self, predicate: Callable[[T], Any]) -> Tuple[List[T], List[T]]:
        validate_callable(predicate, "predicate", "partition")
        truthy, falsy = [], []
        async for item in self._pull():
            (truthy if await resolve(predicate(item)) else falsy).append(item)
        return truthy, falsy

    async def some(self, predicate: Callable[[T], Any]) -> bool:
        validate_callable(predicate, "predicate", "some")
        async for item in self._pull():
            if await resolve(predicate(item)):
                return True
        return False

    async def every(self, predicate: Callable[[T], Any]) -> bool:
        validate_callable(predicate, "predicate", "every")
        async for item in self._pull():
            if not await resolve(predicate(item)):
                return False
        return True

    async def find(self, predicate: Callable[[T], Any]) -> Optional[T]:
        validate_callable(predicate, "predicate", "find")
        async for item in self._pull():
            if await resolve(predicate(item)):
                return item
        return None

    async def find_index(self, predicate: Callable[[T], Any]) -> int:
        validate_callable(predicate, "predicate", "find_index")
        index = 0
        async for item in self._pull():
            if await resolve(predicate(item)):
                return index
            index += 1
        return -1

    async def first(self, default: Any = _MISSING) -> T:
        """
        Get first element.

        Raises:
            EmptySequenceError: If the stream is empty and no default is given
        """
        item = await anext(self._pull(), _MISSING)
        if item is not _MISSING:
            return item
        if default is _MISSING:
            raise EmptySequenceError("first")
        return default

    async def last(self, default: Any = _MISSING) -> T:
        result = _MISSING
        async for item in self._pull():
            result = item
        if result is not _MISSING:
            return result
        if default is _MISSING:
            raise EmptySequenceError("last")
        return default

    async def nth(self, index: int) -> T:
        validate_non_negative_integer(index, "index", "nth")
        size = 0
        async for item in self._pull():
            if size == index:
                return item
            size += 1
        raise IndexOutOfBoundsError(index, size, "nth")

    async def includes(self, value: Any) -> bool:
        async for item in self._pull():
            if item == value:
                return True
        return False

    async def is_empty(self) -> bool:
        return await anext(self._pull(), _MISSING) is _MISSING


def async_stream(source: Union[AsyncIterable[T], Iterable[T]]) -> AsyncStream[T]:
    """Wrap an async iterable, async iterator or sync iterable in an ``AsyncStream``."""
    return AsyncStream(source)
