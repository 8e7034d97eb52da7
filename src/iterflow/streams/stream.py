"""
Lazy, single-pass streams.

A ``Stream`` binds one source iterator to an ordered list of operators.
Nothing is pulled until a terminal operation (or plain iteration) asks for
a value, and each pull travels up the operator chain to the source and back.
The source is enumerated at most once: a stream that has been consumed
stays empty.
"""

import logging
from typing import (
    Any, Callable, Dict, Iterable, Iterator, List, Optional,
    TypeVar, Union, Tuple
)

from iterflow.algorithms import statistics
from iterflow.errors import EmptySequenceError, IndexOutOfBoundsError, ValidationError
from iterflow.streams.operators import (
    StreamOperator, MapOperator, FilterOperator, FlatMapOperator,
    TakeOperator, SkipOperator, TakeWhileOperator, DropWhileOperator,
    DistinctOperator, TapOperator, EnumerateOperator, ScanOperator,
    ConcatOperator, IntersperseOperator, SortOperator, ReverseOperator,
)
from iterflow.streams.statistics import (
    EwmaOperator, ZScoreOperator, StreamingMeanOperator, StreamingVarianceOperator,
    StreamingCovarianceOperator, StreamingCorrelationOperator,
)
from iterflow.streams.windows import (
    WindowOperator, ChunkOperator, PairwiseOperator, WindowedExtremumOperator
)
from iterflow.validation import validate_callable, validate_non_negative_integer

logger = logging.getLogger(__name__)

T = TypeVar('T')
U = TypeVar('U')
K = TypeVar('K')

_MISSING = object()


class Stream(Iterator[T]):
    """
    A lazy, single-pass stream with chainable operators.

    Example:
        >>> Stream([1, 2, 3, 4, 5]).filter(lambda x: x % 2 == 0).map(lambda x: x * 2).to_list()
        [4, 8]
    """

    def __init__(self, source: Union[Iterable[T], Iterator[T], Callable[[], Iterator[T]]]):
        """
        Initialize stream.

        Args:
            source: Data source (iterable, iterator, or callable returning iterator).
                A callable is invoked once, here; generator functions do no work
                until the first pull.
        """
        if hasattr(source, '__iter__'):
            self._source = iter(source)
        elif callable(source):
            self._source = iter(source())
        else:
            raise ValidationError(
                "Source must be iterable or callable",
                "stream",
                {"type": type(source).__name__},
            )

        self._operators: List[StreamOperator] = []
        self._iterator: Optional[Iterator[Any]] = None

    # Pull protocol

    def __iter__(self) -> Iterator[T]:
        return self

    def __next__(self) -> T:
        return next(self._pull())

    def _pull(self) -> Iterator[Any]:
        """The composed iterator, built on first use."""
        if self._iterator is None:
            iterator = self._source
            for op in self._operators:
                iterator = op.apply(iterator)
            self._iterator = iterator
            if self._operators:
                logger.debug("Pipeline started: %s",
                             " | ".join(op.name for op in self._operators))
        return self._iterator

    def _then(self, operator: StreamOperator) -> 'Stream[Any]':
        if self._iterator is not None:
            # Already pulling: continue from the current position
            new_stream = Stream(self)
        else:
            new_stream = Stream(self._source)
            new_stream._operators = self._operators.copy()
        new_stream._operators.append(operator)
        return new_stream

    @property
    def operators(self) -> Tuple[StreamOperator, ...]:
        return tuple(self._operators)

    def __repr__(self) -> str:
        return f"Stream(operators={self._operators!r})"

    # Transformation operators

    def map(self, func: Callable[[T], U]) -> 'Stream[U]':
        """Apply function to each element."""
        return self._then(MapOperator(func))

    def filter(self, predicate: Callable[[T], bool]) -> 'Stream[T]':
        """Keep only elements matching predicate."""
        return self._then(FilterOperator(predicate))

    def flat_map(self, func: Callable[[T], Iterable[U]]) -> 'Stream[U]':
        """Map each element to multiple elements."""
        return self._then(FlatMapOperator(func))

    def take(self, n: int) -> 'Stream[T]':
        """Take first n elements; upstream is never pulled past the n-th."""
        return self._then(TakeOperator(n))

    def take_while(self, predicate: Callable[[T], bool]) -> 'Stream[T]':
        return self._then(TakeWhileOperator(predicate))

    def drop(self, n: int) -> 'Stream[T]':
        """Skip first n elements."""
        return self._then(SkipOperator(n))

    skip = drop

    def drop_while(self, predicate: Callable[[T], bool]) -> 'Stream[T]':
        return self._then(DropWhileOperator(predicate))

    def distinct(self) -> 'Stream[T]':
        """Remove duplicate elements, keeping first-seen order."""
        return self._then(DistinctOperator())

    def distinct_by(self, key_func: Callable[[T], Any]) -> 'Stream[T]':
        """Remove elements whose key was already seen."""
        return self._then(DistinctOperator(key_func))

    def tap(self, func: Callable[[T], Any]) -> 'Stream[T]':
        return self._then(TapOperator(func))

    def enumerate(self, start: int = 0) -> 'Stream[Tuple[int, T]]':
        return self._then(EnumerateOperator(start))

    def scan(self, func: Callable[[U, T], U], initial: U) -> 'Stream[U]':
        """Running accumulation; yields ``initial`` first."""
        return self._then(ScanOperator(func, initial))

    def concat(self, *others: Iterable[T]) -> 'Stream[T]':
        return self._then(ConcatOperator(others))

    def intersperse(self, separator: T) -> 'Stream[T]':
        return self._then(IntersperseOperator(separator))

    def sort_by(self,
                key: Optional[Callable[[T], Any]] = None,
                reverse: bool = False,
                comparator: Optional[Callable[[T, T], int]] = None) -> 'Stream[T]':
        """Stable sort by key function or ``cmp``-style comparator. Buffers the input."""
        return self._then(SortOperator(key, reverse, comparator))

    def sort(self, reverse: bool = False) -> 'Stream[T]':
        """Sort in natural order. Buffers the input."""
        return self._then(SortOperator(reverse=reverse))

    def reverse(self) -> 'Stream[T]':
        """Emit elements back to front. Buffers the input."""
        return self._then(ReverseOperator())

    # Windowing

    def window(self, size: int) -> 'Stream[List[T]]':
        """Sliding windows of ``size`` elements; none until ``size`` are seen."""
        return self._then(WindowOperator(size))

    def chunk(self, size: Optional[int] = None) -> 'Stream[List[T]]':
        """Non-overlapping groups of up to ``size`` elements."""
        return self._then(ChunkOperator(size))

    def pairwise(self) -> 'Stream[Tuple[T, T]]':
        return self._then(PairwiseOperator())

    def windowed_min(self, size: int) -> 'Stream[T]':
        return self._then(WindowedExtremumOperator(size, maximum=False))

    def windowed_max(self, size: int) -> 'Stream[T]':
        return self._then(WindowedExtremumOperator(size, maximum=True))

    # Streaming statistics

    def ewma(self, alpha: float) -> 'Stream[float]':
        """Exponentially weighted moving average, 0 < alpha <= 1."""
        return self._then(EwmaOperator(alpha))

    def streaming_zscore(self) -> 'Stream[float]':
        return self._then(ZScoreOperator())

    def streaming_mean(self) -> 'Stream[float]':
        return self._then(StreamingMeanOperator())

    def streaming_variance(self) -> 'Stream[float]':
        """Running population variance; the first element gives 0.0."""
        return self._then(StreamingVarianceOperator())

    def streaming_covariance(self) -> 'Stream[float]':
        """Running population covariance of a stream of ``(x, y)`` pairs."""
        return self._then(StreamingCovarianceOperator())

    def streaming_correlation(self) -> 'Stream[float]':
        """Running correlation of a stream of ``(x, y)`` pairs."""
        return self._then(StreamingCorrelationOperator())

    # Combinators

    def zip(self, *others: Iterable[Any]) -> 'Stream[Tuple[Any, ...]]':
        from iterflow.streams.combinators import zip
        return zip(self, *others)

    def zip_with(self, func: Callable[..., U], *others: Iterable[Any]) -> 'Stream[U]':
        from iterflow.streams.combinators import zip_with
        return zip_with(func, self, *others)

    def interleave(self, *others: Iterable[T]) -> 'Stream[T]':
        from iterflow.streams.combinators import interleave
        return interleave(self, *others)

    def merge(self, *others: Iterable[T],
              comparator: Optional[Callable[[T, T], int]] = None,
              key: Optional[Callable[[T], Any]] = None) -> 'Stream[T]':
        from iterflow.streams.combinators import merge
        return merge(self, *others, comparator=comparator, key=key)

    # Terminal operators

    def to_list(self) -> List[T]:
        """Collect all elements into a list."""
        return list(self._pull())

    collect = to_list

    def reduce(self, func: Callable[[U, T], U], initial: U) -> U:
        """Reduce stream to single value."""
        validate_callable(func, "func", "reduce")
        result = initial
        for item in self._pull():
            result = func(result, item)
        return result

    def for_each(self, func: Callable[[T], Any]) -> None:
        """Apply function to each element."""
        validate_callable(func, "func", "for_each")
        for item in self._pull():
            func(item)

    def count(self) -> int:
        """Count elements."""
        return sum(1 for _ in self._pull())

    def sum(self) -> float:
        return sum(self._pull())

    def product(self) -> float:
        return statistics.product(self._pull())

    def min(self) -> Optional[T]:
        return min(self._pull(), default=None)

    def max(self) -> Optional[T]:
        return max(self._pull(), default=None)

    def span(self) -> Optional[float]:
        return statistics.span(self._pull())

    def mean(self) -> Optional[float]:
        return statistics.mean(self._pull())

    def variance(self) -> Optional[float]:
        """Population variance via Welford's single pass; None when empty."""
        return statistics.variance(self._pull())

    def std_dev(self) -> Optional[float]:
        return statistics.std_dev(self._pull())

    def median(self) -> Optional[float]:
        return statistics.median(self._pull())

    def percentile(self, p: float) -> Optional[float]:
        return statistics.percentile(self._pull(), p)

    def quartiles(self) -> Optional[statistics.Quartiles]:
        return statistics.quartiles(self._pull())

    def mode(self) -> Optional[List[float]]:
        return statistics.mode(self._pull())

    def covariance(self, other: Iterable[float]) -> Optional[float]:
        """Population covariance against ``other``; None for empty or unequal lengths."""
        return statistics.covariance(self._pull(), other)

    def correlation(self, other: Iterable[float]) -> Optional[float]:
        return statistics.correlation(self._pull(), other)

    def group_by(self, key_func: Callable[[T], K]) -> Dict[K, List[T]]:
        """Group elements by key, keys in first-seen order."""
        validate_callable(key_func, "key_func", "group_by")
        groups: Dict[K, List[T]] = {}
        for item in self._pull():
            groups.setdefault(key_func(item), []).append(item)
        return groups

    def partition(self, predicate: Callable[[T], bool]) -> Tuple[List[T], List[T]]:
        """Split into (matching, non-matching) lists."""
        validate_callable(predicate, "predicate", "partition")
        truthy, falsy = [], []
        for item in self._pull():
            (truthy if predicate(item) else falsy).append(item)
        return truthy, falsy

    def some(self, predicate: Callable[[T], bool]) -> bool:
        validate_callable(predicate, "predicate", "some")
        return any(predicate(item) for item in self._pull())

    def every(self, predicate: Callable[[T], bool]) -> bool:
        validate_callable(predicate, "predicate", "every")
        return all(predicate(item) for item in self._pull())

    def find(self, predicate: Callable[[T], bool]) -> Optional[T]:
        validate_callable(predicate, "predicate", "find")
        for item in self._pull():
            if predicate(item):
                return item
        return None

    def find_index(self, predicate: Callable[[T], bool]) -> int:
        validate_callable(predicate, "predicate", "find_index")
        for index, item in enumerate(self._pull()):
            if predicate(item):
                return index
        return -1

    def first(self, default: Any = _MISSING) -> T:
        """
        Get first element.

        Raises:
            EmptySequenceError: If the stream is empty and no default is given
        """
        for item in self._pull():
            return item
        if default is _MISSING:
            raise EmptySequenceError("first")
        return default

    def last(self, default: Any = _MISSING) -> T:
        result = _MISSING
        for item in self._pull():
            result = item
        if result is not _MISSING:
            return result
        if default is _MISSING:
            raise EmptySequenceError("last")
        return default

    def nth(self, index: int) -> T:
        """
        Element at ``index``.

        Raises:
            ValidationError: If index is negative
            IndexOutOfBoundsError: If the stream ends first
        """
        validate_non_negative_integer(index, "index", "nth")
        size = 0
        for item in self._pull():
            if size == index:
                return item
            size += 1
        raise IndexOutOfBoundsError(index, size, "nth")

    def includes(self, value: Any) -> bool:
        return any(item == value for item in self._pull())

    def is_empty(self) -> bool:
        """Whether the stream has no elements; consumes at most one."""
        for _ in self._pull():
            return False
        return True

    # Factory methods

    @classmethod
    def from_iterable(cls, iterable: Iterable[T]) -> 'Stream[T]':
        """Create stream from iterable."""
        return cls(iterable)

    @classmethod
    def range(cls, start: float, stop: Optional[float] = None, step: float = 1) -> 'Stream[float]':
        """Create stream of numbers."""
        from iterflow.streams.combinators import range
        return range(start, stop, step)

    @classmethod
    def repeat(cls, value: T, times: Optional[int] = None) -> 'Stream[T]':
        from iterflow.streams.combinators import repeat
        return repeat(value, times)


def stream(source: Union[Iterable[T], Callable[[], Iterator[T]]]) -> Stream[T]:
    """Wrap any iterable, iterator or iterator factory in a ``Stream``."""
    return Stream(source)
