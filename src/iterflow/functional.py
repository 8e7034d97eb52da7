"""
Curried, function-style counterparts of the ``Stream`` operators.

Each transform takes its arguments first and returns a function from an
iterable to a lazy iterator, so transforms compose with ``pipe`` and
``compose`` and the result can be handed straight back to ``stream``:

    >>> from iterflow import functional as fn, pipe
    >>> evens_doubled = pipe(fn.filter(lambda x: x % 2 == 0), fn.map(lambda x: x * 2), list)
    >>> evens_doubled([1, 2, 3, 4])
    [4, 8]

Arguments are validated when the transform is built, not when it runs.
Operators that need no arguments (``distinct``, ``pairwise``) take the
iterable directly. Statistics take the iterable directly as well.

Import this module by name; several of its functions share a name with a
builtin.
"""

from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional, Tuple, TypeVar

from iterflow.algorithms.statistics import (
    mean, variance, std_dev, median, percentile, quartiles, mode, span, product,
    covariance, correlation,
)
from iterflow.streams.combinators import zip, zip_with, chain, interleave, merge, range, repeat
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
from iterflow.streams.stream import Stream
from iterflow.streams.windows import (
    WindowOperator, ChunkOperator, PairwiseOperator, WindowedExtremumOperator
)
from iterflow.validation import validate_callable, validate_non_negative_integer

T = TypeVar('T')
U = TypeVar('U')
K = TypeVar('K')

Transform = Callable[[Iterable[Any]], Iterator[Any]]

_MISSING = object()


def _curried(operator: StreamOperator) -> Transform:
    # Operators keep their per-run state inside apply, so one can serve many calls
    def transform(iterable: Iterable[Any]) -> Iterator[Any]:
        return operator.apply(iter(iterable))

    transform.__name__ = operator.name
    transform.__qualname__ = operator.name
    return transform


# Transforms

def map(func: Callable[[T], U]) -> Transform:
    """``map(f)(xs)`` yields ``f(x)`` for each ``x``."""
    return _curried(MapOperator(func))


def filter(predicate: Callable[[T], bool]) -> Transform:
    return _curried(FilterOperator(predicate))


def flat_map(func: Callable[[T], Iterable[U]]) -> Transform:
    return _curried(FlatMapOperator(func))


def take(n: int) -> Transform:
    """First ``n`` elements; the source is never pulled past the n-th."""
    return _curried(TakeOperator(n))


def drop(n: int) -> Transform:
    return _curried(SkipOperator(n))


def take_while(predicate: Callable[[T], bool]) -> Transform:
    return _curried(TakeWhileOperator(predicate))


def drop_while(predicate: Callable[[T], bool]) -> Transform:
    return _curried(DropWhileOperator(predicate))


def distinct(iterable: Iterable[T]) -> Iterator[T]:
    """Drop repeated elements, keeping first-seen order."""
    return DistinctOperator().apply(iter(iterable))


def distinct_by(key_func: Callable[[T], Any]) -> Transform:
    return _curried(DistinctOperator(key_func))


def tap(func: Callable[[T], Any]) -> Transform:
    return _curried(TapOperator(func))


def enumerate(start: int = 0) -> Transform:
    return _curried(EnumerateOperator(start))


def scan(func: Callable[[U, T], U], initial: U) -> Transform:
    """Running accumulation, starting with ``initial`` itself."""
    return _curried(ScanOperator(func, initial))


def concat(*others: Iterable[T]) -> Transform:
    return _curried(ConcatOperator(others))


def intersperse(separator: T) -> Transform:
    return _curried(IntersperseOperator(separator))


def sort(reverse: bool = False) -> Transform:
    return _curried(SortOperator(reverse=reverse))


def sort_by(key: Optional[Callable[[T], Any]] = None,
            reverse: bool = False,
            comparator: Optional[Callable[[T, T], int]] = None) -> Transform:
    """Stable sort by key or ``cmp``-style comparator. Buffers the input."""
    return _curried(SortOperator(key, reverse, comparator))


def reverse() -> Transform:
    return _curried(ReverseOperator())


# Windowing

def window(size: int) -> Transform:
    """Sliding windows of ``size`` elements, advancing by one."""
    return _curried(WindowOperator(size))


def chunk(size: Optional[int] = None) -> Transform:
    return _curried(ChunkOperator(size))


def pairwise(iterable: Iterable[T]) -> Iterator[Tuple[T, T]]:
    return PairwiseOperator().apply(iter(iterable))


def windowed_min(size: int) -> Transform:
    return _curried(WindowedExtremumOperator(size, maximum=False))


def windowed_max(size: int) -> Transform:
    return _curried(WindowedExtremumOperator(size, maximum=True))


# Streaming statistics

def ewma(alpha: float) -> Transform:
    return _curried(EwmaOperator(alpha))


def streaming_mean(iterable: Iterable[float]) -> Iterator[float]:
    return StreamingMeanOperator().apply(iter(iterable))


def streaming_variance(iterable: Iterable[float]) -> Iterator[float]:
    return StreamingVarianceOperator().apply(iter(iterable))


def streaming_zscore(iterable: Iterable[float]) -> Iterator[float]:
    return ZScoreOperator().apply(iter(iterable))


def streaming_covariance(pairs: Iterable[Tuple[float, float]]) -> Iterator[float]:
    return StreamingCovarianceOperator().apply(iter(pairs))


def streaming_correlation(pairs: Iterable[Tuple[float, float]]) -> Iterator[float]:
    return StreamingCorrelationOperator().apply(iter(pairs))


# Terminals

def to_list(iterable: Iterable[T]) -> List[T]:
    return Stream(iterable).to_list()


def count(iterable: Iterable[Any]) -> int:
    return Stream(iterable).count()


def sum(iterable: Iterable[float]) -> float:
    return Stream(iterable).sum()


def min(iterable: Iterable[T]) -> Optional[T]:
    """Smallest element, or None when empty."""
    return Stream(iterable).min()


def max(iterable: Iterable[T]) -> Optional[T]:
    return Stream(iterable).max()


def reduce(func: Callable[[U, T], U], initial: U) -> Callable[[Iterable[T]], U]:
    validate_callable(func, "func", "reduce")
    return lambda iterable: Stream(iterable).reduce(func, initial)


def find(predicate: Callable[[T], bool]) -> Callable[[Iterable[T]], Optional[T]]:
    validate_callable(predicate, "predicate", "find")
    return lambda iterable: Stream(iterable).find(predicate)


def find_index(predicate: Callable[[T], bool]) -> Callable[[Iterable[T]], int]:
    validate_callable(predicate, "predicate", "find_index")
    return lambda iterable: Stream(iterable).find_index(predicate)


def some(predicate: Callable[[T], bool]) -> Callable[[Iterable[T]], bool]:
    validate_callable(predicate, "predicate", "some")
    return lambda iterable: Stream(iterable).some(predicate)


def every(predicate: Callable[[T], bool]) -> Callable[[Iterable[T]], bool]:
    validate_callable(predicate, "predicate", "every")
    return lambda iterable: Stream(iterable).every(predicate)


def partition(predicate: Callable[[T], bool]) -> Callable[[Iterable[T]], Tuple[List[T], List[T]]]:
    """``partition(p)(xs)`` returns ``(matching, non_matching)``."""
    validate_callable(predicate, "predicate", "partition")
    return lambda iterable: Stream(iterable).partition(predicate)


def group_by(key_func: Callable[[T], K]) -> Callable[[Iterable[T]], Dict[K, List[T]]]:
    validate_callable(key_func, "key_func", "group_by")
    return lambda iterable: Stream(iterable).group_by(key_func)


def includes(value: Any) -> Callable[[Iterable[Any]], bool]:
    return lambda iterable: Stream(iterable).includes(value)


def first(iterable: Iterable[T], default: Any = _MISSING) -> T:
    """First element; raises ``EmptySequenceError`` when empty and no default is given."""
    stream = Stream(iterable)
    return stream.first() if default is _MISSING else stream.first(default)


def last(iterable: Iterable[T], default: Any = _MISSING) -> T:
    stream = Stream(iterable)
    return stream.last() if default is _MISSING else stream.last(default)


def nth(index: int) -> Callable[[Iterable[T]], T]:
    validate_non_negative_integer(index, "index", "nth")
    return lambda iterable: Stream(iterable).nth(index)


def is_empty(iterable: Iterable[Any]) -> bool:
    return Stream(iterable).is_empty()


__all__ = [
    "map", "filter", "flat_map", "take", "drop", "take_while", "drop_while",
    "distinct", "distinct_by", "tap", "enumerate", "scan", "concat", "intersperse",
    "sort", "sort_by", "reverse",
    "window", "chunk", "pairwise", "windowed_min", "windowed_max",
    "ewma", "streaming_mean", "streaming_variance", "streaming_zscore",
    "streaming_covariance", "streaming_correlation",
    "to_list", "count", "sum", "min", "max", "reduce", "find", "find_index",
    "some", "every", "partition", "group_by", "includes", "first", "last", "nth",
    "is_empty",
    "mean", "variance", "std_dev", "median", "percentile", "quartiles", "mode",
    "span", "product", "covariance", "correlation",
    "zip", "zip_with", "chain", "interleave", "merge", "range", "repeat",
]
