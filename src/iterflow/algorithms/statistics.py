"""
Whole-sequence statistics over any iterable.

Moments (mean, variance, covariance) are folded in a single pass with the
online accumulators from ``iterflow.algorithms.running``. Order statistics
(median, percentile, quartiles, mode) need a materialized, sorted copy.

All functions return None for an empty input rather than raising; an
invalid parameter raises ValidationError before anything is pulled.
"""

from collections import Counter
from typing import Iterable, List, NamedTuple, Optional

import numpy as np

from iterflow.algorithms.materialize import Materializer
from iterflow.algorithms.running import RunningCovariance, RunningStats
from iterflow.validation import to_number, validate_range


class Quartiles(NamedTuple):
    """First, second (median) and third quartile."""
    q1: float
    q2: float
    q3: float


def running_stats(iterable: Iterable[float]) -> RunningStats:
    """Fold every value into a fresh RunningStats."""
    stats = RunningStats()
    for value in iterable:
        stats.update(value)
    return stats


def mean(iterable: Iterable[float]) -> Optional[float]:
    stats = running_stats(iterable)
    return stats.mean if stats.count else None


def variance(iterable: Iterable[float]) -> Optional[float]:
    """Population variance (divides by n)."""
    return running_stats(iterable).variance


def std_dev(iterable: Iterable[float]) -> Optional[float]:
    """Population standard deviation."""
    return running_stats(iterable).std_dev


def span(iterable: Iterable[float]) -> Optional[float]:
    """Difference between the largest and smallest value."""
    minimum = maximum = None
    for value in iterable:
        if minimum is None or value < minimum:
            minimum = value
        if maximum is None or value > maximum:
            maximum = value
    if minimum is None:
        return None
    return maximum - minimum


def product(iterable: Iterable[float]) -> float:
    result = 1
    for value in iterable:
        result *= value
    return result


def sorted_values(iterable: Iterable, operation: str) -> np.ndarray:
    """Materialize ``iterable`` as a sorted float array, coercing each value."""
    buffer = Materializer(operation)
    for value in iterable:
        buffer.append(to_number(value, operation))
    return np.sort(np.asarray(buffer.finish(), dtype=float))


def percentile(iterable: Iterable[float], p: float) -> Optional[float]:
    """
    Percentile with linear interpolation between adjacent order statistics.

    Args:
        iterable: Numeric values
        p: Percentile in [0, 100]

    Returns:
        The interpolated value, or None for an empty input

    Raises:
        ValidationError: If p is outside [0, 100]
    """
    validate_range(p, 0, 100, "p", "percentile")
    values = sorted_values(iterable, "percentile")
    if values.size == 0:
        return None
    # linear interpolation at rank p/100 * (n - 1)
    return float(np.percentile(values, p, method="linear"))


def median(iterable: Iterable[float]) -> Optional[float]:
    values = sorted_values(iterable, "median")
    if values.size == 0:
        return None
    return float(np.median(values))


def quartiles(iterable: Iterable[float]) -> Optional[Quartiles]:
    values = sorted_values(iterable, "quartiles")
    if values.size == 0:
        return None
    q1, q2, q3 = np.percentile(values, [25, 50, 75], method="linear")
    return Quartiles(float(q1), float(q2), float(q3))


def mode(iterable: Iterable[float]) -> Optional[List[float]]:
    """All values tied for the highest frequency, in ascending order."""
    buffer = Materializer("mode")
    for value in iterable:
        buffer.append(to_number(value, "mode"))
    frequency = Counter(buffer.finish())
    if not frequency:
        return None
    highest = max(frequency.values())
    return sorted(value for value, count in frequency.items() if count == highest)


def running_covariance(xs: Iterable[float], ys: Iterable[float]) -> Optional[RunningCovariance]:
    """
    Fold paired values in lockstep.

    Returns None when the inputs are empty or have different lengths.
    """
    acc = RunningCovariance()
    it_y = iter(ys)
    for x in xs:
        try:
            y = next(it_y)
        except StopIteration:
            return None
        acc.update(x, y)
    if acc.count == 0:
        return None
    for _ in it_y:
        return None
    return acc


def covariance(xs: Iterable[float], ys: Iterable[float]) -> Optional[float]:
    """Population covariance of two equal-length sequences."""
    acc = running_covariance(xs, ys)
    return None if acc is None else acc.covariance


def correlation(xs: Iterable[float], ys: Iterable[float]) -> Optional[float]:
    """
    Pearson correlation of two equal-length sequences.

    Returns None for empty or mismatched inputs and when either side has
    zero variance.
    """
    acc = running_covariance(xs, ys)
    return None if acc is None else acc.correlation
