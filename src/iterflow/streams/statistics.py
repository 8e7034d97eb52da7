"""Streaming statistics stages: one output per input, O(1) work per element."""

import math
from typing import Iterator, Tuple

from iterflow.algorithms.running import Ewma, RunningCovariance, RunningStats
from iterflow.streams.operators import StreamOperator


class StreamingMeanOperator(StreamOperator):
    """Running mean after each element."""

    name = "streaming_mean"

    def apply(self, iterator: Iterator[float]) -> Iterator[float]:
        stats = RunningStats()
        for value in iterator:
            stats.update(value)
            yield stats.mean


class StreamingVarianceOperator(StreamOperator):
    """Running population variance after each element; 0.0 for the first."""

    name = "streaming_variance"

    def apply(self, iterator: Iterator[float]) -> Iterator[float]:
        stats = RunningStats()
        for value in iterator:
            stats.update(value)
            yield stats.variance


class EwmaOperator(StreamOperator):
    """Exponentially weighted moving average, seeded by the first value."""

    name = "ewma"

    def __init__(self, alpha: float):
        # Build one throwaway state so alpha is validated before any pull
        Ewma(alpha)
        self.alpha = alpha

    def apply(self, iterator: Iterator[float]) -> Iterator[float]:
        state = Ewma(self.alpha)
        for value in iterator:
            yield state.update(value)

    def __repr__(self) -> str:
        return f"EwmaOperator(alpha={self.alpha})"


class ZScoreOperator(StreamOperator):
    """
    Score each value against everything seen before it.

    The first two values score NaN; later values use the population mean and
    standard deviation of all earlier values.
    """

    name = "streaming_zscore"

    def apply(self, iterator: Iterator[float]) -> Iterator[float]:
        stats = RunningStats()
        for value in iterator:
            yield stats.z_score(value)
            stats.update(value)


class StreamingCovarianceOperator(StreamOperator):
    """Running population covariance over a stream of ``(x, y)`` pairs."""

    name = "streaming_covariance"

    def apply(self, iterator: Iterator[Tuple[float, float]]) -> Iterator[float]:
        acc = RunningCovariance()
        for x, y in iterator:
            acc.update(x, y)
            yield acc.covariance


class StreamingCorrelationOperator(StreamOperator):
    """
    Running Pearson correlation over a stream of ``(x, y)`` pairs.

    Emits once per pair. The first pair, and any pair while either side has
    zero variance, gives NaN.
    """

    name = "streaming_correlation"

    def apply(self, iterator: Iterator[Tuple[float, float]]) -> Iterator[float]:
        acc = RunningCovariance()
        for x, y in iterator:
            acc.update(x, y)
            r = acc.correlation
            yield math.nan if r is None else r
