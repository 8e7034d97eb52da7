"""Online accumulators and whole-sequence statistics."""

from iterflow.algorithms.running import RunningStats, RunningCovariance, Ewma
from iterflow.algorithms.materialize import materialize
from iterflow.algorithms.statistics import (
    Quartiles,
    mean,
    variance,
    std_dev,
    median,
    percentile,
    quartiles,
    mode,
    span,
    product,
    covariance,
    correlation,
)

__all__ = [
    "RunningStats",
    "RunningCovariance",
    "Ewma",
    "materialize",
    "Quartiles",
    "mean",
    "variance",
    "std_dev",
    "median",
    "percentile",
    "quartiles",
    "mode",
    "span",
    "product",
    "covariance",
    "correlation",
]
