"""
iterflow: lazy single-pass streams with windowing and streaming statistics.

Pipelines pull one element at a time from their source, so infinite and very
large inputs run in bounded memory. Windowed extrema, moving averages and
running moments are computed online; only the order statistics and sorting
buffer their input, and those check memory pressure while they do.
"""

from iterflow.config import IterFlowConfig, config
from iterflow.errors import (
    IterFlowError,
    ValidationError,
    EmptySequenceError,
    IndexOutOfBoundsError,
    TypeConversionError,
)
from iterflow.streams import Stream, stream
from iterflow.streams.combinators import zip, zip_with, chain, interleave, merge, range, repeat
from iterflow.algorithms import (
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
from iterflow.aio import AsyncStream, async_stream
from iterflow.composition import pipe, compose
from iterflow import functional
from iterflow.memory import MemoryMonitor, MemoryPressureLevel

__version__ = "0.1.0"

__all__ = [
    "IterFlowConfig",
    "config",
    "IterFlowError",
    "ValidationError",
    "EmptySequenceError",
    "IndexOutOfBoundsError",
    "TypeConversionError",
    "Stream",
    "stream",
    "zip",
    "zip_with",
    "chain",
    "interleave",
    "merge",
    "range",
    "repeat",
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
    "AsyncStream",
    "async_stream",
    "pipe",
    "compose",
    "functional",
    "MemoryMonitor",
    "MemoryPressureLevel",
]
