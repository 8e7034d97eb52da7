"""Lazy single-pass streams, their operators and combinators."""

from iterflow.streams.stream import Stream, stream
from iterflow.streams.operators import (
    StreamOperator,
    MapOperator,
    FilterOperator,
    FlatMapOperator,
    TakeOperator,
    SkipOperator,
)
from iterflow.streams.windows import (
    CircularBuffer,
    MonotonicDeque,
    WindowOperator,
    ChunkOperator,
    PairwiseOperator,
    WindowedExtremumOperator,
)
from iterflow.streams.statistics import (
    EwmaOperator,
    ZScoreOperator,
    StreamingMeanOperator,
    StreamingVarianceOperator,
    StreamingCovarianceOperator,
    StreamingCorrelationOperator,
)
from iterflow.streams.combinators import (
    zip,
    zip_with,
    chain,
    interleave,
    merge,
    range,
    repeat,
)

__all__ = [
    "Stream",
    "stream",
    "StreamOperator",
    "MapOperator",
    "FilterOperator",
    "FlatMapOperator",
    "TakeOperator",
    "SkipOperator",
    "CircularBuffer",
    "MonotonicDeque",
    "WindowOperator",
    "ChunkOperator",
    "PairwiseOperator",
    "WindowedExtremumOperator",
    "EwmaOperator",
    "ZScoreOperator",
    "StreamingMeanOperator",
    "StreamingVarianceOperator",
    "StreamingCovarianceOperator",
    "StreamingCorrelationOperator",
    "zip",
    "zip_with",
    "chain",
    "interleave",
    "merge",
    "range",
    "repeat",
]
