"""Async mirror of the stream engine."""

from iterflow.aio.stream import AsyncStream, async_stream
from iterflow.aio.operators import to_async_iterator
from iterflow.aio import combinators

__all__ = [
    "AsyncStream",
    "async_stream",
    "to_async_iterator",
    "combinators",
]
