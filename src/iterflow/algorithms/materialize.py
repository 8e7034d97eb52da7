"""
Buffering helper for operators that cannot run in constant memory.

Sorting, reversing and order statistics need the whole input at once. They
collect it here so that memory pressure is sampled while the buffer grows.
"""

import logging
from typing import Iterable, List, TypeVar

from iterflow.config import config
from iterflow.memory import monitor

logger = logging.getLogger(__name__)

T = TypeVar('T')


class Materializer:
    """Accumulates items and samples memory every ``config.memory_check_interval`` items."""

    def __init__(self, operation: str):
        self.operation = operation
        self.items: List = []
        self._interval = config.memory_check_interval

    def append(self, item) -> None:
        self.items.append(item)
        if self._interval and len(self.items) % self._interval == 0:
            monitor.check(self.operation)

    def finish(self) -> List:
        logger.debug("'%s' buffered %d items", self.operation, len(self.items))
        return self.items


def materialize(iterable: Iterable[T], operation: str) -> List[T]:
    """Pull every item from ``iterable`` into a list."""
    buffer = Materializer(operation)
    for item in iterable:
        buffer.append(item)
    return buffer.finish()
