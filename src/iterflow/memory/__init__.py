"""Memory pressure awareness for buffering operators."""

from iterflow.memory.monitor import (
    MemoryMonitor,
    MemoryPressureLevel,
    MemoryInfo,
    MemoryPressureHandler,
    classify,
)
from iterflow.memory.handlers import LoggingHandler

# Shared monitor used by materializing operators
monitor = MemoryMonitor()
monitor.add_handler(LoggingHandler())

__all__ = [
    "MemoryMonitor",
    "MemoryPressureLevel",
    "MemoryInfo",
    "MemoryPressureHandler",
    "LoggingHandler",
    "classify",
    "monitor",
]
