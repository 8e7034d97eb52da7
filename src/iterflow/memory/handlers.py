"""Memory pressure handlers."""

import time
import logging
from typing import Dict, Optional

from iterflow.config import config
from iterflow.memory.monitor import (
    MemoryPressureHandler,
    MemoryPressureLevel,
    MemoryInfo
)


class LoggingHandler(MemoryPressureHandler):
    """Log memory pressure seen while an operator buffers its input."""

    def __init__(self,
                 logger: Optional[logging.Logger] = None,
                 min_level: Optional[MemoryPressureLevel] = None,
                 quiet_period: float = 60.0):
        self.logger = logger or logging.getLogger(__name__)
        self.min_level = min_level
        self.quiet_period = quiet_period
        self._last_log: Dict[MemoryPressureLevel, float] = {}

    @property
    def threshold(self) -> MemoryPressureLevel:
        if self.min_level is not None:
            return self.min_level
        return MemoryPressureLevel.from_name(config.memory_warning_level)

    def can_handle(self, level: MemoryPressureLevel, info: MemoryInfo) -> bool:
        return level >= self.threshold

    def handle(self, level: MemoryPressureLevel, info: MemoryInfo, operation: str) -> None:
        # Only log if level changed or the quiet period passed
        now = time.time()
        last_time = self._last_log.get(level)
        if last_time is not None and now - last_time < self.quiet_period:
            return

        self._last_log[level] = now

        if level == MemoryPressureLevel.CRITICAL:
            self.logger.critical(f"'{operation}' is buffering under CRITICAL memory pressure: {info}")
        elif level == MemoryPressureLevel.HIGH:
            self.logger.error(f"'{operation}' is buffering under HIGH memory pressure: {info}")
        else:
            self.logger.warning(f"'{operation}' is buffering under memory pressure: {info}")
