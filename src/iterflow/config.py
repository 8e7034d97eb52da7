"""
Configuration management for iterflow pipelines.
"""

from dataclasses import dataclass, field
from typing import Optional

import psutil


@dataclass
class IterFlowConfig:
    """Global configuration for iterflow operations."""

    # Memory awareness for operators that must buffer the whole input
    memory_limit: int = field(default_factory=lambda: int(psutil.virtual_memory().total * 0.8))
    memory_check_interval: int = 100_000  # buffered items between checks
    memory_warning_level: str = "HIGH"  # MemoryPressureLevel name

    # Windowing
    default_chunk_size: int = 1000

    # Statistics
    clamp_correlation: bool = True  # clamp rounding drift to [-1, 1]

    _instance: Optional['IterFlowConfig'] = None

    def __post_init__(self):
        self.memory_warning_level = self.memory_warning_level.upper()

    @classmethod
    def get_instance(cls) -> 'IterFlowConfig':
        """Get singleton instance."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def set_defaults(cls, **kwargs) -> None:
        """Set default configuration values, ignoring unknown keys."""
        instance = cls.get_instance()
        for key, value in kwargs.items():
            if key == "memory_warning_level" and isinstance(value, str):
                value = value.upper()
            if hasattr(instance, key):
                setattr(instance, key, value)

    def format_bytes(self, bytes: int) -> str:
        """Format bytes as human-readable string."""
        for unit in ['B', 'KB', 'MB', 'GB', 'TB']:
            if bytes < 1024.0:
                return f"{bytes:.2f} {unit}"
            bytes /= 1024.0
        return f"{bytes:.2f} PB"


# Global configuration instance
config = IterFlowConfig.get_instance()
