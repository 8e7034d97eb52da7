"""Error types raised by iterflow pipelines and helpers."""

import json
from typing import Any, Dict, Optional


class IterFlowError(Exception):
    """Base class for all iterflow errors."""

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        """Create an error with contextual metadata.

        Args:
            message: Human-readable description of the failure.
            operation: Optional name of the operation that failed.
            context: Optional mapping of extra details (parameter names, values).
        """
        self.operation = operation
        self.context = context or {}
        super().__init__(message)

    def to_detailed_string(self) -> str:
        """Render the message together with operation and context."""
        msg = f"{type(self).__name__}: {self}"

        if self.operation:
            msg += f"\n  Operation: {self.operation}"

        if self.context:
            msg += "\n  Context:"
            for key, value in self.context.items():
                msg += f"\n    {key}: {json.dumps(value, default=repr)}"

        return msg


class ValidationError(IterFlowError, ValueError):
    """Raised when an operation receives an invalid argument."""


class EmptySequenceError(IterFlowError, ValueError):
    """Raised when an operation requires at least one element."""

    def __init__(self, operation: str, message: Optional[str] = None):
        super().__init__(
            message or f"Operation '{operation}' requires a non-empty sequence",
            operation,
        )


class IndexOutOfBoundsError(IterFlowError, IndexError):
    """Raised when an index points past the end of a sequence."""

    def __init__(self, index: int, size: Optional[int] = None, operation: Optional[str] = None):
        size_info = f" (size: {size})" if size is not None else ""
        super().__init__(
            f"Index {index} is out of bounds{size_info}",
            operation,
            {"index": index, "size": size},
        )
        self.index = index
        self.size = size


class TypeConversionError(IterFlowError, TypeError):
    """Raised when a value cannot be coerced to the requested type."""

    def __init__(self, value: Any, expected_type: str, operation: Optional[str] = None):
        super().__init__(
            f"Cannot convert value {value!r} to type {expected_type}",
            operation,
            {"value": value, "expected_type": expected_type},
        )
        self.value = value
        self.expected_type = expected_type
