"""
Argument validation and numeric coercion helpers.

Every check runs eagerly, when an operator is built, so that a malformed
call fails before any element is pulled from the source.
"""

import math
import numbers
from typing import Any, Optional

from iterflow.errors import TypeConversionError, ValidationError


def _is_integer(value: Any) -> bool:
    return isinstance(value, numbers.Integral) and not isinstance(value, bool)


def validate_positive_integer(value: Any, param_name: str, operation: Optional[str] = None) -> None:
    """Require an integer >= 1."""
    if not _is_integer(value):
        raise ValidationError(
            f"{param_name} must be an integer, got {value!r}",
            operation,
            {"param_name": param_name, "value": value},
        )
    if value < 1:
        raise ValidationError(
            f"{param_name} must be at least 1, got {value}",
            operation,
            {"param_name": param_name, "value": value},
        )


def validate_non_negative_integer(value: Any, param_name: str, operation: Optional[str] = None) -> None:
    """Require an integer >= 0."""
    if not _is_integer(value):
        raise ValidationError(
            f"{param_name} must be an integer, got {value!r}",
            operation,
            {"param_name": param_name, "value": value},
        )
    if value < 0:
        raise ValidationError(
            f"{param_name} must be non-negative, got {value}",
            operation,
            {"param_name": param_name, "value": value},
        )


def validate_range(
    value: Any,
    low: float,
    high: float,
    param_name: str,
    operation: Optional[str] = None,
) -> None:
    """Require ``low <= value <= high``."""
    if not isinstance(value, numbers.Real) or isinstance(value, bool) or math.isnan(value):
        raise ValidationError(
            f"{param_name} must be a number, got {value!r}",
            operation,
            {"param_name": param_name, "value": value},
        )
    if value < low or value > high:
        raise ValidationError(
            f"{param_name} must be between {low} and {high}, got {value}",
            operation,
            {"param_name": param_name, "value": value, "min": low, "max": high},
        )


def validate_non_zero(value: Any, param_name: str, operation: Optional[str] = None) -> None:
    if value == 0:
        raise ValidationError(
            f"{param_name} cannot be zero",
            operation,
            {"param_name": param_name, "value": value},
        )


def validate_callable(value: Any, param_name: str, operation: Optional[str] = None) -> None:
    if not callable(value):
        raise ValidationError(
            f"{param_name} must be callable, got {type(value).__name__}",
            operation,
            {"param_name": param_name, "type": type(value).__name__},
        )


def validate_iterable(value: Any, param_name: str, operation: Optional[str] = None) -> None:
    if not (hasattr(value, "__iter__") or hasattr(value, "__aiter__")):
        raise ValidationError(
            f"{param_name} must be iterable",
            operation,
            {"param_name": param_name, "type": type(value).__name__},
        )


def to_number(value: Any, operation: Optional[str] = None) -> float:
    """
    Coerce a value to a real number.

    Real numbers (including numpy scalars) are returned unchanged, numeric
    strings are parsed. Anything else raises TypeConversionError.
    """
    if isinstance(value, numbers.Real):
        return value

    if isinstance(value, str):
        try:
            number = float(value)
        except ValueError:
            raise TypeConversionError(value, "number", operation) from None
        if math.isnan(number):
            raise TypeConversionError(value, "number", operation)
        return number

    raise TypeConversionError(value, "number", operation)


def to_integer(value: Any, operation: Optional[str] = None) -> int:
    """Coerce a value to an integer, rejecting fractional numbers."""
    number = to_number(value, operation)
    if _is_integer(number):
        return int(number)
    if isinstance(number, float) and number.is_integer():
        return int(number)
    raise TypeConversionError(value, "integer", operation)
