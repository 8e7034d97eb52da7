"""Function composition for building reusable pipelines out of plain callables."""

from functools import reduce
from typing import Any, Callable

from iterflow.validation import validate_callable


def pipe(*funcs: Callable[[Any], Any]) -> Callable[[Any], Any]:
    """
    Compose functions left to right.

    Example:
        >>> evens_doubled = pipe(
        ...     lambda xs: stream(xs).filter(lambda x: x % 2 == 0),
        ...     lambda s: s.map(lambda x: x * 2),
        ...     lambda s: s.to_list(),
        ... )
        >>> evens_doubled([1, 2, 3, 4])
        [4, 8]
    """
    for func in funcs:
        validate_callable(func, "func", "pipe")

    def piped(value: Any) -> Any:
        return reduce(lambda acc, func: func(acc), funcs, value)

    return piped


def compose(*funcs: Callable[[Any], Any]) -> Callable[[Any], Any]:
    """Compose functions right to left: ``compose(f, g)(x) == f(g(x))``."""
    for func in funcs:
        validate_callable(func, "func", "compose")
    return pipe(*reversed(funcs))
