"""Result type for rules that can fail with a reason.

Rule functions never raise for expected failures. They return ``Ok(value)``
or ``Err(message)`` and the service layer decides how to surface the error.

Example:
    >>> result = calculate_duration(start, end)
    >>> if is_err(result):
    ...     raise ValidationError(result.error)
    >>> seconds = result.value
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar, Union

T = TypeVar("T")
E = TypeVar("E")


@dataclass(frozen=True)
class Ok(Generic[T]):
    """Successful result carrying ``value``."""

    value: T = None


@dataclass(frozen=True)
class Err(Generic[E]):
    """Failed result carrying ``error``."""

    error: E


Result = Union[Ok[T], Err[E]]


def is_ok(result) -> bool:
    return isinstance(result, Ok)


def is_err(result) -> bool:
    return isinstance(result, Err)


def unwrap_or(result, default):
    """Return the Ok value, or ``default`` for an Err."""
    if isinstance(result, Ok):
        return result.value
    return default
