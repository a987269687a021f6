"""Invariant helpers shared across mpc_common."""

from typing import Any, NoReturn

from mpc_common.core.errors import AssertionFailureError


def assert_that(condition: Any, message: str = "Assertion failed") -> None:
    """Raise AssertionFailureError when condition is falsy.

    Unlike the assert statement this is never stripped by ``python -O``.

    Args:
        condition: Value to check for truthiness.
        message: Error message used when the check fails.

    Raises:
        AssertionFailureError: If condition is falsy.

    Examples:
        >>> assert_that(1 + 1 == 2)
        >>> assert_that([], "list must not be empty")
        Traceback (most recent call last):
        ...
        mpc_common.core.errors.AssertionFailureError: list must not be empty
    """
    if not condition:
        raise AssertionFailureError(message)


def never(value: Any, message: str | None = None) -> NoReturn:
    """Mark a code path that must be unreachable, such as an exhausted match.

    Args:
        value: The value that should never occur.
        message: Optional custom error message.

    Raises:
        AssertionFailureError: Always.
    """
    raise AssertionFailureError(message if message is not None else f"Unexpected value: {value!r}")
