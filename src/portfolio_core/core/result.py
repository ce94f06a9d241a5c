"""
Result type for explicit success/failure handling.

Manifest loads, reloads and registry lookups report expected failures as
values instead of raising: ``Ok(value)`` on success, ``Err(error)`` carrying
a :class:`~portfolio_core.core.errors.PortfolioError` otherwise. Callers can
pattern-match or chain with :meth:`Ok.map` / :meth:`Ok.and_then`.

Manifesto:
    - **Errors as values:** A failed reload is an ordinary outcome, not a crash
    - **Explicit handling:** The return type tells the caller to look
    - **Composable:** Loader steps chain without nested try/except blocks

Examples:
    >>> result = Ok(42)
    >>> result.map(lambda x: x + 1).unwrap()
    43
    >>> Err(ValueError("boom")).unwrap_or(0)
    0

    Pattern matching::

        match engine.reload():
            case Ok():
                logger.info("reloaded")
            case Err(error):
                logger.warning("reload_failed", **error.to_dict())

Tags:
    result-pattern, error-handling, functional-programming, portfolio-core

Doc-Types:
    - API Reference
    - Error Handling Guide
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from portfolio_core.core.errors import PortfolioError

T = TypeVar("T")
U = TypeVar("U")


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    """Successful result containing a value."""

    value: T

    def is_ok(self) -> bool:
        return True

    def is_err(self) -> bool:
        return False

    def unwrap(self) -> T:
        """Get the value."""
        return self.value

    def unwrap_or(self, default: T) -> T:
        """Get value (ignore default since this is Ok)."""
        return self.value

    def unwrap_or_else(self, f: Callable[[Exception], T]) -> T:
        return self.value

    def map(self, f: Callable[[T], U]) -> Result[U]:
        """Transform the value."""
        return Ok(f(self.value))

    def and_then(self, f: Callable[[T], Result[U]]) -> Result[U]:
        """Chain to another Result-returning function."""
        return f(self.value)

    def map_err(self, f: Callable[[Exception], Exception]) -> Result[T]:
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {"ok": True, "value": self.value}

    def __repr__(self) -> str:
        return f"Ok({self.value!r})"


@dataclass(frozen=True, slots=True)
class Err(Generic[T]):
    """
    Failed result containing an error.

    ``map`` and ``and_then`` pass the Err through unchanged so a chain of
    loader steps stops at the first failure.
    """

    error: Exception

    def is_ok(self) -> bool:
        return False

    def is_err(self) -> bool:
        return True

    def unwrap(self) -> T:
        """Raise the error. Use only when you're sure it's Ok."""
        raise self.error

    def unwrap_or(self, default: T) -> T:
        """Get default since this is Err."""
        return default

    def unwrap_or_else(self, f: Callable[[Exception], T]) -> T:
        """Call f with error to get value."""
        return f(self.error)

    def map(self, f: Callable[[T], U]) -> Result[U]:
        """No-op for Err."""
        return Err(self.error)

    def and_then(self, f: Callable[[T], Result[U]]) -> Result[U]:
        """No-op for Err."""
        return Err(self.error)

    def map_err(self, f: Callable[[Exception], Exception]) -> Result[T]:
        """Transform the error."""
        return Err(f(self.error))

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        if isinstance(self.error, PortfolioError):
            return {"ok": False, "error": self.error.to_dict()}
        return {
            "ok": False,
            "error": {
                "error_type": type(self.error).__name__,
                "message": str(self.error),
            },
        }

    def __repr__(self) -> str:
        return f"Err({self.error!r})"


# Type alias for Result
Result = Ok[T] | Err[T]


def collect_results(results: Iterable[Result[T]]) -> Result[list[T]]:
    """
    Collect results into a single Result, failing fast on the first Err.

    Example:
        >>> collect_results([Ok(1), Ok(2)])
        Ok([1, 2])
    """
    values = []
    for result in results:
        match result:
            case Ok(value):
                values.append(value)
            case Err(error):
                return Err(error)
    return Ok(values)


__all__ = ["Ok", "Err", "Result", "collect_results"]
