"""
Structured error types for portfolio-core.

Every failure the manifest engine, loader, and adapter registry can report is
a subclass of :class:`PortfolioError`. Errors carry a category for routing, a
structured :class:`ErrorContext` (port, manifest path, field, reference,
environment variable) and an optional chained cause.

Manifesto:
    - **Typed Error Hierarchy:** One class per failure kind so callers can
      match on the type instead of parsing messages
    - **Rich Context:** Errors name the field, variable, or reference that
      needs fixing
    - **Error Chaining:** Preserve original exceptions while adding context

Architecture:
    ::

        ┌──────────────────────────────────────────────────────────────┐
        │                       PortfolioError                          │
        │            (category, context, cause)                         │
        ├──────────────────────────────────────────────────────────────┤
        │                                                               │
        │  ManifestError (CONFIG)          RegistryError (REGISTRY)     │
        │     │                               │                         │
        │  ManifestIOError (IO)            AdapterNotFoundError         │
        │  ManifestParseError (PARSE)                                   │
        │  MissingEnvVarError              EngineInitError (CONFIG)     │
        │  SchemaViolationError (VALIDATION)                            │
        │  UnresolvableAdapterError        CapabilityError (VALIDATION) │
        │  NoSourceConfiguredError                                      │
        └──────────────────────────────────────────────────────────────┘

Examples:
    >>> error = MissingEnvVarError("OPENAI_API_KEY")
    >>> error.env_var
    'OPENAI_API_KEY'
    >>> error.to_dict()["category"]
    'CONFIG'

Tags:
    error-handling, exception-hierarchy, error-context, portfolio-core

Doc-Types:
    - API Reference
    - Error Handling Guide
"""

from __future__ import annotations

from dataclasses import dataclass
from dataclasses import field as dataclass_field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Standard error categories for classification and routing."""

    IO = "IO"                     # Unreadable manifest source
    PARSE = "PARSE"               # Malformed manifest text
    VALIDATION = "VALIDATION"     # Schema violations
    CONFIG = "CONFIG"             # Missing env vars, bad wiring
    REGISTRY = "REGISTRY"         # Lookup misses
    INTERNAL = "INTERNAL"         # Bugs, unexpected state
    UNKNOWN = "UNKNOWN"           # Uncategorized errors


@dataclass
class ErrorContext:
    """
    Structured metadata context for errors.

    Only fields that are set show up in :meth:`to_dict`, so the same
    context type works for registry misses and manifest failures alike.

    Attributes:
        port_name: Port the failing operation was about
        manifest_path: Manifest source being loaded
        field: Dotted schema field path (``adapters.llm.adapter``)
        reference: Adapter reference string that failed to resolve
        env_var: Environment variable name
        metadata: Additional key-value pairs
    """

    port_name: str | None = None
    manifest_path: str | None = None
    field: str | None = None
    reference: str | None = None
    env_var: str | None = None

    metadata: dict[str, Any] = dataclass_field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["port_name", "manifest_path", "field", "reference", "env_var"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class PortfolioError(Exception):
    """
    Base exception for all portfolio-core errors.

    Subclasses set ``default_category``; instances can override it. The
    optional ``cause`` is also chained as ``__cause__`` so tracebacks keep
    the original failure.

    Examples:
        >>> error = PortfolioError("Something went wrong")
        >>> error.category
        <ErrorCategory.INTERNAL: 'INTERNAL'>
        >>> error.with_context(port_name="vector_store").context.port_name
        'vector_store'
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> PortfolioError:
        """
        Add context to this error (fluent API).

        Usage:
            return Err(ManifestParseError("bad yaml").with_context(manifest_path=path))
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
        }

        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict

        if self.cause is not None:
            result["cause"] = str(self.cause)

        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# MANIFEST ERRORS
# =============================================================================


class ManifestError(PortfolioError):
    """
    Base class for everything that aborts a manifest load.

    Never retried automatically - the manifest or environment must be fixed.
    """

    default_category = ErrorCategory.CONFIG


class ManifestIOError(ManifestError):
    """Manifest source could not be read."""

    default_category = ErrorCategory.IO

    def __init__(self, path: str, reason: str, *, cause: Exception | None = None):
        self.path = path
        self.reason = reason
        super().__init__(
            f"Cannot read manifest {path}: {reason}",
            context=ErrorContext(manifest_path=path),
            cause=cause,
        )


class ManifestParseError(ManifestError):
    """Manifest text is not a well-formed document."""

    default_category = ErrorCategory.PARSE

    def __init__(self, detail: str, *, cause: Exception | None = None):
        self.detail = detail
        super().__init__(f"Manifest parse error: {detail}", cause=cause)


class MissingEnvVarError(ManifestError):
    """A ``${NAME}`` placeholder references an unset environment variable."""

    def __init__(self, name: str):
        self.env_var = name
        super().__init__(
            f"Missing environment variable: {name}",
            context=ErrorContext(env_var=name),
        )


class SchemaViolationError(ManifestError):
    """A field is missing or has the wrong type."""

    default_category = ErrorCategory.VALIDATION

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(
            f"Schema violation at '{field}': {reason}",
            context=ErrorContext(field=field),
        )


class UnresolvableAdapterError(ManifestError):
    """An adapter reference does not name any known implementation."""

    def __init__(self, reference: str, port_name: str | None = None, reason: str | None = None):
        self.reference = reference
        self.port_name = port_name
        message = f"Cannot resolve adapter '{reference}'"
        if port_name:
            message += f" for port '{port_name}'"
        if reason:
            message += f": {reason}"
        super().__init__(
            message,
            context=ErrorContext(port_name=port_name, reference=reference),
        )


class NoSourceConfiguredError(ManifestError):
    """Reload was requested but the engine never had a manifest source."""

    def __init__(self) -> None:
        super().__init__("No manifest source configured; use load(path) first")


class EngineInitError(PortfolioError):
    """The manifest engine could not start from its initial manifest."""

    default_category = ErrorCategory.CONFIG

    def __init__(self, cause: PortfolioError):
        self.reason = cause
        super().__init__(
            f"Manifest engine failed to start: {cause.message}",
            context=cause.context,
            cause=cause,
        )


# =============================================================================
# REGISTRY ERRORS
# =============================================================================


class RegistryError(PortfolioError):
    """Adapter registry error."""

    default_category = ErrorCategory.REGISTRY


class AdapterNotFoundError(RegistryError):
    """No adapter is registered for the port."""

    def __init__(self, port_name: str):
        self.port_name = port_name
        super().__init__(
            f"No adapter registered for port: {port_name}",
            context=ErrorContext(port_name=port_name),
        )


class CapabilityError(PortfolioError):
    """Backend capability metadata is incomplete."""

    default_category = ErrorCategory.VALIDATION

    def __init__(self, field: str, message: str | None = None):
        self.field = field
        super().__init__(
            message or f"Missing capability field: {field}",
            context=ErrorContext(field=field),
        )


__all__ = [
    "AdapterNotFoundError",
    "CapabilityError",
    "EngineInitError",
    "ErrorCategory",
    "ErrorContext",
    "ManifestError",
    "ManifestIOError",
    "ManifestParseError",
    "MissingEnvVarError",
    "NoSourceConfiguredError",
    "PortfolioError",
    "RegistryError",
    "SchemaViolationError",
    "UnresolvableAdapterError",
]
