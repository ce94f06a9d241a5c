"""
Core primitives shared by the manifest engine and the adapter registry.

- errors: typed error hierarchy
- result: Ok / Err values for expected failures
- logging: structlog configuration
- config: environment-driven settings
"""

from portfolio_core.core.errors import (
    AdapterNotFoundError,
    CapabilityError,
    EngineInitError,
    ErrorCategory,
    ErrorContext,
    ManifestError,
    ManifestIOError,
    ManifestParseError,
    MissingEnvVarError,
    NoSourceConfiguredError,
    PortfolioError,
    RegistryError,
    SchemaViolationError,
    UnresolvableAdapterError,
)
from portfolio_core.core.result import Err, Ok, Result, collect_results

__all__ = [
    "AdapterNotFoundError",
    "CapabilityError",
    "EngineInitError",
    "Err",
    "ErrorCategory",
    "ErrorContext",
    "ManifestError",
    "ManifestIOError",
    "ManifestParseError",
    "MissingEnvVarError",
    "NoSourceConfiguredError",
    "Ok",
    "PortfolioError",
    "RegistryError",
    "Result",
    "SchemaViolationError",
    "UnresolvableAdapterError",
    "collect_results",
]
