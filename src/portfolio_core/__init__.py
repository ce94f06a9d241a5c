"""
portfolio-core - manifest-driven adapter wiring.

Load a manifest that names which adapter implements each port, validate it,
resolve the adapters and register them in a concurrent registry that the
rest of the process queries. Manifests can be hot-reloaded; a failed reload
keeps the previous wiring.

Usage::

    from portfolio_core import AdapterRegistry, AdapterResolver, ManifestEngine

    registry = AdapterRegistry()
    resolver = AdapterResolver({"pgvector": PgVectorStore})
    engine = ManifestEngine.start(
        "manifest.yaml", registry=registry, resolver=resolver
    ).unwrap()

    handle = registry.require("vector_store").handle
"""

from portfolio_core.core.errors import (
    AdapterNotFoundError,
    EngineInitError,
    ManifestError,
    PortfolioError,
)
from portfolio_core.core.result import Err, Ok, Result
from portfolio_core.manifest import AdapterResolver, ManifestEngine, ValidatedManifest
from portfolio_core.registry import AdapterEntry, AdapterRegistry, HealthStatus
from portfolio_core.telemetry import Telemetry

__version__ = "0.1.0"

__all__ = [
    "AdapterEntry",
    "AdapterNotFoundError",
    "AdapterRegistry",
    "AdapterResolver",
    "EngineInitError",
    "Err",
    "HealthStatus",
    "ManifestEngine",
    "ManifestError",
    "Ok",
    "PortfolioError",
    "Result",
    "Telemetry",
    "ValidatedManifest",
    "__version__",
]
