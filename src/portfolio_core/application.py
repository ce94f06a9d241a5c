"""
Lazy-initialised application container.

:class:`PortfolioContainer` builds the telemetry emitter, adapter registry,
resolver and manifest engine on first access and shares them, so every
consumer looks adapters up in the same registry.

Usage::

    from portfolio_core.application import bootstrap

    container = bootstrap()                 # logging configured from settings
    container.resolver.add("pgvector", PgVectorStore)
    engine = container.engine               # loads PORTFOLIO_MANIFEST_PATH

    # As a context manager for automatic cleanup:
    with PortfolioContainer(settings) as c:
        c.registry.get("vector_store")
"""

from __future__ import annotations

from portfolio_core.core.config import PortfolioSettings, get_settings
from portfolio_core.core.logging import configure_logging, get_logger
from portfolio_core.manifest.engine import ManifestEngine
from portfolio_core.manifest.resolver import AdapterResolver
from portfolio_core.registry import AdapterRegistry
from portfolio_core.telemetry import Telemetry

logger = get_logger(__name__)


class PortfolioContainer:
    """Lazy-initialised dependency container.

    Components are created on first property access and released via
    :meth:`close` (or the context-manager protocol).
    """

    def __init__(
        self,
        settings: PortfolioSettings | None = None,
        *,
        resolver: AdapterResolver | None = None,
    ) -> None:
        self._settings = settings
        self._telemetry: Telemetry | None = None
        self._registry: AdapterRegistry | None = None
        self._resolver = resolver
        self._engine: ManifestEngine | None = None

    # ── Properties (lazy) ────────────────────────────────────────

    @property
    def settings(self) -> PortfolioSettings:
        if self._settings is None:
            self._settings = get_settings()
        return self._settings

    @property
    def telemetry(self) -> Telemetry:
        if self._telemetry is None:
            self._telemetry = Telemetry()
        return self._telemetry

    @property
    def registry(self) -> AdapterRegistry:
        if self._registry is None:
            self._registry = AdapterRegistry(telemetry=self.telemetry)
        return self._registry

    @property
    def resolver(self) -> AdapterResolver:
        if self._resolver is None:
            self._resolver = AdapterResolver(
                allow_imports=self.settings.allow_import_references
            )
        return self._resolver

    @property
    def engine(self) -> ManifestEngine:
        """Manifest engine started from ``settings.manifest_path``.

        Raises:
            EngineInitError: If the configured manifest cannot be loaded
        """
        if self._engine is None:
            self._engine = ManifestEngine.start(
                self.settings.manifest_path,
                registry=self.registry,
                resolver=self.resolver,
                telemetry=self.telemetry,
            ).unwrap()
        return self._engine

    # ── Lifecycle ────────────────────────────────────────────────

    def close(self) -> None:
        """Drop all registered adapters and the engine."""
        if self._registry is not None:
            self._registry.clear()
        self._engine = None
        logger.debug("container_closed")

    def __enter__(self) -> PortfolioContainer:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()


def bootstrap(
    settings: PortfolioSettings | None = None,
    *,
    resolver: AdapterResolver | None = None,
) -> PortfolioContainer:
    """Configure logging from *settings* and return a container."""
    settings = settings or get_settings()
    configure_logging(
        level=settings.log_level,
        json_format=settings.log_format == "json",
        service=settings.service_name,
    )
    logger.info("portfolio_core_bootstrap", manifest_path=settings.manifest_path)
    return PortfolioContainer(settings, resolver=resolver)


__all__ = ["PortfolioContainer", "bootstrap"]
