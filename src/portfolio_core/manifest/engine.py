"""
Manifest engine - load, wire and hot-reload adapters.

The engine owns the active :class:`ValidatedManifest` and is the single
writer that populates the :class:`AdapterRegistry` from it.

Manifesto:
    - **All or nothing:** every enabled declaration is resolved before any
      registry write; one bad reference leaves engine and registry untouched
    - **One load at a time:** ``load`` and ``reload`` serialize on a lock
    - **Readers never wait:** ``get_manifest`` and ``get_adapter`` read an
      immutable snapshot that is swapped by reference after a commit
    - **Failures are values:** a failed reload returns ``Err`` and the
      previous manifest stays active

Lifecycle::

    UNLOADED --load ok--> LOADED --reload/load ok--> LOADED
        |                    |
        +--load err--> UNLOADED   +--reload/load err--> LOADED (previous)

Usage::

    registry = AdapterRegistry()
    resolver = AdapterResolver({"pgvector": PgVectorStore})

    engine = ManifestEngine.start(
        "config/manifest.yaml", registry=registry, resolver=resolver
    ).unwrap()

    engine.get_adapter("vector_store")   # (PgVectorStore, {...})
    engine.reload()                      # Ok(None) or Err(ManifestError)

Tags:
    portfolio-core, manifest, engine, hot-reload, wiring, adapters

Doc-Types:
    api-reference
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

from portfolio_core.core.errors import EngineInitError, NoSourceConfiguredError, PortfolioError
from portfolio_core.core.logging import get_logger
from portfolio_core.core.result import Err, Ok, Result, collect_results
from portfolio_core.manifest import loader
from portfolio_core.manifest.resolver import AdapterResolver
from portfolio_core.manifest.schema import AdapterDeclaration, ValidatedManifest
from portfolio_core.registry import AdapterRegistry
from portfolio_core.telemetry import (
    MANIFEST_ERROR,
    MANIFEST_LOADED,
    MANIFEST_RELOAD,
    Telemetry,
)

logger = get_logger(__name__)

# (port_name, handle, config, metadata)
Wiring = tuple[str, Any, dict[str, Any], dict[str, Any]]


class EngineState(str, Enum):
    UNLOADED = "unloaded"
    LOADED = "loaded"


@dataclass(frozen=True)
class _Snapshot:
    manifest: ValidatedManifest
    source: Path
    wiring: dict[str, tuple[Any, dict[str, Any]]] = field(default_factory=dict)


class ManifestEngine:
    """Coordinator for manifest loading and adapter wiring."""

    def __init__(
        self,
        *,
        registry: AdapterRegistry,
        resolver: AdapterResolver,
        telemetry: Telemetry | None = None,
    ) -> None:
        self._registry = registry
        self._resolver = resolver
        self._telemetry = telemetry or Telemetry()
        self._load_lock = threading.Lock()
        self._snapshot: _Snapshot | None = None
        self._source: Path | None = None

    @classmethod
    def start(
        cls,
        manifest_path: Path | str | None = None,
        *,
        registry: AdapterRegistry,
        resolver: AdapterResolver,
        telemetry: Telemetry | None = None,
    ) -> Result[ManifestEngine]:
        """Create an engine, loading *manifest_path* when given.

        An engine that cannot load its initial manifest does not start.

        Returns:
            Ok(engine) or Err(EngineInitError) wrapping the load failure
        """
        engine = cls(registry=registry, resolver=resolver, telemetry=telemetry)
        if manifest_path is None:
            logger.info("manifest_engine_started", path=None)
            return Ok(engine)

        match engine.load(manifest_path):
            case Ok():
                logger.info("manifest_engine_started", path=str(manifest_path))
                return Ok(engine)
            case Err(error):
                cause = error if isinstance(error, PortfolioError) else PortfolioError(str(error))
                return Err(EngineInitError(cause))

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    @property
    def state(self) -> EngineState:
        return EngineState.UNLOADED if self._snapshot is None else EngineState.LOADED

    @property
    def source(self) -> Path | None:
        """Path that :meth:`reload` reads from."""
        return self._source

    @property
    def registry(self) -> AdapterRegistry:
        return self._registry

    def get_manifest(self) -> ValidatedManifest | None:
        snapshot = self._snapshot
        return snapshot.manifest if snapshot is not None else None

    def get_adapter(self, port_name: str) -> tuple[Any, dict[str, Any]] | None:
        """``(handle, config)`` for a port wired by the current manifest."""
        snapshot = self._snapshot
        if snapshot is None:
            return None
        wired = snapshot.wiring.get(port_name)
        if wired is None:
            return None
        handle, config = wired
        return handle, dict(config)

    # -------------------------------------------------------------------------
    # Loading
    # -------------------------------------------------------------------------

    def load(self, manifest_path: Path | str) -> Result[None]:
        """Load a manifest from a new source and make it the reload source."""
        return self._load_manifest(Path(manifest_path))

    def reload(self) -> Result[None]:
        """Re-read the current source.

        Returns:
            Ok(None), Err(NoSourceConfiguredError) if no source was ever
            loaded, or the load error
        """
        source = self._source
        if source is None:
            logger.warning("manifest_reload_skipped", reason="no_source")
            return Err(NoSourceConfiguredError())

        result = self._load_manifest(source)
        self._telemetry.execute(
            MANIFEST_RELOAD,
            {"count": 1},
            {"path": str(source), "status": "ok" if result.is_ok() else "error"},
        )
        return result

    def _load_manifest(self, path: Path) -> Result[None]:
        with self._load_lock:
            started = time.monotonic_ns()
            result = loader.load(path).and_then(self._resolve_all)

            match result:
                case Err(error):
                    self._report_failure(path, error)
                    return Err(error)
                case Ok((manifest, wiring)):
                    self._commit(path, manifest, wiring)

            self._telemetry.execute(
                MANIFEST_LOADED,
                {"adapter_count": len(wiring), "duration": time.monotonic_ns() - started},
                {
                    "path": str(path),
                    "version": manifest.version,
                    "environment": manifest.environment.value,
                },
            )
            return Ok(None)

    def _resolve_all(
        self, manifest: ValidatedManifest
    ) -> Result[tuple[ValidatedManifest, list[Wiring]]]:
        wired = collect_results(
            self._wire(port_name, declaration)
            for port_name, declaration in manifest.enabled_adapters.items()
        )
        return wired.map(lambda wiring: (manifest, wiring))

    def _wire(self, port_name: str, declaration: AdapterDeclaration) -> Result[Wiring]:
        reference = declaration.adapter_reference
        metadata = {**declaration.metadata, "adapter_reference": reference}
        return self._resolver.resolve(reference, port_name=port_name).map(
            lambda handle: (port_name, handle, dict(declaration.config), metadata)
        )

    def _commit(self, path: Path, manifest: ValidatedManifest, wiring: list[Wiring]) -> None:
        previous = self._snapshot
        self._registry.register_many(wiring)

        ports = {port for port, *_ in wiring}
        if previous is not None:
            for stale in sorted(set(previous.wiring) - ports):
                self._registry.unregister(stale)

        self._snapshot = _Snapshot(
            manifest=manifest,
            source=path,
            wiring={port: (handle, config) for port, handle, config, _ in wiring},
        )
        self._source = path
        logger.info(
            "manifest_loaded",
            path=str(path),
            version=manifest.version,
            environment=manifest.environment.value,
            ports=sorted(ports),
        )

    def _report_failure(self, path: Path, error: Exception) -> None:
        details = error.to_dict() if isinstance(error, PortfolioError) else {"message": str(error)}
        logger.warning("manifest_load_failed", path=str(path), **details)
        self._telemetry.execute(
            MANIFEST_ERROR,
            {"count": 1},
            {"path": str(path), "error": details},
        )


__all__ = ["EngineState", "ManifestEngine"]
