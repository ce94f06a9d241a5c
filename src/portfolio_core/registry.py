"""
Adapter registry - concurrent port -> adapter table.

Every resolved adapter lives here as an :class:`AdapterEntry` keyed by port
name. The manifest engine is the usual writer, but tests and other
subsystems may register entries directly.

Manifesto:
    - **One entry per port:** ``register`` is an upsert, never an append
    - **No torn reads:** entries are immutable and swapped whole
    - **Misses are values:** lookups return ``Err(AdapterNotFoundError)``
    - **Instances, not globals:** each registry is constructor-owned

Concurrency:
    Entries are frozen dataclasses. Writers take one lock and replace the
    whole entry, so ``record_call`` on the same port never loses an update
    and a reader always sees either the old entry or the new one. Single-key
    reads (``get``, ``health_status``, ``metrics``) do not take the lock;
    scans (``list_ports``, ``find_by_capability``) copy the table under it.

Examples:
    >>> registry = AdapterRegistry()
    >>> registry.register("vector_store", handle, {"dim": 768})
    >>> registry.record_call("vector_store", success=True)
    Ok(None)
    >>> registry.metrics("vector_store").unwrap().call_count
    1

Tags:
    portfolio-core, registry, adapters, ports, health, metrics, concurrency

Doc-Types:
    api-reference
"""

from __future__ import annotations

import threading
from collections.abc import Hashable, Iterable, Iterator, Mapping
from contextlib import contextmanager
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from portfolio_core.backend.capabilities import BackendCapabilities
from portfolio_core.core.errors import AdapterNotFoundError
from portfolio_core.core.logging import get_logger
from portfolio_core.core.result import Err, Ok, Result
from portfolio_core.telemetry import ADAPTER_CALL, REGISTRY_REGISTER, Telemetry

logger = get_logger(__name__)


class HealthStatus(str, Enum):
    """Health of a registered port."""

    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class AdapterEntry:
    """A resolved adapter registered for a port."""

    port_name: str
    handle: Any
    config: dict[str, Any] = field(default_factory=dict)
    metadata: dict[str, Any] = field(default_factory=dict)
    registered_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    healthy: bool = True
    call_count: int = 0
    error_count: int = 0

    @property
    def capabilities(self) -> frozenset[Hashable]:
        """Capabilities declared in ``metadata["capabilities"]``, as given."""
        caps = self.metadata.get("capabilities") or ()
        if isinstance(caps, str):
            caps = (caps,)
        return frozenset(c for c in caps if isinstance(c, Hashable))


@dataclass(frozen=True)
class AdapterMetrics:
    """Call statistics for a port."""

    call_count: int
    error_count: int
    error_rate: float
    healthy: bool
    uptime: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "call_count": self.call_count,
            "error_count": self.error_count,
            "error_rate": self.error_rate,
            "healthy": self.healthy,
            "uptime": self.uptime,
        }


class AdapterRegistry:
    """Process-local table of adapters keyed by port name."""

    def __init__(self, telemetry: Telemetry | None = None) -> None:
        self._entries: dict[str, AdapterEntry] = {}
        self._lock = threading.Lock()
        self._telemetry = telemetry

    # -------------------------------------------------------------------------
    # Registration
    # -------------------------------------------------------------------------

    def register(
        self,
        port_name: str,
        handle: Any,
        config: Mapping[str, Any] | None = None,
        metadata: Mapping[str, Any] | None = None,
    ) -> None:
        """Insert or replace the entry for *port_name*.

        Replacing resets ``registered_at``, health and counters.
        """
        entry = _new_entry(port_name, handle, config, metadata)
        with self._lock:
            self._entries[port_name] = entry
        self._announce([entry])

    def register_many(
        self,
        entries: Iterable[tuple[str, Any, Mapping[str, Any] | None, Mapping[str, Any] | None]],
    ) -> None:
        """Register several ports under a single lock acquisition.

        Each item is ``(port_name, handle, config, metadata)``. Readers see
        either none or all of the new entries.
        """
        new_entries = [_new_entry(*item) for item in entries]
        with self._lock:
            for entry in new_entries:
                self._entries[entry.port_name] = entry
        self._announce(new_entries)

    def unregister(self, port_name: str) -> None:
        """Remove a port. No error if it is absent."""
        with self._lock:
            removed = self._entries.pop(port_name, None)
        if removed is not None:
            logger.debug("adapter_unregistered", port=port_name)

    def clear(self) -> None:
        """Remove all entries."""
        with self._lock:
            self._entries = {}
        logger.debug("registry_cleared")

    def _announce(self, entries: list[AdapterEntry]) -> None:
        for entry in entries:
            logger.debug("adapter_registered", port=entry.port_name)
            if self._telemetry is not None:
                self._telemetry.execute(
                    REGISTRY_REGISTER,
                    {"count": 1},
                    {"port_name": entry.port_name, "metadata": dict(entry.metadata)},
                )

    # -------------------------------------------------------------------------
    # Lookup
    # -------------------------------------------------------------------------

    def get(self, port_name: str) -> Result[AdapterEntry]:
        entry = self._entries.get(port_name)
        if entry is None:
            return Err(AdapterNotFoundError(port_name))
        return Ok(entry)

    def require(self, port_name: str) -> AdapterEntry:
        """Like :meth:`get` but raises :class:`AdapterNotFoundError`."""
        return self.get(port_name).unwrap()

    def is_registered(self, port_name: str) -> bool:
        return port_name in self._entries

    def list_ports(self) -> set[str]:
        with self._lock:
            return set(self._entries)

    def find_by_capability(self, capability: Hashable) -> list[tuple[str, Any, dict[str, Any]]]:
        """Return ``(port_name, handle, config)`` for ports declaring *capability*."""
        with self._lock:
            snapshot = list(self._entries.values())
        return [
            (entry.port_name, entry.handle, entry.config)
            for entry in snapshot
            if capability in entry.capabilities
        ]

    def capabilities(self, port_name: str) -> Result[BackendCapabilities]:
        """Build :class:`BackendCapabilities` for a registered port.

        The port name is the default backend id.
        """
        match self.get(port_name):
            case Ok(entry):
                backend_id = entry.metadata.get("backend_id", port_name)
                return BackendCapabilities.from_adapter(
                    entry.handle, entry.config, entry.metadata, backend_id=backend_id
                )
            case err:
                return err

    # -------------------------------------------------------------------------
    # Health and metrics
    # -------------------------------------------------------------------------

    def mark_healthy(self, port_name: str) -> Result[None]:
        return self._update(port_name, healthy=True)

    def mark_unhealthy(self, port_name: str) -> Result[None]:
        return self._update(port_name, healthy=False)

    def health_status(self, port_name: str) -> HealthStatus:
        entry = self._entries.get(port_name)
        if entry is None:
            return HealthStatus.UNKNOWN
        return HealthStatus.HEALTHY if entry.healthy else HealthStatus.UNHEALTHY

    def record_call(self, port_name: str, success: bool = True) -> Result[None]:
        """Count one call; failed calls also count as errors."""
        with self._lock:
            entry = self._entries.get(port_name)
            if entry is None:
                return Err(AdapterNotFoundError(port_name))
            self._entries[port_name] = replace(
                entry,
                call_count=entry.call_count + 1,
                error_count=entry.error_count + (0 if success else 1),
            )
        return Ok(None)

    def metrics(self, port_name: str) -> Result[AdapterMetrics]:
        entry = self._entries.get(port_name)
        if entry is None:
            return Err(AdapterNotFoundError(port_name))
        error_rate = entry.error_count / entry.call_count if entry.call_count else 0.0
        uptime = int((datetime.now(UTC) - entry.registered_at).total_seconds())
        return Ok(
            AdapterMetrics(
                call_count=entry.call_count,
                error_count=entry.error_count,
                error_rate=error_rate,
                healthy=entry.healthy,
                uptime=uptime,
            )
        )

    @contextmanager
    def track_call(self, port_name: str) -> Iterator[Any]:
        """Record one call around a block, yielding the adapter handle.

        Usage:
            with registry.track_call("llm") as llm:
                llm.complete(prompt)

        An exception in the block counts as a failed call and is re-raised.

        Raises:
            AdapterNotFoundError: If the port is not registered
        """
        entry = self.require(port_name)
        span = (
            self._telemetry.span(ADAPTER_CALL, {"port_name": port_name})
            if self._telemetry is not None
            else _null_span()
        )
        with span:
            try:
                yield entry.handle
            except Exception:
                self.record_call(port_name, success=False)
                raise
            self.record_call(port_name, success=True)

    def _update(self, port_name: str, **changes: Any) -> Result[None]:
        with self._lock:
            entry = self._entries.get(port_name)
            if entry is None:
                return Err(AdapterNotFoundError(port_name))
            self._entries[port_name] = replace(entry, **changes)
        return Ok(None)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, port_name: object) -> bool:
        return port_name in self._entries


def _new_entry(
    port_name: str,
    handle: Any,
    config: Mapping[str, Any] | None = None,
    metadata: Mapping[str, Any] | None = None,
) -> AdapterEntry:
    return AdapterEntry(
        port_name=port_name,
        handle=handle,
        config=dict(config or {}),
        metadata=dict(metadata or {}),
    )


@contextmanager
def _null_span() -> Iterator[None]:
    yield


__all__ = ["AdapterEntry", "AdapterMetrics", "AdapterRegistry", "HealthStatus"]
