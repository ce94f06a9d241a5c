"""
Telemetry event emission for portfolio-core.

The manifest engine and the adapter registry report what they do through a
:class:`Telemetry` instance: manifest loaded, reloaded, or failed, and
adapters registered or called. Emission is fire-and-forget: handlers run
synchronously in the emitting thread, and a handler that raises is logged
and skipped without affecting the caller.

Event naming:
    All events are dot-separated and prefixed with ``portfolio_core``::

        portfolio_core.manifest.loaded
        portfolio_core.manifest.reload
        portfolio_core.manifest.error
        portfolio_core.registry.register
        portfolio_core.adapter.call.start / .stop / .exception

Usage::

    telemetry = Telemetry()

    def on_manifest(event, measurements, metadata):
        print(event, metadata["path"])

    telemetry.attach("audit", "portfolio_core.manifest.*", on_manifest)

    with telemetry.span("portfolio_core.adapter.call", {"port": "llm"}):
        call_adapter()

Tags:
    portfolio-core, telemetry, events, observability, instrumentation

Doc-Types:
    api-reference
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any

from portfolio_core.core.logging import get_logger

logger = get_logger(__name__)

PREFIX = "portfolio_core"

MANIFEST_LOADED = f"{PREFIX}.manifest.loaded"
MANIFEST_RELOAD = f"{PREFIX}.manifest.reload"
MANIFEST_ERROR = f"{PREFIX}.manifest.error"
REGISTRY_REGISTER = f"{PREFIX}.registry.register"
ADAPTER_CALL = f"{PREFIX}.adapter.call"

TelemetryHandler = Callable[[str, dict[str, Any], dict[str, Any]], None]


def events() -> list[str]:
    """All event names emitted by portfolio-core, for handler attachment."""
    return [
        MANIFEST_LOADED,
        MANIFEST_RELOAD,
        MANIFEST_ERROR,
        REGISTRY_REGISTER,
        f"{ADAPTER_CALL}.start",
        f"{ADAPTER_CALL}.stop",
        f"{ADAPTER_CALL}.exception",
    ]


def matches(event_name: str, pattern: str) -> bool:
    """Check if an event name matches a pattern (supports wildcards).

    Examples:
        - ``portfolio_core.manifest.*`` matches ``portfolio_core.manifest.loaded``
        - ``*`` matches everything
        - an exact name matches only itself
    """
    if pattern == "*":
        return True
    if pattern.endswith(".*"):
        prefix = pattern[:-2]
        return event_name.startswith(prefix + ".")
    return event_name == pattern


@dataclass(frozen=True)
class Attachment:
    """Internal handler record."""

    handler_id: str
    pattern: str
    handler: TelemetryHandler


class Telemetry:
    """In-process, synchronous event emitter.

    Handlers are called in attachment order. The handler table is copied
    under a lock before dispatch so handlers may attach or detach while an
    event is being delivered.
    """

    def __init__(self) -> None:
        self._attachments: dict[str, Attachment] = {}
        self._lock = threading.Lock()

    def attach(self, handler_id: str, pattern: str, handler: TelemetryHandler) -> None:
        """Attach a handler for events matching *pattern*.

        Raises:
            ValueError: If *handler_id* is already attached
        """
        with self._lock:
            if handler_id in self._attachments:
                raise ValueError(f"Telemetry handler '{handler_id}' is already attached")
            self._attachments[handler_id] = Attachment(handler_id, pattern, handler)

    def detach(self, handler_id: str) -> bool:
        """Remove a handler. Returns False if it was not attached."""
        with self._lock:
            return self._attachments.pop(handler_id, None) is not None

    def execute(
        self,
        event_name: str,
        measurements: dict[str, Any] | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        """Emit an event to all matching handlers (fire-and-forget)."""
        with self._lock:
            targets = [a for a in self._attachments.values() if matches(event_name, a.pattern)]

        for attachment in targets:
            try:
                attachment.handler(event_name, dict(measurements or {}), dict(metadata or {}))
            except Exception as e:
                logger.warning(
                    "telemetry_handler_error",
                    handler_id=attachment.handler_id,
                    event_name=event_name,
                    error=str(e),
                )

    @contextmanager
    def span(self, event_prefix: str, metadata: dict[str, Any] | None = None) -> Iterator[None]:
        """Wrap a block in ``.start`` / ``.stop`` / ``.exception`` events.

        Durations are reported in nanoseconds of monotonic time. Exceptions
        are re-raised after the ``.exception`` event.
        """
        meta = dict(metadata or {})
        start = time.monotonic_ns()
        self.execute(f"{event_prefix}.start", {"system_time": time.time_ns()}, meta)
        try:
            yield
        except BaseException as exc:
            self.execute(
                f"{event_prefix}.exception",
                {"duration": time.monotonic_ns() - start},
                {**meta, "kind": type(exc).__name__, "reason": str(exc)},
            )
            raise
        self.execute(
            f"{event_prefix}.stop",
            {"duration": time.monotonic_ns() - start},
            {**meta, "result": "ok"},
        )

    @property
    def handler_count(self) -> int:
        """Number of attached handlers."""
        return len(self._attachments)


__all__ = [
    "ADAPTER_CALL",
    "MANIFEST_ERROR",
    "MANIFEST_LOADED",
    "MANIFEST_RELOAD",
    "REGISTRY_REGISTER",
    "Telemetry",
    "TelemetryHandler",
    "events",
    "matches",
]
