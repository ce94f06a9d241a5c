"""
Adapter reference resolution.

The ``adapter:`` string of a manifest declaration names an implementation.
:class:`AdapterResolver` maps those names to handles through a lookup table
that adapter packages populate at import time::

    resolver = AdapterResolver()

    @resolver.register("pgvector")
    class PgVectorStore:
        ...

    resolver.resolve("pgvector")   # Ok(PgVectorStore)

Handles are stored as given (a class, factory, module or instance); the
registry never instantiates them.

A resolver created with ``allow_imports=True`` also accepts
``"package.module:Attribute"`` references that are not in the table and
imports them on demand.

Tags:
    portfolio-core, manifest, adapters, resolution, plugins

Doc-Types:
    api-reference
"""

from __future__ import annotations

import importlib
import threading
from collections.abc import Callable, Mapping
from typing import Any, TypeVar

from portfolio_core.core.errors import UnresolvableAdapterError
from portfolio_core.core.logging import get_logger
from portfolio_core.core.result import Err, Ok, Result

logger = get_logger(__name__)

H = TypeVar("H")


def import_reference(ref: str) -> Any:
    """Import and return the object identified by ``'module:qualname'``.

    Raises:
        ValueError: If the reference has no ``:`` separator
        ImportError: If the module cannot be found
        AttributeError: If the qualname path is invalid
    """
    module_path, _, attr_path = ref.partition(":")
    if not module_path or not attr_path:
        raise ValueError(f"Invalid adapter reference (expected 'module:attr'): {ref!r}")
    obj: Any = importlib.import_module(module_path)
    for part in attr_path.split("."):
        obj = getattr(obj, part)
    return obj


class AdapterResolver:
    """Name -> handle lookup table for adapter references."""

    def __init__(
        self,
        adapters: Mapping[str, Any] | None = None,
        *,
        allow_imports: bool = False,
    ) -> None:
        self._adapters: dict[str, Any] = dict(adapters or {})
        self._lock = threading.Lock()
        self.allow_imports = allow_imports

    def add(self, name: str, handle: Any) -> None:
        """Add or replace a named handle."""
        with self._lock:
            self._adapters[name] = handle
        logger.debug("adapter_reference_added", reference=name)

    def register(self, name: str) -> Callable[[H], H]:
        """Decorator form of :meth:`add`."""

        def decorator(handle: H) -> H:
            self.add(name, handle)
            return handle

        return decorator

    def remove(self, name: str) -> None:
        with self._lock:
            self._adapters.pop(name, None)

    def names(self) -> list[str]:
        with self._lock:
            return sorted(self._adapters)

    def resolve(self, reference: str, *, port_name: str | None = None) -> Result[Any]:
        """Look up *reference*.

        Returns:
            Ok(handle) or Err(UnresolvableAdapterError)
        """
        with self._lock:
            if reference in self._adapters:
                return Ok(self._adapters[reference])

        if self.allow_imports and ":" in reference:
            try:
                return Ok(import_reference(reference))
            except Exception as e:
                logger.warning("adapter_import_failed", reference=reference, error=str(e))
                return Err(UnresolvableAdapterError(reference, port_name, str(e)))

        return Err(UnresolvableAdapterError(reference, port_name, "not a known adapter"))

    def __contains__(self, name: object) -> bool:
        return name in self._adapters

    def __len__(self) -> int:
        return len(self._adapters)


__all__ = ["AdapterResolver", "import_reference"]
