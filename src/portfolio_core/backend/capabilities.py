"""
Backend capability metadata.

A registry entry's ``metadata`` may describe what the backend behind a port
can do: which models it serves, whether it streams, its rate limits and
costs. :class:`BackendCapabilities` gives that description one shape so
routers can compare backends without knowing each adapter.

Capabilities can be declared directly, nested under ``backend_capabilities``,
or hinted through a ``capabilities`` list (``["vision", "streaming"]``) that
maps onto the ``supports_*`` flags.

Tags:
    portfolio-core, backend, capabilities, routing, metadata

Doc-Types:
    api-reference
"""

from __future__ import annotations

import inspect
from collections.abc import Mapping
from dataclasses import asdict, dataclass, field, fields, replace
from typing import Any

from portfolio_core.core.errors import CapabilityError
from portfolio_core.core.result import Err, Ok, Result

CAPABILITY_FLAGS: dict[str, str] = {
    "streaming": "supports_streaming",
    "function_calling": "supports_tools",
    "tools": "supports_tools",
    "tool_use": "supports_tools",
    "vision": "supports_vision",
    "audio": "supports_audio",
    "json_mode": "supports_json_mode",
    "extended_thinking": "supports_extended_thinking",
    "caching": "supports_caching",
}


@dataclass(frozen=True)
class BackendCapabilities:
    """What a backend supports, with limits and pricing."""

    backend_id: str
    provider: str
    models: list[str] = field(default_factory=list)
    default_model: str | None = None
    supports_streaming: bool = True
    supports_tools: bool = True
    supports_vision: bool = False
    supports_audio: bool = False
    supports_json_mode: bool = True
    supports_extended_thinking: bool = False
    supports_caching: bool = False
    max_tokens: int | None = None
    max_context_length: int | None = None
    max_images_per_request: int | None = None
    requests_per_minute: int | None = None
    tokens_per_minute: int | None = None
    cost_per_million_input: float | None = None
    cost_per_million_output: float | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def field_names(cls) -> frozenset[str]:
        return frozenset(f.name for f in fields(cls))

    @classmethod
    def from_metadata(
        cls,
        metadata: Mapping[str, Any] | None,
        *,
        backend_id: str | None = None,
        provider: str | None = None,
    ) -> Result[BackendCapabilities]:
        """Build capabilities from registry metadata.

        Explicit *backend_id* / *provider* win over values found in the
        metadata. Unknown keys are ignored and ``None`` values fall back to
        the defaults.

        Returns:
            Ok(BackendCapabilities) or Err(CapabilityError) when the backend
            id or provider cannot be determined
        """
        metadata = dict(metadata or {})
        source = metadata.get("backend_capabilities", metadata)
        raw = {
            str(key): value
            for key, value in _as_dict(source).items()
            if str(key) in cls.field_names() and value is not None
        }

        resolved_id = backend_id or raw.pop("backend_id", None) or metadata.get("backend_id")
        resolved_provider = provider or raw.pop("provider", None) or metadata.get("provider")
        raw.pop("backend_id", None)
        raw.pop("provider", None)

        if resolved_id is None:
            return Err(CapabilityError("backend_id"))
        if resolved_provider is None:
            return Err(CapabilityError("provider"))

        caps = cls(backend_id=str(resolved_id), provider=str(resolved_provider), **raw)
        overrides = _flag_overrides(metadata.get("capabilities"))
        if overrides:
            caps = replace(caps, **overrides)
        return Ok(caps)

    @classmethod
    def from_adapter(
        cls,
        handle: Any,
        config: Mapping[str, Any] | None = None,
        metadata: Mapping[str, Any] | None = None,
        *,
        backend_id: str | None = None,
        provider: str | None = None,
    ) -> Result[BackendCapabilities]:
        """Build capabilities from an adapter handle and its metadata.

        If the handle exposes ``capabilities(config)`` or ``capabilities()``
        its result is the baseline; *metadata* overrides it. A list result is
        treated as capability hints, a mapping as capability fields.
        """
        metadata = dict(metadata or {})
        adapter_caps = _adapter_capabilities(handle, dict(config or {}))

        if isinstance(adapter_caps, (list, tuple, set, frozenset)):
            metadata.setdefault("capabilities", list(adapter_caps))
        elif isinstance(adapter_caps, Mapping) and adapter_caps:
            existing = metadata.get("backend_capabilities")
            merged = dict(adapter_caps)
            if existing is not None:
                merged.update(_as_dict(existing))
            metadata["backend_capabilities"] = merged

        return cls.from_metadata(metadata, backend_id=backend_id, provider=provider)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return asdict(self)


def _as_dict(source: Any) -> dict[str, Any]:
    if isinstance(source, BackendCapabilities):
        return source.to_dict()
    if isinstance(source, Mapping):
        return dict(source)
    return {}


def _flag_overrides(hints: Any) -> dict[str, bool]:
    if not isinstance(hints, (list, tuple, set, frozenset)):
        return {}
    overrides = {}
    for hint in hints:
        flag = CAPABILITY_FLAGS.get(str(hint))
        if flag is not None:
            overrides[flag] = True
    return overrides


def _adapter_capabilities(handle: Any, config: dict[str, Any]) -> Any:
    declared = getattr(handle, "capabilities", None)
    if not callable(declared):
        return {}
    try:
        params = inspect.signature(declared).parameters
    except (TypeError, ValueError):
        return declared(config)
    return declared(config) if params else declared()


__all__ = ["BackendCapabilities", "CAPABILITY_FLAGS"]
