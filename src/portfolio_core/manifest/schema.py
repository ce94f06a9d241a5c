"""
Pydantic models for manifest validation.

A manifest wires ports to adapters::

    version: "1.0"
    environment: prod
    adapters:
      vector_store:
        adapter: pgvector
        config:
          dsn: ${DATABASE_URL}
        metadata:
          capabilities: [vector_search, hybrid]
      llm:
        adapter: anthropic
        enabled: false
    router:
      strategy: fallback
      providers: [anthropic, openai]

``version``, ``environment`` and ``adapters`` are required. ``router``,
``cache`` and ``agent`` are optional declared sections; ``pipelines``,
``graphs``, ``rag`` and ``telemetry`` default to empty mappings. Any other
top-level section is kept verbatim in :attr:`ValidatedManifest.extensions`.

Validation failures surface as :class:`SchemaViolationError` carrying the
dotted field path, e.g. ``adapters.llm.adapter``.

Tags:
    portfolio-core, manifest, schema, pydantic, validation

Doc-Types:
    api-reference
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from portfolio_core.core.errors import SchemaViolationError
from portfolio_core.core.result import Err, Ok, Result


class Environment(str, Enum):
    """Deployment environment a manifest targets."""

    DEV = "dev"
    TEST = "test"
    STAGING = "staging"
    PROD = "prod"


class AdapterDeclaration(BaseModel):
    """Which implementation backs a port."""

    model_config = ConfigDict(extra="forbid", frozen=True, populate_by_name=True)

    adapter_reference: str = Field(
        ..., alias="adapter", min_length=1, description="Adapter name or module:attr reference"
    )
    config: dict[str, Any] = Field(default_factory=dict, description="Adapter configuration")
    enabled: bool = Field(default=True, description="Disabled declarations are not wired")
    metadata: dict[str, Any] = Field(
        default_factory=dict, description="Forwarded to the registry entry (e.g. capabilities)"
    )


class RouterSection(BaseModel):
    """Provider routing settings."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    strategy: Literal["fallback", "round_robin", "specialist", "cost_optimized"] = "fallback"
    health_check_interval: int = Field(default=30000, ge=0, description="Milliseconds")
    providers: list[str] = Field(default_factory=list)


class CacheSection(BaseModel):
    """Response cache settings."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    enabled: bool = True
    backend: Literal["memory", "redis", "disk"] = "memory"
    default_ttl: int = Field(default=3600, ge=0, description="Seconds")
    namespaces: dict[str, Any] = Field(default_factory=dict)


class AgentSection(BaseModel):
    """Agent loop settings."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    max_iterations: int = Field(default=10, ge=1)
    timeout: int = Field(default=300000, ge=0, description="Milliseconds")
    tools: list[str] = Field(default_factory=list)


class ValidatedManifest(BaseModel):
    """A schema-checked manifest with defaults filled in.

    Instances are frozen; the engine replaces them wholesale on reload.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    version: str = Field(..., min_length=1)
    environment: Environment
    adapters: dict[str, AdapterDeclaration]

    router: RouterSection | None = None
    cache: CacheSection | None = None
    agent: AgentSection | None = None

    pipelines: dict[str, Any] = Field(default_factory=dict)
    graphs: dict[str, Any] = Field(default_factory=dict)
    rag: dict[str, Any] = Field(default_factory=dict)
    telemetry: dict[str, Any] = Field(default_factory=dict)

    extensions: dict[str, Any] = Field(
        default_factory=dict, description="Top-level sections not declared by the schema"
    )

    @model_validator(mode="before")
    @classmethod
    def collect_extensions(cls, data: Any) -> Any:
        """Move undeclared top-level sections into ``extensions``."""
        if not isinstance(data, dict):
            return data
        declared = set(cls.model_fields)
        known = {k: v for k, v in data.items() if k in declared}
        unknown = {k: v for k, v in data.items() if k not in declared}
        if unknown:
            existing = known.get("extensions")
            if existing is None:
                known["extensions"] = unknown
            elif isinstance(existing, Mapping):
                known["extensions"] = {**existing, **unknown}
        return known

    @property
    def enabled_adapters(self) -> dict[str, AdapterDeclaration]:
        return {port: decl for port, decl in self.adapters.items() if decl.enabled}

    def to_dict(self) -> dict[str, Any]:
        """Plain-data form using manifest key names."""
        return self.model_dump(mode="json", by_alias=True)


def validate(document: Any) -> Result[ValidatedManifest]:
    """Validate an expanded document.

    Returns:
        Ok(ValidatedManifest) or Err(SchemaViolationError) for the first
        offending field
    """
    if not isinstance(document, dict):
        kind = "empty document" if document is None else type(document).__name__
        return Err(SchemaViolationError("root", f"expected a mapping, got {kind}"))

    try:
        return Ok(ValidatedManifest.model_validate(document))
    except ValidationError as e:
        return Err(_to_violation(e))


def schema_definition() -> dict[str, Any]:
    """JSON schema of the manifest format."""
    return ValidatedManifest.model_json_schema(by_alias=True)


def _to_violation(error: ValidationError) -> SchemaViolationError:
    first = error.errors()[0]
    field = ".".join(str(part) for part in first["loc"]) or "root"
    return SchemaViolationError(field, first["msg"])


__all__ = [
    "AdapterDeclaration",
    "AgentSection",
    "CacheSection",
    "Environment",
    "RouterSection",
    "ValidatedManifest",
    "schema_definition",
    "validate",
]
