"""
Manifest loading, validation and adapter wiring.

- loader: read + parse + ``${VAR}`` expansion
- schema: pydantic models for the manifest document
- resolver: adapter reference -> handle lookup
- engine: coordinator that wires the registry and hot-reloads
"""

from portfolio_core.manifest import loader
from portfolio_core.manifest.engine import EngineState, ManifestEngine
from portfolio_core.manifest.resolver import AdapterResolver, import_reference
from portfolio_core.manifest.schema import (
    AdapterDeclaration,
    AgentSection,
    CacheSection,
    Environment,
    RouterSection,
    ValidatedManifest,
    schema_definition,
    validate,
)

__all__ = [
    "AdapterDeclaration",
    "AdapterResolver",
    "AgentSection",
    "CacheSection",
    "EngineState",
    "Environment",
    "ManifestEngine",
    "RouterSection",
    "ValidatedManifest",
    "import_reference",
    "loader",
    "schema_definition",
    "validate",
]
