"""
Shared pytest fixtures for portfolio-core tests.

This module provides:
- Settings cache cleanup for test isolation
- Fresh registry / resolver / telemetry instances
- Manifest file writers backed by ``tmp_path``
"""

from collections.abc import Callable, Generator
from pathlib import Path
from typing import Any

import pytest

from portfolio_core.core.config import clear_settings_cache
from portfolio_core.manifest.resolver import AdapterResolver
from portfolio_core.registry import AdapterRegistry
from portfolio_core.telemetry import Telemetry


# =============================================================================
# Test Markers Configuration
# =============================================================================


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Mark tests without explicit markers as unit tests."""
    for item in items:
        markers = {mark.name for mark in item.iter_markers()}
        if not markers.intersection({"unit", "integration", "slow"}):
            item.add_marker(pytest.mark.unit)


# =============================================================================
# Cleanup Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def clean_settings_cache() -> Generator[None, None, None]:
    """Clear cached settings before and after each test."""
    clear_settings_cache()
    yield
    clear_settings_cache()


# =============================================================================
# Component Fixtures
# =============================================================================


class FakeVectorStore:
    """Adapter double exposing a capabilities method."""

    def capabilities(self, config: dict[str, Any]) -> list[str]:
        return ["streaming"]


class FakeLLM:
    pass


class FakeEmbedder:
    pass


@pytest.fixture
def telemetry() -> Telemetry:
    return Telemetry()


@pytest.fixture
def captured_events(telemetry: Telemetry) -> list[tuple[str, dict, dict]]:
    """Every event emitted through the ``telemetry`` fixture."""
    events: list[tuple[str, dict, dict]] = []
    telemetry.attach("capture", "*", lambda e, m, md: events.append((e, m, md)))
    return events


@pytest.fixture
def registry(telemetry: Telemetry) -> AdapterRegistry:
    return AdapterRegistry(telemetry=telemetry)


@pytest.fixture
def resolver() -> AdapterResolver:
    return AdapterResolver(
        {
            "pgvector": FakeVectorStore,
            "anthropic": FakeLLM,
            "openai_embed": FakeEmbedder,
        }
    )


# =============================================================================
# Manifest Fixtures
# =============================================================================


BASIC_MANIFEST = """\
version: "1.0"
environment: dev
adapters:
  vector_store:
    adapter: pgvector
    config:
      dimensions: 768
    metadata:
      capabilities: [vector_search, hybrid]
  llm:
    adapter: anthropic
    config:
      model: claude
"""


@pytest.fixture
def write_manifest(tmp_path: Path) -> Callable[[str, str], Path]:
    """Write manifest text to ``tmp_path`` and return the path."""

    def _write(text: str, name: str = "manifest.yaml") -> Path:
        path = tmp_path / name
        path.write_text(text, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def basic_manifest(write_manifest: Callable[[str, str], Path]) -> Path:
    return write_manifest(BASIC_MANIFEST)
