"""Tests for ``portfolio_core.manifest.engine`` - load, wire, reload."""

from __future__ import annotations

import threading

import pytest

from portfolio_core.core.errors import (
    EngineInitError,
    ManifestParseError,
    MissingEnvVarError,
    NoSourceConfiguredError,
    SchemaViolationError,
    UnresolvableAdapterError,
)
from portfolio_core.manifest.engine import EngineState, ManifestEngine
from portfolio_core.telemetry import MANIFEST_ERROR, MANIFEST_LOADED, MANIFEST_RELOAD


TWO_PORTS = """\
version: "2.0"
environment: staging
adapters:
  llm:
    adapter: anthropic
  embedder:
    adapter: openai_embed
    config:
      batch_size: 32
"""

BAD_REFERENCE = """\
version: "3.0"
environment: prod
adapters:
  embedder:
    adapter: openai_embed
  vector_store:
    adapter: does_not_exist
"""


@pytest.fixture
def handle(resolver):
    def _handle(name):
        return resolver.resolve(name).unwrap()

    return _handle


@pytest.fixture
def start(registry, resolver, telemetry):
    def _start(path=None):
        return ManifestEngine.start(
            path, registry=registry, resolver=resolver, telemetry=telemetry
        )

    return _start


class TestStart:
    def test_without_source(self, start):
        engine = start().unwrap()
        assert engine.state == EngineState.UNLOADED
        assert engine.get_manifest() is None
        assert engine.get_adapter("llm") is None
        assert engine.source is None

    def test_with_source_wires_registry(self, start, registry, basic_manifest, handle):
        engine = start(basic_manifest).unwrap()

        assert engine.state == EngineState.LOADED
        assert engine.source == basic_manifest
        assert engine.get_manifest().version == "1.0"
        assert registry.list_ports() == {"vector_store", "llm"}

        entry = registry.get("vector_store").unwrap()
        assert entry.handle is handle("pgvector")
        assert entry.config == {"dimensions": 768}
        assert entry.metadata["adapter_reference"] == "pgvector"
        assert entry.capabilities == frozenset({"vector_search", "hybrid"})

    def test_get_adapter(self, start, basic_manifest, handle):
        engine = start(basic_manifest).unwrap()
        assert engine.get_adapter("llm") == (handle("anthropic"), {"model": "claude"})
        assert engine.get_adapter("unknown") is None

    def test_get_adapter_returns_copy(self, start, basic_manifest):
        engine = start(basic_manifest).unwrap()
        _, config = engine.get_adapter("llm")
        config["model"] = "changed"
        assert engine.get_adapter("llm")[1] == {"model": "claude"}

    def test_init_failure(self, start, registry, write_manifest):
        path = write_manifest(BAD_REFERENCE)
        error = start(path).error
        assert isinstance(error, EngineInitError)
        assert isinstance(error.reason, UnresolvableAdapterError)
        assert registry.list_ports() == set()

    def test_init_failure_missing_file(self, start, tmp_path):
        assert isinstance(start(tmp_path / "missing.yaml").error, EngineInitError)

    def test_registry_usable_after_start(self, start, registry, basic_manifest):
        start(basic_manifest).unwrap()
        registry.record_call("llm", success=False)
        assert registry.metrics("llm").unwrap().error_count == 1


class TestDisabledAdapters:
    def test_disabled_not_resolved_or_registered(self, start, registry, write_manifest):
        path = write_manifest(
            'version: "1"\nenvironment: dev\nadapters:\n'
            "  llm:\n    adapter: anthropic\n"
            "  legacy:\n    adapter: not_installed\n    enabled: false\n"
        )
        engine = start(path).unwrap()
        assert registry.list_ports() == {"llm"}
        assert "legacy" in engine.get_manifest().adapters
        assert engine.get_adapter("legacy") is None


class TestReload:
    def test_reload_without_source(self, start):
        engine = start().unwrap()
        assert isinstance(engine.reload().error, NoSourceConfiguredError)

    def test_reload_picks_up_changes(self, start, registry, basic_manifest, handle):
        engine = start(basic_manifest).unwrap()
        basic_manifest.write_text(TWO_PORTS, encoding="utf-8")

        assert engine.reload().is_ok()
        assert engine.get_manifest().version == "2.0"
        assert registry.list_ports() == {"llm", "embedder"}
        assert engine.get_adapter("embedder") == (handle("openai_embed"), {"batch_size": 32})

    def test_reload_resets_entry(self, start, registry, basic_manifest):
        engine = start(basic_manifest).unwrap()
        registry.record_call("llm", success=True)
        engine.reload().unwrap()
        assert registry.metrics("llm").unwrap().call_count == 0

    def test_stale_ports_unregistered(self, start, registry, basic_manifest):
        engine = start(basic_manifest).unwrap()
        basic_manifest.write_text(TWO_PORTS, encoding="utf-8")
        engine.reload().unwrap()
        assert not registry.is_registered("vector_store")

    def test_ports_registered_outside_engine_survive(self, start, registry, basic_manifest):
        engine = start(basic_manifest).unwrap()
        registry.register("manual", "H")
        basic_manifest.write_text(TWO_PORTS, encoding="utf-8")
        engine.reload().unwrap()
        assert registry.is_registered("manual")

    def test_failed_reload_keeps_previous_state(
        self, start, registry, basic_manifest, handle
    ):
        engine = start(basic_manifest).unwrap()
        before = engine.get_manifest()
        basic_manifest.write_text(BAD_REFERENCE, encoding="utf-8")

        error = engine.reload().error
        assert isinstance(error, UnresolvableAdapterError)
        assert error.reference == "does_not_exist"
        assert engine.get_manifest() is before
        assert registry.list_ports() == {"vector_store", "llm"}
        assert not registry.is_registered("embedder")
        assert engine.get_adapter("vector_store")[0] is handle("pgvector")

    @pytest.mark.parametrize(
        ("text", "error_type"),
        [
            ("version: [\n", ManifestParseError),
            ("version: '1'\nenvironment: dev\n", SchemaViolationError),
            (
                "version: '1'\nenvironment: dev\nadapters:\n  p:\n    adapter: ${NOPE_UNSET}\n",
                MissingEnvVarError,
            ),
        ],
    )
    def test_load_errors_are_values(self, start, basic_manifest, monkeypatch, text, error_type):
        monkeypatch.delenv("NOPE_UNSET", raising=False)
        engine = start(basic_manifest).unwrap()
        basic_manifest.write_text(text, encoding="utf-8")
        assert isinstance(engine.reload().error, error_type)
        assert engine.get_manifest().version == "1.0"


class TestLoad:
    def test_load_new_source(self, start, registry, basic_manifest, write_manifest):
        engine = start(basic_manifest).unwrap()
        other = write_manifest(TWO_PORTS, "other.yaml")

        assert engine.load(other).is_ok()
        assert engine.source == other
        assert engine.get_manifest().version == "2.0"

        other.write_text(BAD_REFERENCE, encoding="utf-8")
        assert engine.reload().is_err()
        assert engine.get_manifest().version == "2.0"

    def test_failed_load_keeps_source(self, start, basic_manifest, tmp_path):
        engine = start(basic_manifest).unwrap()
        assert engine.load(tmp_path / "missing.yaml").is_err()
        assert engine.source == basic_manifest
        assert engine.reload().is_ok()

    def test_load_into_unloaded_engine(self, start, basic_manifest):
        engine = start().unwrap()
        engine.load(basic_manifest).unwrap()
        assert engine.state == EngineState.LOADED


class TestTelemetry:
    def test_loaded_event(self, start, basic_manifest, captured_events):
        start(basic_manifest).unwrap()
        loaded = [(m, md) for e, m, md in captured_events if e == MANIFEST_LOADED]
        assert len(loaded) == 1
        measurements, metadata = loaded[0]
        assert measurements["adapter_count"] == 2
        assert metadata["path"] == str(basic_manifest)
        assert metadata["environment"] == "dev"

    def test_reload_and_error_events(self, start, basic_manifest, captured_events):
        engine = start(basic_manifest).unwrap()
        basic_manifest.write_text(BAD_REFERENCE, encoding="utf-8")
        engine.reload()

        names = [e for e, _, _ in captured_events]
        assert MANIFEST_ERROR in names
        reload_meta = [md for e, _, md in captured_events if e == MANIFEST_RELOAD]
        assert reload_meta[-1]["status"] == "error"

        error_meta = [md for e, _, md in captured_events if e == MANIFEST_ERROR][-1]
        assert error_meta["error"]["error_type"] == "UnresolvableAdapterError"


@pytest.mark.slow
class TestConcurrentAccess:
    def test_readers_during_reloads(self, start, basic_manifest, write_manifest):
        engine = start(basic_manifest).unwrap()
        other = write_manifest(TWO_PORTS, "other.yaml")
        seen_versions = set()
        errors = []
        done = threading.Event()

        def reloader() -> None:
            for n in range(20):
                result = engine.load(other if n % 2 else basic_manifest)
                if result.is_err():
                    errors.append(result.error)

        def reader() -> None:
            while not done.is_set():
                seen_versions.add(engine.get_manifest().version)

        reloaders = [threading.Thread(target=reloader) for _ in range(2)]
        readers = [threading.Thread(target=reader) for _ in range(3)]
        for t in reloaders + readers:
            t.start()
        for t in reloaders:
            t.join()
        done.set()
        for t in readers:
            t.join()

        assert errors == []
        assert seen_versions <= {"1.0", "2.0"}
