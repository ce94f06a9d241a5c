"""Tests for ``portfolio_core.cli`` - manifest commands via CliRunner."""

from __future__ import annotations

import json

from typer.testing import CliRunner

from portfolio_core import __version__
from portfolio_core.cli.app import app

runner = CliRunner()


class TestRootCLI:
    def test_version(self):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert f"portfolio-core {__version__}" in result.output

    def test_no_args_shows_help(self):
        result = runner.invoke(app, [])
        assert "manifest" in result.output


class TestValidate:
    def test_valid_manifest(self, basic_manifest):
        result = runner.invoke(app, ["manifest", "validate", str(basic_manifest)])
        assert result.exit_code == 0
        assert "valid" in result.output

    def test_missing_env_var(self, write_manifest, monkeypatch):
        monkeypatch.delenv("PORTFOLIO_CLI_UNSET", raising=False)
        path = write_manifest(
            "version: '1'\nenvironment: dev\nadapters:\n"
            "  p:\n    adapter: ${PORTFOLIO_CLI_UNSET}\n"
        )
        result = runner.invoke(app, ["manifest", "validate", str(path)])
        assert result.exit_code == 1

    def test_missing_file(self, tmp_path):
        result = runner.invoke(app, ["manifest", "validate", str(tmp_path / "nope.yaml")])
        assert result.exit_code == 1


class TestShow:
    def test_table(self, basic_manifest):
        result = runner.invoke(app, ["manifest", "show", str(basic_manifest)])
        assert result.exit_code == 0
        assert "vector_store" in result.output
        assert "pgvector" in result.output

    def test_json(self, basic_manifest):
        result = runner.invoke(app, ["manifest", "show", str(basic_manifest), "--format", "json"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["adapters"]["llm"]["adapter"] == "anthropic"
        assert data["adapters"]["llm"]["enabled"] is True

    def test_unknown_format(self, basic_manifest):
        result = runner.invoke(app, ["manifest", "show", str(basic_manifest), "-f", "xml"])
        assert result.exit_code == 2

    def test_invalid_manifest(self, write_manifest):
        path = write_manifest("version: '1'\n")
        result = runner.invoke(app, ["manifest", "show", str(path)])
        assert result.exit_code == 1


class TestSchema:
    def test_prints_json_schema(self):
        result = runner.invoke(app, ["manifest", "schema"])
        assert result.exit_code == 0
        assert "adapters" in json.loads(result.output)["required"]
