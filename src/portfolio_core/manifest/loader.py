"""
Manifest loading: read, parse, expand, validate.

Each step returns a Result so the first failure short-circuits the rest::

    read (ManifestIOError)
      -> parse YAML (ManifestParseError)
      -> expand ${VAR} placeholders (MissingEnvVarError)
      -> validate (SchemaViolationError)

Placeholder expansion walks every string value in nested mappings and
sequences. Mapping keys and non-string scalars are left alone. If any
referenced variable is unset the whole load fails; nothing is partially
substituted.

Usage::

    from portfolio_core.manifest import loader

    match loader.load("config/manifest.yaml"):
        case Ok(manifest):
            ...
        case Err(error):
            logger.error("manifest_invalid", **error.to_dict())

Tags:
    portfolio-core, manifest, yaml, environment, loader

Doc-Types:
    api-reference
"""

from __future__ import annotations

import os
import re
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

from portfolio_core.core.errors import (
    ManifestIOError,
    ManifestParseError,
    MissingEnvVarError,
    PortfolioError,
)
from portfolio_core.core.logging import get_logger
from portfolio_core.core.result import Err, Ok, Result
from portfolio_core.manifest.schema import ValidatedManifest, validate

logger = get_logger(__name__)

ENV_VAR_PATTERN = re.compile(r"\$\{(\w+)\}")


def load(path: Path | str) -> Result[ValidatedManifest]:
    """Load and validate a manifest file."""
    result = _read(Path(path)).and_then(load_raw_string).and_then(validate)
    return _with_path(result, path)


def load_string(text: str) -> Result[ValidatedManifest]:
    """Load and validate manifest text."""
    return load_raw_string(text).and_then(validate)


def load_raw(path: Path | str) -> Result[Any]:
    """Read, parse and expand a manifest file without validating it."""
    result = _read(Path(path)).and_then(load_raw_string)
    return _with_path(result, path)


def load_raw_string(text: str) -> Result[Any]:
    """Parse and expand manifest text without validating it."""
    return _parse(text).and_then(expand_env_vars)


def load_or_raise(path: Path | str) -> ValidatedManifest:
    """Like :func:`load` but raises the :class:`ManifestError` on failure."""
    return load(path).unwrap()


def expand_env_vars(value: Any, environ: Mapping[str, str] | None = None) -> Result[Any]:
    """Replace ``${NAME}`` placeholders recursively.

    Args:
        value: Parsed document or any nested part of it
        environ: Variable source, defaults to ``os.environ``

    Returns:
        Ok(expanded copy) or Err(MissingEnvVarError) naming the first unset
        variable
    """
    env = os.environ if environ is None else environ
    try:
        return Ok(_expand(value, env))
    except MissingEnvVarError as e:
        return Err(e)


def _expand(value: Any, env: Mapping[str, str]) -> Any:
    if isinstance(value, str):
        return ENV_VAR_PATTERN.sub(lambda m: _lookup(m.group(1), env), value)
    if isinstance(value, dict):
        return {key: _expand(item, env) for key, item in value.items()}
    if isinstance(value, list):
        return [_expand(item, env) for item in value]
    return value


def _lookup(name: str, env: Mapping[str, str]) -> str:
    try:
        return env[name]
    except KeyError:
        raise MissingEnvVarError(name) from None


def _read(path: Path) -> Result[str]:
    logger.debug("manifest_read", path=str(path))
    try:
        return Ok(path.read_text(encoding="utf-8"))
    except OSError as e:
        return Err(ManifestIOError(str(path), e.strerror or str(e), cause=e))
    except UnicodeDecodeError as e:
        return Err(ManifestIOError(str(path), "not valid UTF-8 text", cause=e))


def _parse(text: str) -> Result[Any]:
    try:
        return Ok(yaml.safe_load(text))
    except yaml.YAMLError as e:
        return Err(ManifestParseError(str(e), cause=e))


def _with_path(result: Result[Any], path: Path | str) -> Result[Any]:
    def annotate(error: Exception) -> Exception:
        if isinstance(error, PortfolioError) and error.context.manifest_path is None:
            return error.with_context(manifest_path=str(path))
        return error

    return result.map_err(annotate)


__all__ = [
    "ENV_VAR_PATTERN",
    "expand_env_vars",
    "load",
    "load_or_raise",
    "load_raw",
    "load_raw_string",
    "load_string",
]
