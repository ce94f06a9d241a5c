"""
Centralized settings for portfolio-core.

Manifesto:
    The manifest path, log format and resolver policy are process-level
    choices that operators set through the environment. One validated,
    cached settings object reads them in a single place.

All fields can be set via ``PORTFOLIO_*`` environment variables (e.g.
``PORTFOLIO_MANIFEST_PATH=config/manifests/prod.yaml``) or a ``.env`` file.

Tags:
    portfolio-core, configuration, settings, pydantic, caching

Doc-Types:
    api-reference
"""

from __future__ import annotations

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class PortfolioSettings(BaseSettings):
    """Portfolio-core runtime configuration."""

    model_config = SettingsConfigDict(
        env_prefix="PORTFOLIO_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Manifest ─────────────────────────────────────────────────
    manifest_path: str | None = Field(
        default=None,
        description="Manifest loaded when the engine starts (None starts unloaded)",
    )
    allow_import_references: bool = Field(
        default=False,
        description="Resolve 'module:attr' adapter references by importing them",
    )

    # ── Logging ──────────────────────────────────────────────────
    log_level: str = Field(default="INFO")
    log_format: Literal["json", "console"] = Field(default="json")
    service_name: str = Field(default="portfolio-core")


_settings_cache: dict[str, PortfolioSettings] = {}


def get_settings(*, _force_reload: bool = False) -> PortfolioSettings:
    """Load, validate, and cache a :class:`PortfolioSettings` instance."""
    if not _force_reload and "default" in _settings_cache:
        return _settings_cache["default"]

    settings = PortfolioSettings()
    _settings_cache["default"] = settings
    return settings


def clear_settings_cache() -> None:
    """Clear the settings cache (primarily for testing)."""
    _settings_cache.clear()
