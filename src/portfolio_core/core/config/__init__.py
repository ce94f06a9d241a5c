"""
Configuration for portfolio-core.

Usage::

    from portfolio_core.core.config import get_settings

    settings = get_settings()
    settings.manifest_path
"""

from .settings import PortfolioSettings, clear_settings_cache, get_settings

__all__ = ["PortfolioSettings", "clear_settings_cache", "get_settings"]
