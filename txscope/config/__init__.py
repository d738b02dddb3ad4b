"""
Configuration management for txscope.

Loads and validates settings from environment variables and an optional
.env file. Exposes a single source of truth for paging, pacing and
classification defaults.
"""

from txscope.config.settings import Settings, get_settings  # noqa: F401

__all__ = ["Settings", "get_settings"]
