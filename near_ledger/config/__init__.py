"""
Configuration management for NEAR Ledger.

Loads settings from environment variables (and an optional .env file).
Exposes a single source of truth for indexer, label store, and history limits.
"""

from near_ledger.config.settings import Settings, get_settings  # noqa: F401

__all__ = ["Settings", "get_settings"]
