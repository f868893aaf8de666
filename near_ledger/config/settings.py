"""
Application settings built from the environment.

get_settings() is read once per call; tests override values with monkeypatch.setenv.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from near_ledger.config.env import (
    get_fetch_limit,
    get_labels_path,
    get_nearblocks_api_key,
    get_nearblocks_api_url,
    get_request_timeout,
    get_search_limit,
)


@dataclass(frozen=True)
class Settings:
    nearblocks_api_url: str
    nearblocks_api_key: str | None
    request_timeout_sec: float
    labels_path: Path
    search_limit: int
    fetch_limit: int


def get_settings() -> Settings:
    """Return the current settings (indexer URL, timeout, label store path, limits)."""
    return Settings(
        nearblocks_api_url=get_nearblocks_api_url(),
        nearblocks_api_key=get_nearblocks_api_key(),
        request_timeout_sec=get_request_timeout(),
        labels_path=get_labels_path(),
        search_limit=get_search_limit(),
        fetch_limit=get_fetch_limit(),
    )
