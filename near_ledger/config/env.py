"""
Environment variable loading for NEAR Ledger.

- NEARBLOCKS_API_URL: indexer base URL (default: https://api.nearblocks.io/v1)
- NEARBLOCKS_API_KEY: optional API key, sent as a bearer token
- NEARBLOCKS_TIMEOUT_SEC: HTTP timeout per page request (default: 30)
- TX_LABELS_PATH: label store JSON document (default: near_ledger/data/tx-labels.json)
- HISTORY_SEARCH_LIMIT / HISTORY_FETCH_LIMIT: transactions fetched for search / export+summary
- Loads .env from project root when available.
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

# Project root: config is near_ledger/config/, root is 2 levels up
_CONFIG_DIR = Path(__file__).resolve().parent
_PACKAGE_DIR = _CONFIG_DIR.parent
_ROOT = _PACKAGE_DIR.parent
_ENV_PATH = _ROOT / ".env"

DEFAULT_NEARBLOCKS_API_URL = "https://api.nearblocks.io/v1"
DEFAULT_TIMEOUT_SEC = 30.0
DEFAULT_SEARCH_LIMIT = 25
DEFAULT_FETCH_LIMIT = 200


def load_ledger_env() -> None:
    """Load .env from project root. Safe to call multiple times."""
    load_dotenv(_ENV_PATH)


def _env_int(name: str, default: int) -> int:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def get_nearblocks_api_url() -> str:
    """Return indexer base URL without trailing slash."""
    load_ledger_env()
    url = (os.getenv("NEARBLOCKS_API_URL") or "").strip() or DEFAULT_NEARBLOCKS_API_URL
    return url.rstrip("/")


def get_nearblocks_api_key() -> str | None:
    load_ledger_env()
    key = (os.getenv("NEARBLOCKS_API_KEY") or "").strip()
    return key or None


def get_request_timeout() -> float:
    load_ledger_env()
    return _env_float("NEARBLOCKS_TIMEOUT_SEC", DEFAULT_TIMEOUT_SEC)


def get_default_labels_path() -> Path:
    """Return path to the label store document."""
    return _PACKAGE_DIR / "data" / "tx-labels.json"


def get_labels_path() -> Path:
    """TX_LABELS_PATH if set, else the bundled data directory."""
    load_ledger_env()
    raw = (os.getenv("TX_LABELS_PATH") or "").strip()
    return Path(raw).expanduser() if raw else get_default_labels_path()


def get_search_limit() -> int:
    load_ledger_env()
    return _env_int("HISTORY_SEARCH_LIMIT", DEFAULT_SEARCH_LIMIT)


def get_fetch_limit() -> int:
    load_ledger_env()
    return _env_int("HISTORY_FETCH_LIMIT", DEFAULT_FETCH_LIMIT)
