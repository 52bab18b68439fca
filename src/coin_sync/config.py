"""Utility helpers for loading project configuration.

This module is the single source of truth for environment-driven
configuration such as API credentials and database connection details.

Usage:
- Call ``load_env_file()`` once at startup to load ``resources/.env``.
- Use ``get_env`` for simple lookups.
- Use the convenience helpers like ``get_coingecko_api_config`` and
  ``get_database_url`` for normalized access.
"""
from __future__ import annotations

import os
from pathlib import Path
from typing import Dict, List, Optional, Union

from dotenv import load_dotenv

DEFAULT_COINGECKO_BASE_URL = "https://api.coingecko.com/api/v3"
DEFAULT_SYNC_INTERVAL_SECONDS = 15 * 60
DEFAULT_PORT = 3001


def load_env_file(env_path: Optional[Union[str, Path]] = None) -> None:
    """
    Load environment variables from .env files.

    Parameters:
        env_path: Optional path to the .env file. Defaults to ``ENV_FILE`` or
            resources/.env, followed by a project-root .env.

    Variables already present in the process environment are never overridden.
    """
    candidates = [env_path] if env_path else [get_env("ENV_FILE") or "resources/.env", ".env"]
    for env_file in candidates:
        if env_file and Path(env_file).exists():
            load_dotenv(env_file, override=False)


def get_env(name: str, default: Optional[str] = None) -> Optional[str]:
    """Fetch an environment variable with an optional default."""
    return os.getenv(name, default)


def _get_bool(name: str, default: bool) -> bool:
    raw = get_env(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _get_float(name: str, default: float) -> float:
    raw = get_env(name)
    if raw is None or raw.strip() == "":
        return default
    return float(raw)


# ----- CoinGecko API helpers -----

def get_coingecko_api_config() -> Dict[str, object]:
    """Return CoinGecko API-related configuration gathered from environment.

    Keys:
    - COINGECKO_API_KEY (demo key, required for every sync cycle)
    - COINGECKO_BASE_URL
    - COINGECKO_TIMEOUT_SECONDS
    """
    return {
        "COINGECKO_API_KEY": get_env("COINGECKO_API_KEY") or None,
        "COINGECKO_BASE_URL": get_env("COINGECKO_BASE_URL") or DEFAULT_COINGECKO_BASE_URL,
        "COINGECKO_TIMEOUT_SECONDS": _get_float("COINGECKO_TIMEOUT_SECONDS", 30.0),
    }


def get_coingecko_api_key() -> Optional[str]:
    return get_coingecko_api_config()["COINGECKO_API_KEY"]  # type: ignore[return-value]


# ----- Sync helpers -----

def get_sync_config() -> Dict[str, object]:
    """Return the recurring sync settings.

    Keys:
    - SYNC_ENABLED (default true)
    - SYNC_INTERVAL_SECONDS (default 900)
    - SYNC_PER_PAGE (default 100)
    - SYNC_VS_CURRENCY (default usd)
    """
    return {
        "SYNC_ENABLED": _get_bool("SYNC_ENABLED", True),
        "SYNC_INTERVAL_SECONDS": _get_float("SYNC_INTERVAL_SECONDS", float(DEFAULT_SYNC_INTERVAL_SECONDS)),
        "SYNC_PER_PAGE": int(get_env("SYNC_PER_PAGE") or 100),
        "SYNC_VS_CURRENCY": (get_env("SYNC_VS_CURRENCY") or "usd").lower(),
    }


# ----- Web helpers -----

def get_port() -> int:
    return int(get_env("PORT") or DEFAULT_PORT)


def get_cors_origins() -> List[str]:
    raw = get_env("CORS_ORIGINS") or "*"
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


# ----- Database helpers -----

def get_database_url() -> Optional[str]:
    """Return a database URL for the coin market store.

    Prefers ``DATABASE_URL`` if present; otherwise constructs a DSN from:
    - DB_DRIVER (default postgresql+psycopg2), DB_HOST, DB_PORT, DB_NAME,
      DB_USER, DB_PASSWORD
    """
    db_url = get_env("DATABASE_URL")
    if db_url:
        return db_url

    driver = get_env("DB_DRIVER") or "postgresql+psycopg2"
    host = get_env("DB_HOST")
    port = get_env("DB_PORT") or ("3306" if driver.startswith("mysql") else "5432")
    name = get_env("DB_NAME")
    user = get_env("DB_USER")
    password = get_env("DB_PASSWORD")

    if not (host and name and user and password):
        return None

    return f"{driver}://{user}:{password}@{host}:{port}/{name}"


def get_db_pool_config() -> Dict[str, int]:
    """Pool sizing for non-SQLite engines (DB_POOL_SIZE, DB_MAX_OVERFLOW)."""
    return {
        "pool_size": int(get_env("DB_POOL_SIZE") or 10),
        "max_overflow": int(get_env("DB_MAX_OVERFLOW") or 0),
    }
