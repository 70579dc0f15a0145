"""Configuration helpers and Settings container.

This module provides a small `Settings` dataclass and `get_settings` which
reads environment variables (including a check that `APP_ENV` is one of the
supported environments).
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
import os

from dotenv import load_dotenv

# Explicitly load .env from project root
PROJECT_ROOT = Path(__file__).resolve().parents[2]
load_dotenv(PROJECT_ROOT / ".env")

APP_ENVS = ("development", "production")


@dataclass(frozen=True)
class Settings:
    """Container for service configuration read from the environment.

    Attributes:
        mongo_uri: MongoDB connection URI.
        mongo_db: Target MongoDB database name.
        mongo_tls: Whether to connect with TLS using the certifi CA bundle.
        app_env: Either "development" or "production"; controls error detail.
        log_level: Name of the root logging level.
    """
    mongo_uri: str
    mongo_db: str
    mongo_tls: bool
    app_env: str
    log_level: str


def _env_flag(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def get_settings() -> Settings:
    """Read environment variables and return a frozen `Settings` object.

    Raises:
        RuntimeError: if `APP_ENV` is set to an unsupported value.
    """
    mongo_uri = os.getenv("MONGO_URI", "mongodb://localhost:27017")
    mongo_db = os.getenv("MONGO_DB", "tour_booking")
    mongo_tls = _env_flag("MONGO_TLS")
    app_env = os.getenv("APP_ENV", "development").strip().lower()
    log_level = os.getenv("LOG_LEVEL", "INFO").strip().upper()

    if app_env not in APP_ENVS:
        raise RuntimeError(
            f"APP_ENV must be one of {', '.join(APP_ENVS)} (got {app_env!r})."
        )

    return Settings(
        mongo_uri=mongo_uri,
        mongo_db=mongo_db,
        mongo_tls=mongo_tls,
        app_env=app_env,
        log_level=log_level,
    )
