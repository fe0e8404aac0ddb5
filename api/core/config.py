"""
Service configuration.

Settings are read from the environment once at startup (after the optional
`.env` file has been loaded) and handed to the rest of the service through
`app.state.settings` / the `get_settings` dependency.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from fastapi import Request

DEFAULT_MIGRATIONS_DIR = Path(__file__).resolve().parents[2] / "db" / "migrations"


def _env_str(name: str, default: str = "") -> str:
    return os.environ.get(name, "").strip() or default


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    database_url: str = ""
    db_host: str = "localhost"
    db_port: int = 5432
    db_user: str = "postgres"
    db_name: str = "postgres"
    db_password: str = field(default="", repr=False)
    db_sslmode: str = "disable"
    db_pool_max_size: int = 5

    api_url: str = ""
    api_timeout_s: float = 5.0

    server_host: str = "0.0.0.0"
    server_port: int = 8002
    log_level: str = "INFO"
    migrations_dir: Path = DEFAULT_MIGRATIONS_DIR

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            database_url=_env_str("DATABASE_URL"),
            db_host=_env_str("DB_HOST", "localhost"),
            db_port=_env_int("DB_PORT", 5432),
            db_user=_env_str("DB_USERNAME", "postgres"),
            db_name=_env_str("DB_NAME", "postgres"),
            db_password=os.environ.get("DB_PASSWORD", ""),
            db_sslmode=_env_str("DB_SSLMODE", "disable"),
            db_pool_max_size=max(1, _env_int("DB_POOL_MAX_SIZE", 5)),
            api_url=_env_str("API_URL"),
            api_timeout_s=_env_float("API_TIMEOUT_S", 5.0),
            server_host=_env_str("SERVER_HOST", "0.0.0.0"),
            server_port=_env_int("SERVER_PORT", 8002),
            log_level=_env_str("LOG_LEVEL", "INFO"),
            migrations_dir=Path(_env_str("MIGRATIONS_DIR", str(DEFAULT_MIGRATIONS_DIR))),
        )


def get_settings(request: Request) -> Settings:
    return request.app.state.settings
