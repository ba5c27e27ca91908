from __future__ import annotations

import os
from dataclasses import dataclass
from typing import List

DEFAULT_MAX_RECORD_BYTES = 1024


@dataclass(frozen=True)
class Settings:
    """
    Application settings loaded from environment variables.

    Env vars:
    - CAMPAIGN_DB_PATH: path to the sqlite file holding the durable regions. Default './data/campaigns.db'
    - MAX_RECORD_BYTES: upper bound for an encoded campaign record (default: 1024)
    - CORS_ALLOW_ORIGINS: comma-separated list of allowed origins; '*' by default
    - LOG_LEVEL: logging level name (default: INFO)
    """

    db_path: str
    max_record_bytes: int
    cors_allow_origins: List[str]
    log_level: str


def _get_env(name: str, default: str) -> str:
    value = os.getenv(name, default)
    if value is None or value == "":
        return default
    return value


def _parse_positive_int(value: str, default: int) -> int:
    try:
        parsed = int(value.strip())
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _parse_origins(origins_value: str) -> List[str]:
    """
    Parse CORS origins from env. Supports:
    - '*' to allow all origins
    - Comma-separated list of origins
    """
    value = origins_value.strip()
    if value == "*":
        return ["*"]
    return [o.strip() for o in value.split(",") if o.strip()]


# PUBLIC_INTERFACE
def get_settings() -> Settings:
    """Return application settings loaded from environment variables."""
    db_path = _get_env("CAMPAIGN_DB_PATH", "./data/campaigns.db").strip()
    max_bytes = _parse_positive_int(
        _get_env("MAX_RECORD_BYTES", str(DEFAULT_MAX_RECORD_BYTES)), DEFAULT_MAX_RECORD_BYTES
    )
    origins = _parse_origins(_get_env("CORS_ALLOW_ORIGINS", "*"))

    log_level = _get_env("LOG_LEVEL", "INFO").strip().upper()
    if log_level not in {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}:
        # Fallback to INFO if unsupported
        log_level = "INFO"

    return Settings(
        db_path=db_path,
        max_record_bytes=max_bytes,
        cors_allow_origins=origins,
        log_level=log_level,
    )
