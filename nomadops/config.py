"""Configuration loading from environment variables.

Nomad connection settings honour the standard ``NOMAD_*`` variables the
Nomad CLI uses; everything else is read from ``NOMADOPS_*``.
"""

from __future__ import annotations

import os

from nomadops.models.config import (
    APIConfig,
    LogConfig,
    NomadConfig,
    NomadOpsConfig,
    WatcherConfig,
)


def _env(key: str, default: str = "") -> str:
    return os.environ.get(f"NOMADOPS_{key}", default)


def _nomad_env(key: str, default: str = "") -> str:
    return os.environ.get(f"NOMAD_{key}", default)


def _env_bool(key: str, default: bool = False) -> bool:
    val = _env(key, str(default).lower())
    return val.lower() in ("true", "1", "yes")


def _env_int(key: str, default: int, min_val: int | None = None, max_val: int | None = None) -> int:
    val = int(_env(key, str(default)))
    if min_val is not None:
        val = max(val, min_val)
    if max_val is not None:
        val = min(val, max_val)
    return val


def _validate_address(value: str) -> str:
    if not value.startswith(("http://", "https://")):
        raise ValueError(f"Invalid Nomad address: {value}. Must start with http:// or https://")
    return value.rstrip("/")


def _validate_log_level(value: str) -> str:
    valid = {"debug", "info", "warning", "error"}
    if value.lower() not in valid:
        raise ValueError(f"Invalid log level: {value}. Must be one of {valid}")
    return value.lower()


def load_config() -> NomadOpsConfig:
    """Load configuration from NOMAD_* and NOMADOPS_* environment variables."""
    return NomadOpsConfig(
        nomad=NomadConfig(
            address=_validate_address(_nomad_env("ADDR", "http://127.0.0.1:4646")),
            # an explicit nomadops token wins over the ambient CLI token
            token=_env("NOMAD_TOKEN") or _nomad_env("TOKEN"),
            region=_nomad_env("REGION"),
            namespace=_nomad_env("NAMESPACE"),
        ),
        watcher=WatcherConfig(
            enabled=_env_bool("WATCHER_ENABLED", True),
            reconnect_max_backoff=_env_int("WATCHER_RECONNECT_MAX_BACKOFF", 30, min_val=1, max_val=300),
            history_size=_env_int("WATCHER_HISTORY_SIZE", 500, min_val=10, max_val=10000),
        ),
        api=APIConfig(
            port=_env_int("API_PORT", 8080, min_val=1024, max_val=65535),
        ),
        log=LogConfig(
            level=_validate_log_level(_env("LOG_LEVEL", "info")),
        ),
    )
