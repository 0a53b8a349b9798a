"""Configuration data structures."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class NomadConfig:
    """Nomad API connection settings."""

    address: str = "http://127.0.0.1:4646"
    token: str = ""
    region: str = ""
    namespace: str = ""


@dataclass
class WatcherConfig:
    """Job change watcher configuration."""

    enabled: bool = True
    reconnect_max_backoff: int = 30
    history_size: int = 500


@dataclass
class APIConfig:
    """REST API configuration."""

    port: int = 8080


@dataclass
class LogConfig:
    """Logging configuration."""

    level: str = "info"


@dataclass
class NomadOpsConfig:
    """Top-level nomadops configuration."""

    nomad: NomadConfig = field(default_factory=NomadConfig)
    watcher: WatcherConfig = field(default_factory=WatcherConfig)
    api: APIConfig = field(default_factory=APIConfig)
    log: LogConfig = field(default_factory=LogConfig)
