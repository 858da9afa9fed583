"""Configuration loading for Eventboard."""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml


@dataclass
class RemoteConfig:
    """Remote event service endpoints."""

    base_url: str = "http://localhost:5001"
    timeout_seconds: float = 10.0
    read_path: str = "/data"
    write_path: str = "/events"


@dataclass
class DashboardConfig:
    host: str = "127.0.0.1"
    port: int = 8080
    title: str = "Events"


@dataclass
class Config:
    remote: RemoteConfig = field(default_factory=RemoteConfig)
    dashboard: DashboardConfig = field(default_factory=DashboardConfig)


def _get_env(key: str, default: Any = None) -> Any:
    """Get environment variable with EVENTBOARD_ prefix."""
    return os.environ.get(f"EVENTBOARD_{key}", default)


def _apply_env_overrides(config: Config) -> Config:
    """Apply environment variable overrides to config."""
    # Remote overrides
    if base_url := _get_env("BASE_URL"):
        config.remote.base_url = base_url
    if timeout := _get_env("TIMEOUT"):
        config.remote.timeout_seconds = float(timeout)
    if read_path := _get_env("READ_PATH"):
        config.remote.read_path = read_path
    if write_path := _get_env("WRITE_PATH"):
        config.remote.write_path = write_path

    # Dashboard overrides
    if host := _get_env("DASHBOARD_HOST"):
        config.dashboard.host = host
    if port := _get_env("DASHBOARD_PORT"):
        config.dashboard.port = int(port)
    if title := _get_env("DASHBOARD_TITLE"):
        config.dashboard.title = title

    return config


def load_config(config_path: str | Path | None = None) -> Config:
    """Load configuration from YAML file with environment variable overrides.

    Args:
        config_path: Path to YAML config file. If None, uses default config.

    Returns:
        Loaded Config object.
    """
    config = Config()

    if config_path:
        path = Path(config_path)
        if path.exists():
            with open(path) as f:
                data = yaml.safe_load(f) or {}

            # Parse remote config
            if "remote" in data:
                remote_data = data["remote"] or {}
                config.remote = RemoteConfig(
                    base_url=remote_data.get("base_url", config.remote.base_url),
                    timeout_seconds=remote_data.get(
                        "timeout_seconds", config.remote.timeout_seconds
                    ),
                    read_path=remote_data.get("read_path", config.remote.read_path),
                    write_path=remote_data.get("write_path", config.remote.write_path),
                )

            # Parse dashboard config
            if "dashboard" in data:
                dash_data = data["dashboard"] or {}
                config.dashboard = DashboardConfig(
                    host=dash_data.get("host", config.dashboard.host),
                    port=dash_data.get("port", config.dashboard.port),
                    title=dash_data.get("title", config.dashboard.title),
                )

    # Apply environment variable overrides
    config = _apply_env_overrides(config)

    config.remote.base_url = config.remote.base_url.rstrip("/")

    return config
