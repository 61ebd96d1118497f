"""Configuration loading for sendgrid-exporter."""

import os
from dataclasses import dataclass
from pathlib import Path

import yaml

from sendgrid_exporter.sendgrid.client import DEFAULT_API_URL

DEFAULT_LISTEN_ADDR = ":9154"
DEFAULT_METRICS_PATH = "/metrics"

_TRUE = {"1", "true", "yes", "on"}


class ConfigError(Exception):
    """Raised when the configuration cannot be used to start the exporter."""

    pass


def normalize_metrics_path(path: str) -> str:
    """Ensure the metrics path starts with a slash."""
    return path if path.startswith("/") else "/" + path


def _to_bool(value: object) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in _TRUE


def _to_float(name: str, value: object) -> float:
    try:
        return float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError) as e:
        raise ConfigError(f"invalid {name}: {value!r}") from e


def _env_bool(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return _to_bool(value)


@dataclass
class Config:
    """Exporter configuration."""

    api_key: str = ""
    api_url: str = DEFAULT_API_URL
    listen_addr: str = DEFAULT_LISTEN_ADDR
    metrics_path: str = DEFAULT_METRICS_PATH
    log_level: str = "INFO"
    mirror_responses: bool = True
    shutdown_grace_seconds: float = 5.0

    def __post_init__(self) -> None:
        self.metrics_path = normalize_metrics_path(self.metrics_path)

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration from environment variables.

        Raises:
            ConfigError: If a numeric setting is not a number.
        """
        return cls(
            api_key=os.environ.get("SENDGRID_API_KEY", ""),
            api_url=os.environ.get("SENDGRID_API_URL", DEFAULT_API_URL),
            listen_addr=os.environ.get("LISTEN_ADDR") or DEFAULT_LISTEN_ADDR,
            metrics_path=os.environ.get("METRICS_ENDPOINT") or DEFAULT_METRICS_PATH,
            log_level=os.environ.get("LOG_LEVEL", "INFO"),
            mirror_responses=_env_bool("MIRROR_RESPONSES", True),
            shutdown_grace_seconds=_to_float(
                "SHUTDOWN_GRACE_SECONDS", os.environ.get("SHUTDOWN_GRACE_SECONDS", "5")
            ),
        )

    @classmethod
    def from_file(cls, path: Path) -> "Config":
        """Load configuration from YAML file, with env var overrides.

        Raises:
            ConfigError: If a numeric setting is not a number.
        """
        config = cls.from_env()

        if not path.exists():
            return config

        with open(path) as f:
            data = yaml.safe_load(f) or {}

        server = data.get("server") or {}
        if "LISTEN_ADDR" not in os.environ:
            config.listen_addr = str(server.get("listen_addr", config.listen_addr))
        if "METRICS_ENDPOINT" not in os.environ:
            config.metrics_path = normalize_metrics_path(
                str(server.get("metrics_path", config.metrics_path))
            )
        if "SHUTDOWN_GRACE_SECONDS" not in os.environ:
            config.shutdown_grace_seconds = _to_float(
                "shutdown_grace_seconds",
                server.get("shutdown_grace_seconds", config.shutdown_grace_seconds),
            )

        sendgrid = data.get("sendgrid") or {}
        if not config.api_key:
            config.api_key = sendgrid.get("api_key") or ""
        if "SENDGRID_API_URL" not in os.environ:
            config.api_url = sendgrid.get("api_url", config.api_url)
        if "MIRROR_RESPONSES" not in os.environ:
            config.mirror_responses = _to_bool(
                sendgrid.get("mirror_responses", config.mirror_responses)
            )

        logging_section = data.get("logging") or {}
        if "LOG_LEVEL" not in os.environ:
            config.log_level = logging_section.get("level", config.log_level)

        return config

    @property
    def listen_host(self) -> str:
        """Host part of listen_addr; empty means all interfaces."""
        host, _, _ = self.listen_addr.rpartition(":")
        return host.strip("[]") or "0.0.0.0"

    @property
    def listen_port(self) -> int:
        """Port part of listen_addr."""
        _, _, port = self.listen_addr.rpartition(":")
        return int(port)

    def validate(self) -> None:
        """Check the settings needed to start serving.

        Raises:
            ConfigError: If the API key is missing or listen_addr is malformed.
        """
        if not self.api_key:
            raise ConfigError("require env: SENDGRID_API_KEY")

        try:
            port = self.listen_port
        except ValueError as e:
            raise ConfigError(f"invalid listen address: {self.listen_addr!r}") from e
        if not 0 < port < 65536:
            raise ConfigError(f"invalid listen port: {port}")
