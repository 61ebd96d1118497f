"""CLI for sendgrid-exporter.

Usage:
    sendgrid-exporter
    sendgrid-exporter --listen-addr :9154 --metrics-path /metrics
    sendgrid-exporter --config /etc/sendgrid-exporter.yaml -v
"""

import signal
import sys
import threading
from pathlib import Path
from types import FrameType

import click

from sendgrid_exporter import __version__
from sendgrid_exporter.config import Config, ConfigError, normalize_metrics_path
from sendgrid_exporter.logging import configure_logging, get_logger
from sendgrid_exporter.metrics import MetricsServer, SendGridCollector, build_registry
from sendgrid_exporter.sendgrid import StatsClient

SERVICE_NAME = "sendgrid-exporter"

log = get_logger(__name__)


def load_config(
    config_path: Path | None,
    listen_addr: str | None,
    metrics_path: str | None,
    log_level: str | None,
    verbose: bool,
) -> Config:
    """Resolve configuration: flags over env over file."""
    config = Config.from_file(config_path) if config_path else Config.from_env()
    if listen_addr:
        config.listen_addr = listen_addr
    if metrics_path:
        config.metrics_path = normalize_metrics_path(metrics_path)
    if log_level:
        config.log_level = log_level
    if verbose:
        config.log_level = "DEBUG"
    return config


def serve(config: Config, stop_event: threading.Event | None = None) -> None:
    """Serve metrics until ``stop_event`` is set, then shut down gracefully."""
    stop_event = stop_event or threading.Event()

    client = StatsClient.from_config(config.api_key, config.api_url, config.mirror_responses)
    registry = build_registry(SendGridCollector(client))
    server = MetricsServer(
        registry,
        host=config.listen_host,
        port=config.listen_port,
        metrics_path=config.metrics_path,
    )
    server.start()

    try:
        stop_event.wait()
    finally:
        log.info("Shutting down", grace_seconds=config.shutdown_grace_seconds)
        server.stop(config.shutdown_grace_seconds)
        client.close()


def _install_signal_handlers(stop_event: threading.Event) -> None:
    def handle(signum: int, frame: FrameType | None) -> None:
        log.info("Received shutdown signal", signal=signal.Signals(signum).name)
        stop_event.set()

    signal.signal(signal.SIGTERM, handle)
    signal.signal(signal.SIGINT, handle)


@click.command()
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=False, path_type=Path),
    default=None,
    help="YAML config file path",
)
@click.option("--listen-addr", default=None, help="Address to listen on (host:port)")
@click.option("--metrics-path", default=None, help="Path under which to expose metrics")
@click.option("--log-level", default=None, help="Log level (DEBUG, INFO, WARNING, ERROR)")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.version_option(__version__, prog_name=SERVICE_NAME)
def main(
    config_path: Path | None,
    listen_addr: str | None,
    metrics_path: str | None,
    log_level: str | None,
    verbose: bool,
) -> None:
    """Export SendGrid email statistics as Prometheus metrics."""
    try:
        config = load_config(config_path, listen_addr, metrics_path, log_level, verbose)
    except ConfigError as e:
        click.echo(f"Invalid configuration: {e}", err=True)
        sys.exit(1)

    try:
        configure_logging(SERVICE_NAME, config.log_level)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="--log-level") from e

    try:
        config.validate()
    except ConfigError as e:
        log.critical("Invalid configuration", error=str(e))
        sys.exit(1)

    log.info(
        "Starting sendgrid_exporter",
        version=__version__,
        listen_addr=config.listen_addr,
        metrics_path=config.metrics_path,
    )

    stop_event = threading.Event()
    _install_signal_handlers(stop_event)
    serve(config, stop_event)


if __name__ == "__main__":
    main()
