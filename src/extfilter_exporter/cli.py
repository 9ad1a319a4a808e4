"""CLI entry point for extfilter_exporter."""

from __future__ import annotations

import argparse
import logging
import signal
import sys
import threading
from pathlib import Path

from extfilter_exporter import __version__

logger = logging.getLogger(__name__)

_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="extfilter-exporter",
        description="Prometheus exporter for extfilter statistics.",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"extfilter-exporter {__version__}",
    )
    parser.add_argument(
        "--web.listen-address",
        dest="listen_address",
        default=None,
        metavar="ADDR",
        help="Address on which to expose metrics (default: :9513)",
    )
    parser.add_argument(
        "--web.telemetry-path",
        dest="telemetry_path",
        default=None,
        metavar="PATH",
        help="Path under which to expose metrics (default: /metrics)",
    )
    parser.add_argument(
        "--extfilter.stats-path",
        dest="stats_path",
        type=Path,
        default=None,
        metavar="FILE",
        help="ExtFilter stats file",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        metavar="PATH",
        help="Path to config TOML file",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Logging level (default: INFO)",
    )
    return parser


def _wait_for_shutdown() -> None:
    """Block until SIGINT or SIGTERM."""
    stop = threading.Event()

    def _on_signal(signum: int, frame: object) -> None:
        stop.set()

    signal.signal(signal.SIGTERM, _on_signal)
    signal.signal(signal.SIGINT, _on_signal)
    stop.wait()


def main(argv: list[str] | None = None) -> None:
    """Entry point for the extfilter-exporter CLI."""
    from prometheus_client import CollectorRegistry

    from extfilter_exporter.base import ConfigError
    from extfilter_exporter.collector import ExtfilterCollector
    from extfilter_exporter.config import apply_overrides, load_config
    from extfilter_exporter.server import MetricsServer, make_app

    args = _build_parser().parse_args(argv)

    try:
        config = apply_overrides(
            load_config(args.config),
            stats_path=args.stats_path,
            listen_address=args.listen_address,
            telemetry_path=args.telemetry_path,
            log_level=args.log_level,
        )
    except ConfigError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from None

    logging.basicConfig(level=config.logging.level, format=_LOG_FORMAT)

    if config.stats.path is None:
        print("Error: Extfilter stats file is not provided", file=sys.stderr)
        raise SystemExit(1)

    registry = CollectorRegistry()
    registry.register(ExtfilterCollector(config.stats.path))

    host, port = config.web.bind
    try:
        server = MetricsServer(host, port, make_app(registry, config.web.telemetry_path))
    except OSError as exc:
        logger.error("Unable to start extfilter exporter: %s", exc)
        raise SystemExit(1) from None

    server.start()
    logger.info(
        "Starting extfilter exporter on %s%s",
        config.web.listen_address,
        config.web.telemetry_path,
    )
    try:
        _wait_for_shutdown()
    finally:
        server.stop()
        logger.info("Exporter stopped")
