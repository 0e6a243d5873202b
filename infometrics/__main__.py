"""Command line entry point: ``python -m infometrics`` / ``infometrics``.

Starts the metrics endpoint, publishes build info for the configured
service and keeps the config reload metrics current by polling the config
file.
"""
from __future__ import annotations

import argparse
import logging
import signal
import threading

from dotenv import find_dotenv, load_dotenv

from . import __version__
from .config import InfoMetricsConfig
from .metrics import InfoMetrics, set_info_metrics, setup_metrics_server
from .reloader import ConfigReloader
from .utils.logging_utils import setup_logging

logger = logging.getLogger(__name__)


def parse_arguments(argv: list[str] | None = None, defaults: InfoMetricsConfig | None = None) -> argparse.Namespace:
    cfg = defaults or InfoMetricsConfig()
    parser = argparse.ArgumentParser(description='Info metrics exporter')
    parser.add_argument('--service', default=cfg.service,
                        help=f'Service label for the exported metrics (default: {cfg.service})')
    parser.add_argument('--config', default=cfg.config_file,
                        help=f'Path to the JSON config file to watch (default: {cfg.config_file})')
    parser.add_argument('--host', default=cfg.metrics_host, help='Metrics bind address')
    parser.add_argument('--port', type=int, default=cfg.metrics_port, help='Metrics port')
    parser.add_argument('--interval', type=float, default=cfg.reload_interval,
                        help='Seconds between config reload checks')
    parser.add_argument('--log-level', choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
                        default=cfg.log_level, help='Set the logging level')
    parser.add_argument('--once', action='store_true',
                        help='Load the config once and exit without serving')
    parser.add_argument('--version', action='version', version=f'infometrics {__version__}')
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    load_dotenv(find_dotenv(usecwd=True))
    cfg = InfoMetricsConfig.from_env()
    args = parse_arguments(argv, cfg)
    setup_logging(args.log_level, cfg.log_file, json_logs=cfg.json_logs)

    info = InfoMetrics(namespace=cfg.namespace)
    set_info_metrics(info)
    info.register_views()
    info.register_info_metrics()
    info.register_view_exporter()
    info.set_build_info(args.service)

    reloader = ConfigReloader(info, args.service, args.config)
    if args.once:
        return 0 if reloader.reload() else 1

    _registry, shutdown = setup_metrics_server(args.port, args.host)
    stop = threading.Event()

    def _on_signal(sig, _frame):
        logger.info("Received signal %s, shutting down", sig)
        stop.set()

    signal.signal(signal.SIGINT, _on_signal)
    signal.signal(signal.SIGTERM, _on_signal)
    try:
        reloader.run(args.interval, stop)
    finally:
        shutdown()
    return 0


if __name__ == '__main__':
    raise SystemExit(main())
