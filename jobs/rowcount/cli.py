"""CLI entry point for the row count exporter."""

from __future__ import annotations

import argparse
import logging
import signal
import sys
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import ArgumentError

from common.config import Settings, get_settings
from common.db import get_engine

from .config import ConfigError, ExporterConfig, build_config
from .metrics import build_row_count_gauge
from .runner import Poller
from .sinks import FileSink, PushSink, Sink

logger = logging.getLogger(__name__)

EXIT_FATAL = 1
LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def build_parser(settings: Settings) -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="rowcount-exporter",
        description="Export a table's row count as a Prometheus metric (textfile or Pushgateway)",
    )
    p.add_argument("-interval", "--interval", default=settings.interval,
                   help="check interval, e.g. 1m, 30s (default: %(default)s)")
    p.add_argument("-dsn", "--dsn", default=settings.dsn, help="database DSN / SQLAlchemy URL")
    p.add_argument("-table", "--table", default=settings.table, help="table name to monitor")
    p.add_argument("-metric", "--metric", default=settings.metric, help="Prometheus metric name")
    p.add_argument("-output-dir", "--output-dir", dest="output_dir", default=settings.output_dir,
                   help="directory to write Prometheus metric files (default: %(default)s)")
    p.add_argument("-job", "--job", default=settings.job, help="job label (default: %(default)s)")
    p.add_argument("-instance", "--instance", default=settings.instance,
                   help="instance label (default: %(default)s)")
    p.add_argument("-pushgateway", "--pushgateway", default=settings.pushgateway,
                   help="Pushgateway address; enables push mode instead of writing files")
    p.add_argument("-log-level", "--log-level", dest="log_level", type=str.upper,
                   choices=LOG_LEVELS,
                   default=settings.log_level.upper())
    p.add_argument("-once", "--once", action="store_true", help="run a single iteration and exit")
    return p


def build_sink(cfg: ExporterConfig) -> Sink:
    registry, gauge = build_row_count_gauge(cfg.metric, cfg.help_text)
    if cfg.push_mode:
        return PushSink(cfg.pushgateway, cfg.job, registry, gauge, instance=cfg.instance)
    return FileSink(cfg.output_dir, cfg.metric, cfg.instance, cfg.job)


def _install_signal_handlers(poller: Poller) -> Dict[int, Any]:
    def _handler(signum, _frame):
        logger.info("Received %s, stopping", signal.Signals(signum).name)
        poller.stop()

    previous = {}
    for signum in (signal.SIGINT, signal.SIGTERM):
        previous[signum] = signal.getsignal(signum)
        signal.signal(signum, _handler)
    return previous


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser(get_settings())
    args = parser.parse_args(argv)
    # argparse checks choices on given flags only, not on env defaults.
    if args.log_level not in LOG_LEVELS:
        parser.error(f"invalid log level {args.log_level!r} (choose from {', '.join(LOG_LEVELS)})")

    logging.basicConfig(
        level=args.log_level,
        format="%(asctime)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler()],
    )

    try:
        cfg = build_config(
            interval=args.interval,
            dsn=args.dsn,
            table=args.table,
            metric=args.metric,
            output_dir=args.output_dir,
            job=args.job,
            instance=args.instance,
            pushgateway=args.pushgateway,
            once=bool(args.once),
        )
        sink = build_sink(cfg)
        engine = get_engine(cfg.dsn)
    except (ConfigError, ArgumentError, ImportError) as e:
        logger.critical("Startup failed: %s", e)
        raise SystemExit(EXIT_FATAL)

    logger.info(
        "Row count exporter started table=%s metric=%s sink=%s",
        cfg.table, cfg.metric, sink.target,
    )

    poller = Poller(engine, cfg, sink)
    previous_handlers = _install_signal_handlers(poller)
    try:
        poller.run()
    finally:
        engine.dispose()
        for signum, handler in previous_handlers.items():
            signal.signal(signum, handler)
    return 0


if __name__ == "__main__":
    sys.exit(main())
