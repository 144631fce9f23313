"""Poll loop: count rows, emit, sleep, repeat."""

from __future__ import annotations

import logging
import threading
import time
from typing import Optional

from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from .config import ExporterConfig
from .db_queries import count_rows
from .models import Sample
from .sinks import Sink

logger = logging.getLogger(__name__)


def collect_sample(engine: Engine, table: str) -> Sample:
    """Run the count query; any DB failure yields the sentinel sample."""
    try:
        with engine.connect() as conn:
            return Sample(value=count_rows(conn, table))
    except (SQLAlchemyError, ValueError) as e:
        logger.error("[POLL] Row count query on %s failed: %s", table, e)
        return Sample.failed()


def emit_sample(sink: Sink, sample: Sample) -> bool:
    """Hand the sample to the sink. Returns False when the sink failed."""
    try:
        sink.emit(sample)
    except OSError as e:
        logger.error("[SINK] Writing to %s failed: %s", sink.target, e)
        return False
    logger.info("[SINK] Wrote value=%d to %s", sample.value, sink.target)
    return True


def poll_once(engine: Engine, cfg: ExporterConfig, sink: Sink) -> Sample:
    """One full cycle without the sleep."""
    t0 = time.monotonic()
    sample = collect_sample(engine, cfg.table)
    emitted = emit_sample(sink, sample)
    logger.debug(
        "poll_cycle ms=%.1f table=%s value=%d ok=%s emitted=%s",
        (time.monotonic() - t0) * 1000, cfg.table, sample.value, sample.ok, emitted,
    )
    return sample


class Poller:
    """Runs poll_once every ``interval_seconds`` until stopped.

    ``stop()`` may be called from a signal handler or another thread; the
    cycle in progress finishes and the pending wait returns immediately.
    """

    def __init__(self, engine: Engine, cfg: ExporterConfig, sink: Sink):
        self._engine = engine
        self._cfg = cfg
        self._sink = sink
        self._stop = threading.Event()
        self.cycles = 0
        self.last_sample: Optional[Sample] = None

    @property
    def stopped(self) -> bool:
        return self._stop.is_set()

    def stop(self) -> None:
        self._stop.set()

    def run(self) -> None:
        logger.info("[POLL] Starting monitoring with interval %.1fs", self._cfg.interval_seconds)
        while not self._stop.is_set():
            try:
                self.last_sample = poll_once(self._engine, self._cfg, self._sink)
            except Exception:
                if self._cfg.once:
                    raise
                logger.exception("[POLL] Unexpected error in cycle, continuing")
            self.cycles += 1

            if self._cfg.once:
                return
            self._stop.wait(self._cfg.interval_seconds)
        logger.info("[POLL] Stopped after %d cycles", self.cycles)
