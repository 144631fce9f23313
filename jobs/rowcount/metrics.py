"""Prometheus metric objects and exposition-format helpers."""

from __future__ import annotations

import re
from typing import Tuple

from prometheus_client import CollectorRegistry, Gauge

from .config import ConfigError

_METRIC_NAME_RE = re.compile(r"[a-zA-Z_:][a-zA-Z0-9_:]*")


def build_row_count_gauge(metric: str, help_text: str) -> Tuple[CollectorRegistry, Gauge]:
    """Create a private registry holding one row count gauge.

    A bad metric name (or a clash inside the registry) is a startup error.
    """
    if not _METRIC_NAME_RE.fullmatch(metric):
        # Unquoted names only: the .prom line is written without quoting.
        raise ConfigError(f"failed to register metric {metric!r}: invalid metric name")
    registry = CollectorRegistry(auto_describe=True)
    try:
        gauge = Gauge(metric, help_text, registry=registry)
    except ValueError as e:
        raise ConfigError(f"failed to register metric {metric!r}: {e}") from e
    return registry, gauge


def escape_label_value(value: str) -> str:
    return value.replace("\\", r"\\").replace("\n", r"\n").replace('"', r"\"")


def format_sample_line(metric: str, instance: str, job: str, value: int) -> str:
    """Single exposition line, labels sorted by name, trailing newline."""
    return (
        f'{metric}{{instance="{escape_label_value(instance)}",'
        f'job="{escape_label_value(job)}"}} {value}\n'
    )
