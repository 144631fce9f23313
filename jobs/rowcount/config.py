"""Exporter configuration."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

# Same units as Go's time.ParseDuration, which the -interval flag mirrors.
_DURATION_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "μs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}
_DURATION_PART_RE = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|μs|ms|s|m|h)")
_IDENT = r'(?:[A-Za-z_][A-Za-z0-9_$]*|"(?:[^"]|"")+")'
_TABLE_NAME_RE = re.compile(rf"{_IDENT}(?:\.{_IDENT})?")


class ConfigError(ValueError):
    """Startup configuration is unusable; the exporter must not start."""


def validate_table_name(table: str) -> str:
    """Reject anything but a plain or schema-qualified identifier.

    Each part is either a bare name or a double-quoted identifier
    (``"MyTable"``, ``public."Orders"``) with embedded quotes doubled.

    The name is interpolated into SQL, so unbalanced quotes, whitespace and
    statement separators outside a quoted part never reach the database.
    """
    if not _TABLE_NAME_RE.fullmatch(table):
        raise ConfigError(f"invalid table name: {table!r}")
    return table


def parse_duration(value: str) -> float:
    """Parse a duration like ``1m``, ``30s`` or ``1h30m`` into seconds.

    A sign is allowed, a bare ``0`` is zero, anything else needs a unit.
    """
    s = value.strip()
    if not s:
        raise ConfigError("invalid duration: empty string")

    sign = 1.0
    if s[0] in "+-":
        sign = -1.0 if s[0] == "-" else 1.0
        s = s[1:]
    if s == "0":
        return 0.0

    pos = 0
    total = 0.0
    while pos < len(s):
        m = _DURATION_PART_RE.match(s, pos)
        if m is None:
            raise ConfigError(f"invalid duration: {value!r}")
        total += float(m.group(1)) * _DURATION_UNITS[m.group(2)]
        pos = m.end()
    if pos == 0:
        raise ConfigError(f"invalid duration: {value!r}")
    return sign * total


@dataclass(frozen=True)
class ExporterConfig:
    """Opciones resueltas una sola vez al arrancar."""
    interval_seconds: float
    dsn: str
    table: str
    metric: str
    job: str
    instance: str
    output_dir: Optional[str] = None
    pushgateway: Optional[str] = None
    once: bool = False

    @property
    def push_mode(self) -> bool:
        return bool(self.pushgateway)

    @property
    def help_text(self) -> str:
        return f"Row count for table {self.table}"


def build_config(
    *,
    interval: str,
    dsn: str,
    table: str,
    metric: str,
    output_dir: str,
    job: str,
    instance: str,
    pushgateway: str = "",
    once: bool = False,
) -> ExporterConfig:
    """Validate raw option strings and freeze them into an ExporterConfig.

    Push mode is selected when ``pushgateway`` is non-empty; it needs a job
    but no output directory. File mode needs output directory, job and
    instance. Raises ConfigError naming every missing option at once.
    """
    required = {"dsn": dsn, "table": table, "metric": metric, "job": job}
    if pushgateway:
        required["pushgateway"] = pushgateway
    else:
        required.update({"output-dir": output_dir, "instance": instance})

    missing = [name for name, v in required.items() if not (v or "").strip()]
    if missing:
        raise ConfigError("missing required options: " + ", ".join("-" + m for m in missing))

    seconds = parse_duration(interval)
    if seconds <= 0:
        raise ConfigError(f"interval must be positive, got {interval!r}")

    validate_table_name(table)

    return ExporterConfig(
        interval_seconds=seconds,
        dsn=dsn,
        table=table,
        metric=metric,
        job=job,
        instance=instance,
        output_dir=None if pushgateway else output_dir,
        pushgateway=pushgateway or None,
        once=once,
    )
