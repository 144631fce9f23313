"""Row count exporter package.

Modules:
- config: ExporterConfig dataclass, duration parsing, startup validation
- db_queries: count(*) query
- models: Sample and the failure sentinel
- metrics: Prometheus gauge/registry and exposition line formatting
- sinks: textfile (.prom) and Pushgateway sinks
- runner: poll_once + Poller loop
- cli: CLI entry point (main)
"""

from .config import ConfigError, ExporterConfig
from .runner import Poller, poll_once
from .cli import main

__all__ = ["ConfigError", "ExporterConfig", "Poller", "poll_once", "main"]
