from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv


DEFAULT_INTERVAL = "1m"
DEFAULT_OUTPUT_DIR = "/opt/node-exporter/prom"
DEFAULT_JOB = "postgres_monitor"
DEFAULT_INSTANCE = "localhost"
DEFAULT_LOG_LEVEL = "INFO"


@dataclass(frozen=True)
class Settings:
    interval: str
    dsn: str
    table: str
    metric: str

    output_dir: str
    job: str
    instance: str
    pushgateway: str

    log_level: str


def get_settings() -> Settings:
    # Load env file (if present) but still allow overriding via real environment variables.
    env_file = os.getenv("ROWCOUNT_ENV_FILE", ".env")
    if env_file and Path(env_file).exists():
        load_dotenv(env_file, override=False)

    return Settings(
        interval=os.getenv("ROWCOUNT_INTERVAL", DEFAULT_INTERVAL),
        dsn=os.getenv("ROWCOUNT_DSN", ""),
        table=os.getenv("ROWCOUNT_TABLE", ""),
        metric=os.getenv("ROWCOUNT_METRIC", ""),
        output_dir=os.getenv("ROWCOUNT_OUTPUT_DIR", DEFAULT_OUTPUT_DIR),
        job=os.getenv("ROWCOUNT_JOB", DEFAULT_JOB),
        instance=os.getenv("ROWCOUNT_INSTANCE", DEFAULT_INSTANCE),
        # Empty means file mode.
        pushgateway=os.getenv("ROWCOUNT_PUSHGATEWAY", ""),
        log_level=os.getenv("ROWCOUNT_LOG_LEVEL", DEFAULT_LOG_LEVEL),
    )
