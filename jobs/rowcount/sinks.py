"""Sinks - where each poll cycle's sample ends up.

FileSink writes a textfile-collector ``.prom`` file, PushSink pushes to a
Pushgateway. Both raise on I/O failure; the poller logs and carries on.
"""

from __future__ import annotations

import logging
import os
from abc import ABC, abstractmethod
from typing import Callable, Dict, Optional

from prometheus_client import CollectorRegistry, Gauge, push_to_gateway

from .metrics import format_sample_line
from .models import Sample

logger = logging.getLogger(__name__)


class Sink(ABC):
    """Destination of a Sample."""

    @abstractmethod
    def emit(self, sample: Sample) -> None:
        """Publish the sample. Raises OSError on I/O failure."""

    @property
    @abstractmethod
    def target(self) -> str:
        """Human readable destination, used in log lines."""


class FileSink(Sink):
    """Writes ``<output_dir>/<metric>.prom`` with exactly one sample line."""

    def __init__(
        self,
        output_dir: str,
        metric: str,
        instance: str,
        job: str,
    ):
        self._path = os.path.join(output_dir, f"{metric}.prom")
        self._metric = metric
        self._instance = instance
        self._job = job

    @property
    def path(self) -> str:
        return self._path

    @property
    def target(self) -> str:
        return self._path

    def emit(self, sample: Sample) -> None:
        line = format_sample_line(self._metric, self._instance, self._job, sample.value)
        # Write aside and rename so a scrape never sees a half-written file.
        tmp_path = f"{self._path}.{os.getpid()}.tmp"
        try:
            with open(tmp_path, "w", encoding="utf-8") as f:
                f.write(line)
            os.replace(tmp_path, self._path)
        except OSError:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise


class PushSink(Sink):
    """Sets the gauge and pushes the whole registry to a Pushgateway."""

    def __init__(
        self,
        gateway: str,
        job: str,
        registry: CollectorRegistry,
        gauge: Gauge,
        instance: Optional[str] = None,
        push: Callable[..., None] = push_to_gateway,
    ):
        self._gateway = gateway
        self._job = job
        self._registry = registry
        self._gauge = gauge
        self._grouping_key: Dict[str, str] = {"instance": instance} if instance else {}
        self._push = push

    @property
    def target(self) -> str:
        return f"{self._gateway} job={self._job}"

    @property
    def grouping_key(self) -> Dict[str, str]:
        return dict(self._grouping_key)

    def emit(self, sample: Sample) -> None:
        self._gauge.set(sample.value)
        self._push(
            self._gateway,
            job=self._job,
            registry=self._registry,
            grouping_key=self._grouping_key,
        )
