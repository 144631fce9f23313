"""Tests de sinks: fichero .prom y Pushgateway.

Ejecutar:
    pytest tests/test_rowcount_sinks.py -v
"""

import re
from unittest.mock import MagicMock
from urllib.error import URLError

import pytest

from jobs.rowcount.config import ConfigError
from jobs.rowcount.metrics import (
    build_row_count_gauge,
    escape_label_value,
    format_sample_line,
)
from jobs.rowcount.models import FAILURE_SENTINEL, Sample
from jobs.rowcount.sinks import FileSink, PushSink

LINE_RE = re.compile(r'^(\w+)\{instance="([^"]*)",job="([^"]*)"\} (-?\d+)$')


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def registry_and_gauge():
    return build_row_count_gauge("events_rows", "Row count for table events")


@pytest.fixture
def file_sink(tmp_path):
    return FileSink(str(tmp_path), "events_rows", "db-1", "postgres_monitor")


# =============================================================================
# EXPOSITION FORMAT
# =============================================================================

class TestExpositionFormat:

    def test_sample_line(self):
        line = format_sample_line("events_rows", "db-1", "postgres_monitor", 42)
        assert line == 'events_rows{instance="db-1",job="postgres_monitor"} 42\n'

    def test_sentinel_line(self):
        line = format_sample_line("events_rows", "db-1", "postgres_monitor", FAILURE_SENTINEL)
        assert line.endswith(" -1\n")

    def test_label_values_are_escaped(self):
        assert escape_label_value('a"b') == 'a\\"b'
        assert escape_label_value("a\\b") == "a\\\\b"
        assert escape_label_value("a\nb") == "a\\nb"

    def test_invalid_metric_name_is_a_startup_error(self):
        with pytest.raises(ConfigError, match="failed to register metric"):
            build_row_count_gauge("bad-metric name", "help")


# =============================================================================
# FILE SINK
# =============================================================================

class TestFileSink:

    def test_path(self, file_sink, tmp_path):
        assert file_sink.path == str(tmp_path / "events_rows.prom")

    def test_writes_exactly_one_line(self, file_sink, tmp_path):
        file_sink.emit(Sample(value=7))

        content = (tmp_path / "events_rows.prom").read_text()
        lines = content.splitlines()
        assert len(lines) == 1
        m = LINE_RE.match(lines[0])
        assert m is not None
        assert m.groups() == ("events_rows", "db-1", "postgres_monitor", "7")

    def test_overwrites_instead_of_appending(self, file_sink, tmp_path):
        path = tmp_path / "events_rows.prom"
        path.write_text("stale line 1\nstale line 2\nstale line 3\n")

        file_sink.emit(Sample(value=100))
        file_sink.emit(Sample(value=3))

        assert path.read_text() == 'events_rows{instance="db-1",job="postgres_monitor"} 3\n'

    def test_replaces_file_without_leaving_temp_files(self, file_sink, tmp_path):
        file_sink.emit(Sample(value=1))
        first_inode = (tmp_path / "events_rows.prom").stat().st_ino
        file_sink.emit(Sample(value=2))

        assert sorted(p.name for p in tmp_path.iterdir()) == ["events_rows.prom"]
        # Renamed into place, not rewritten through the old inode.
        assert (tmp_path / "events_rows.prom").stat().st_ino != first_inode

    def test_write_error_cleans_up_temp_file(self, file_sink, tmp_path, monkeypatch):
        def _fail(src, dst):
            raise OSError("rename failed")
        monkeypatch.setattr("jobs.rowcount.sinks.os.replace", _fail)

        with pytest.raises(OSError):
            file_sink.emit(Sample(value=1))
        assert list(tmp_path.iterdir()) == []

    def test_missing_directory_raises_oserror(self, tmp_path):
        sink = FileSink(str(tmp_path / "nope"), "events_rows", "db-1", "job")
        with pytest.raises(OSError):
            sink.emit(Sample(value=1))


# =============================================================================
# PUSH SINK
# =============================================================================

class TestPushSink:

    def test_push_sets_gauge_and_pushes_with_grouping_key(self, registry_and_gauge):
        registry, gauge = registry_and_gauge
        push = MagicMock()
        sink = PushSink("localhost:9091", "postgres_monitor", registry, gauge,
                        instance="db-1", push=push)

        sink.emit(Sample(value=55))

        assert registry.get_sample_value("events_rows") == 55.0
        push.assert_called_once_with(
            "localhost:9091",
            job="postgres_monitor",
            registry=registry,
            grouping_key={"instance": "db-1"},
        )

    def test_no_instance_means_empty_grouping_key(self, registry_and_gauge):
        registry, gauge = registry_and_gauge
        sink = PushSink("gw:9091", "job", registry, gauge, push=MagicMock())
        assert sink.grouping_key == {}

    def test_push_failure_propagates_as_oserror(self, registry_and_gauge):
        registry, gauge = registry_and_gauge
        push = MagicMock(side_effect=URLError("connection refused"))
        sink = PushSink("gw:9091", "job", registry, gauge, push=push)

        with pytest.raises(OSError):
            sink.emit(Sample(value=1))

    def test_target(self, registry_and_gauge):
        registry, gauge = registry_and_gauge
        sink = PushSink("gw:9091", "job", registry, gauge, push=MagicMock())
        assert sink.target == "gw:9091 job=job"
