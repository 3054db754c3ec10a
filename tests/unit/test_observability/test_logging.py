"""Tests for structured logging."""

import json

import structlog

from paperwatch.observability.context import (
    clear_correlation_id,
    correlation_id_context,
    set_correlation_id,
)
from paperwatch.observability.logging import (
    add_correlation_id_processor,
    bind_context,
    clear_context,
    configure_logging,
    get_logger,
)


class TestAddCorrelationIdProcessor:
    def test_adds_correlation_id_when_set(self):
        set_correlation_id("run-20250101-060000")
        event_dict = {"event": "test_event"}

        result = add_correlation_id_processor(None, "info", event_dict)

        assert result["correlation_id"] == "run-20250101-060000"
        clear_correlation_id()

    def test_adds_none_marker_when_not_set(self):
        clear_correlation_id()

        result = add_correlation_id_processor(None, "info", {"event": "e"})

        assert result["correlation_id"] == "none"


class TestCorrelationIdContext:
    def test_restores_previous_value(self):
        set_correlation_id("outer")

        with correlation_id_context("inner") as corr_id:
            assert corr_id == "inner"
            result = add_correlation_id_processor(None, "info", {})
            assert result["correlation_id"] == "inner"

        assert add_correlation_id_processor(None, "info", {})["correlation_id"] == (
            "outer"
        )
        clear_correlation_id()

    def test_generates_id(self):
        with correlation_id_context() as corr_id:
            assert len(corr_id) == 36


class TestConfigureLogging:
    def test_json_output_to_stderr(self, capsys):
        configure_logging(level="INFO", json_output=True)

        with correlation_id_context("run-1"):
            get_logger("reconciliation", catalog="c.csv").info(
                "reconcile_completed", new=3
            )

        line = capsys.readouterr().err.strip().splitlines()[-1]
        entry = json.loads(line)
        assert entry["event"] == "reconcile_completed"
        assert entry["new"] == 3
        assert entry["component"] == "reconciliation"
        assert entry["catalog"] == "c.csv"
        assert entry["correlation_id"] == "run-1"
        assert entry["level"] == "info"
        assert "timestamp" in entry

    def test_level_filtering(self, capsys):
        configure_logging(level="WARNING", json_output=True)

        structlog.get_logger().info("hidden_event")
        structlog.get_logger().warning("shown_event")

        err = capsys.readouterr().err
        assert "hidden_event" not in err
        assert "shown_event" in err

    def test_bound_context(self, capsys):
        configure_logging(level="INFO", json_output=True, add_timestamp=False)
        bind_context(source="nber")

        structlog.get_logger().info("source_normalized")
        clear_context()
        structlog.get_logger().info("after_clear")

        lines = capsys.readouterr().err.strip().splitlines()
        first, second = json.loads(lines[-2]), json.loads(lines[-1])
        assert first["source"] == "nber"
        assert "timestamp" not in first
        assert "source" not in second

    def test_console_output(self, capsys):
        configure_logging(level="INFO", json_output=False)

        structlog.get_logger().info("console_event")

        assert "console_event" in capsys.readouterr().err
