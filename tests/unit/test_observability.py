"""
Unit tests for structured logging and Prometheus metrics.
"""

import json
import logging

import pytest

from file_formats.observability import metrics
from file_formats.observability.logger import get_logger, log_operation, setup_logger


@pytest.mark.unit
class TestLogger:
    """Tests for the JSON logger"""

    def test_json_output(self, capsys):
        logger = setup_logger("file_formats_test_json", level="INFO", format_type="json")
        logger.info("hello", extra={"reference_name": "events"})

        entry = json.loads(capsys.readouterr().out.strip().splitlines()[-1])
        assert entry["message"] == "hello"
        assert entry["level"] == "INFO"
        assert entry["logger"] == "file_formats_test_json"
        assert entry["reference_name"] == "events"

    def test_text_output(self, capsys):
        logger = setup_logger("file_formats_test_text", level="DEBUG", format_type="text")
        logger.debug("plain")
        assert "DEBUG" in capsys.readouterr().out

    def test_setup_replaces_handlers(self):
        setup_logger("file_formats_test_handlers")
        logger = setup_logger("file_formats_test_handlers")
        assert len(logger.handlers) == 1

    def test_module_loggers_share_package_root(self):
        logger = get_logger("file_formats.sink.file_sink")
        assert logger.name == "file_formats.sink.file_sink"
        assert logging.getLogger("file_formats").handlers

    def test_log_operation_records_duration(self):
        logger = setup_logger("file_formats_test_operation")
        with log_operation("prepare_run", logger=logger, reference_name="events") as op:
            pass
        assert op.duration is not None
        assert op.duration >= 0

    def test_unknown_level_falls_back_to_info(self):
        logger = setup_logger("file_formats_test_level", level="chatty")
        assert logger.level == logging.INFO

    def test_log_operation_logs_failure(self, capsys):
        logger = setup_logger("file_formats_test_failure_json", format_type="json")
        with pytest.raises(ValueError):
            with log_operation("prepare_run", logger=logger, reference_name="events"):
                raise ValueError("bad suffix")

        entry = json.loads(capsys.readouterr().out.strip().splitlines()[-1])
        assert entry["message"] == "prepare_run failed"
        assert entry["level"] == "ERROR"
        assert entry["status"] == "error"
        assert entry["error_type"] == "ValueError"
        assert entry["reference_name"] == "events"
        assert entry["timestamp"]

    def test_log_operation_does_not_suppress(self):
        logger = setup_logger("file_formats_test_failure")
        with pytest.raises(RuntimeError):
            with log_operation("prepare_run", logger=logger):
                raise RuntimeError("boom")


@pytest.mark.unit
class TestMetrics:
    """Tests for metric helpers"""

    def test_encoded_counter(self):
        labels = {"format": "json", "reference_name": "metrics_test"}
        before = metrics.get_sample_value("file_formats_records_encoded_total", labels) or 0.0

        metrics.record_encoded("json", "metrics_test")
        metrics.record_encoded("json", "metrics_test")

        assert metrics.get_sample_value("file_formats_records_encoded_total", labels) == before + 2

    def test_unused_labels_have_no_sample(self):
        assert metrics.get_sample_value(
            "file_formats_encode_failures_total", {"format": "json", "reference_name": "never_used"}
        ) is None

    def test_prepare_run_histogram(self):
        labels = {"format": "metrics_test"}
        metrics.observe_prepare_run("metrics_test", 0.002)
        assert metrics.get_sample_value("file_formats_prepare_run_duration_seconds_count", labels) >= 1

    def test_exposition_format(self):
        metrics.record_decoded("csv", count=3)
        output = metrics.get_metrics()

        assert isinstance(output, bytes)
        assert b"file_formats_records_decoded_total" in output
