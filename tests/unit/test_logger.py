"""
Unit tests for structured logging.
"""

import json
import logging

import pytest

from geofix.observability.logger import ROOT_LOGGER_NAME, get_logger, log_operation, setup_logger


@pytest.mark.unit
class TestLogger:
    """Tests for setup_logger, get_logger and log_operation"""

    def test_json_output_carries_extra_fields(self, capsys):
        """Test JSON records include level, logger and extra fields"""
        logger = setup_logger("geofix_json_test", level="INFO", format_type="json")
        logger.info("Point corrected", extra={"point_name": "P1"})

        record = json.loads(capsys.readouterr().err.strip().splitlines()[-1])
        assert record["message"] == "Point corrected"
        assert record["level"] == "INFO"
        assert record["logger"] == "geofix_json_test"
        assert record["point_name"] == "P1"
        assert "thread_name" in record

    def test_module_loggers_are_children_of_root(self):
        """Test geofix module loggers reuse the root handler"""
        logger = get_logger("geofix.batch.pipeline")

        assert logger.name == "geofix.batch.pipeline"
        assert logger.handlers == []
        assert logging.getLogger(ROOT_LOGGER_NAME).handlers

    def test_log_operation_records_duration(self, capsys):
        """Test the context manager measures and logs the operation"""
        logger = setup_logger("geofix_operation_test", level="DEBUG", format_type="json")

        with log_operation("Correction run", logger=logger, total_points=3) as operation:
            pass

        assert operation.duration is not None
        lines = [json.loads(line) for line in capsys.readouterr().err.strip().splitlines()]
        assert lines[-1]["status"] == "success"
        assert lines[-1]["total_points"] == 3

    def test_log_operation_does_not_swallow_errors(self):
        """Test exceptions propagate out of the context manager"""
        logger = setup_logger("geofix_failure_test", level="CRITICAL", format_type="text")

        with pytest.raises(RuntimeError):
            with log_operation("Failing step", logger=logger):
                raise RuntimeError("boom")
