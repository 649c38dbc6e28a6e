"""Unit tests for structured logging."""

from __future__ import annotations

import json
import logging
import sys

import pytest

from feature_tracking.logging import JSONFormatter, get_logger, setup_logging


def make_record(**extra: object) -> logging.LogRecord:
    record = logging.LogRecord(
        name="feature_tracking.detectors",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg="Keypoints detected",
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


@pytest.mark.unit
class TestJSONFormatter:
    """Tests for JSONFormatter."""

    def test_basic_fields(self) -> None:
        """Records are rendered as a JSON object."""
        data = json.loads(JSONFormatter().format(make_record()))

        assert data["level"] == "INFO"
        assert data["logger"] == "feature_tracking.detectors"
        assert data["message"] == "Keypoints detected"
        assert len(data["timestamp"]) == len("2025-01-15 10:30")
        assert "extra" not in data

    def test_extra_fields(self) -> None:
        """User supplied extras are nested under extra."""
        record = make_record(detector="FAST", num_keypoints=12)

        data = json.loads(JSONFormatter().format(record))

        assert data["extra"] == {"detector": "FAST", "num_keypoints": 12}

    def test_exception_is_formatted(self) -> None:
        """Exception info is rendered as text."""
        record = make_record()
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            record.exc_info = sys.exc_info()

        data = json.loads(JSONFormatter().format(record))

        assert "RuntimeError: boom" in data["exception"]


@pytest.mark.unit
class TestSetupLogging:
    """Tests for setup_logging and get_logger."""

    def test_configures_namespace_logger(self) -> None:
        """A single JSON handler is installed on the namespace logger."""
        logger = setup_logging("debug", "feature_tracking")
        setup_logging("debug", "feature_tracking")

        assert logger.name == "feature_tracking"
        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 1
        assert isinstance(logger.handlers[0].formatter, JSONFormatter)
        assert logger.propagate is False

    def test_invalid_level_raises(self) -> None:
        """Unknown levels are rejected."""
        with pytest.raises(ValueError):
            setup_logging("verbose", "feature_tracking")

    def test_child_logger_name(self) -> None:
        """Component loggers live under the namespace."""
        assert get_logger("matcher").name == "feature_tracking.matcher"
        assert get_logger().name == "feature_tracking"

    def test_child_records_reach_handler(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Component loggers emit through the namespace handler."""
        setup_logging("info", "feature_tracking")

        get_logger("matcher").info("Descriptors matched", extra={"num_matches": 3})

        line = capsys.readouterr().out.strip().splitlines()[-1]
        data = json.loads(line)
        assert data["logger"] == "feature_tracking.matcher"
        assert data["extra"]["num_matches"] == 3
