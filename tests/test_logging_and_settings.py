"""
Structured logging and settings tests.

Run: pytest tests/test_logging_and_settings.py -v
"""

import json
import logging

import pytest
from pydantic import ValidationError

from qa_insights.config import Settings
from qa_insights.shared.infrastructure.logging import (
    CustomJsonFormatter,
    get_context_logger,
    log_latency,
)


def format_record(formatter, **extra):
    record = logging.LogRecord("qa_insights.test", logging.INFO, __file__, 1, "Snapshot refreshed", None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return json.loads(formatter.format(record))


class TestCustomJsonFormatter:

    def test_adds_context_fields(self):
        formatter = CustomJsonFormatter("%(name)s %(levelname)s %(message)s", environment="staging")

        data = format_record(formatter, correlation_id="abc-123", sequence=4)

        assert data["message"] == "Snapshot refreshed"
        assert data["environment"] == "staging"
        assert data["correlation_id"] == "abc-123"
        assert data["sequence"] == 4
        assert data["timestamp"]

    def test_redacts_credentials(self):
        formatter = CustomJsonFormatter("%(message)s")

        data = format_record(formatter, database_url="postgresql://user:pw@db/qa", db_password="hunter2")

        assert data["database_url"] == "***REDACTED***"
        assert data["db_password"] == "***REDACTED***"


class TestLoggerHelpers:

    def test_context_logger_carries_correlation_id(self):
        adapter = get_context_logger("qa_insights.test", "abc-123")
        assert isinstance(adapter, logging.LoggerAdapter)
        assert adapter.extra == {"correlation_id": "abc-123"}

        assert isinstance(get_context_logger("qa_insights.test"), logging.Logger)

    def test_log_latency_logs_even_on_error(self, caplog):
        logger = logging.getLogger("qa_insights.test")

        with caplog.at_level(logging.INFO, logger="qa_insights.test"):
            with pytest.raises(ValueError):
                with log_latency(logger, "weekly_rollup", week_start="2024-01-14"):
                    raise ValueError("boom")

        [record] = caplog.records
        assert record.operation == "weekly_rollup"
        assert record.week_start == "2024-01-14"
        assert record.latency_ms >= 0


class TestSettings:

    def test_defaults(self):
        settings = Settings(_env_file=None)

        assert settings.refresh_interval_seconds == 300
        assert str(settings.scoring_config_path) == "scoring_config.yaml"

    def test_log_level_normalized(self):
        assert Settings(_env_file=None, log_level="debug").log_level == "DEBUG"

    @pytest.mark.parametrize("overrides", [{"environment": "qa"}, {"log_level": "LOUD"}, {"refresh_interval_seconds": -1}])
    def test_rejects_invalid_values(self, overrides):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, **overrides)

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("REFRESH_INTERVAL_SECONDS", "0")
        monkeypatch.setenv("SCORING_CONFIG_PATH", "/etc/qa/scoring.yaml")

        settings = Settings(_env_file=None)

        assert settings.refresh_interval_seconds == 0
        assert settings.scoring_config_path.name == "scoring.yaml"
