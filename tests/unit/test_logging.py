"""
Unit Tests - Structured Logging
"""
import logging

import polars as pl
import pytest
import structlog
from structlog.testing import LogCapture, capture_logs

from retail_analytics.config import Settings, configure_logging, get_logger
from retail_analytics.config.logging import add_service_context
from retail_analytics.reporting import ReportRunner, sales_share


@pytest.fixture
def restore_logging():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    structlog.reset_defaults()


class TestConfigureLogging:
    """Tests for configure_logging"""

    def test_json_handler_installed(self, restore_logging):
        configure_logging(log_level="DEBUG", log_format="json")

        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, structlog.stdlib.ProcessorFormatter)

    def test_text_format_and_sqlalchemy_level(self, restore_logging):
        configure_logging(log_level="warning", log_format="text")

        assert logging.getLogger().level == logging.WARNING
        assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING

    def test_get_logger(self):
        log = get_logger("retail_analytics.test")
        with capture_logs() as logs:
            log.info("hello", rows=3)

        assert logs == [{"event": "hello", "rows": 3, "log_level": "info"}]


class TestReportWarnings:
    """Reports emit structured warnings instead of failing"""

    def test_zero_total_is_logged(self):
        totals = pl.DataFrame({"category": ["books"], "total_cents": [0]})

        with capture_logs() as logs:
            result = sales_share(totals)

        assert result["percent_of_total_sales"].to_list() == [None]
        assert any(entry["log_level"] == "warning" for entry in logs)


class TestServiceContext:
    """Tests for the service/environment processor"""

    def test_stamps_service_and_environment(self):
        processor = add_service_context(Settings(app_env="testing", app_name="retail-reports"))

        event = processor(None, "info", {"event": "hello"})

        assert event["service"] == "retail-reports"
        assert event["environment"] == "testing"

    def test_explicit_values_win(self):
        processor = add_service_context(Settings(app_env="testing"))

        event = processor(None, "info", {"event": "hello", "environment": "replay"})

        assert event["environment"] == "replay"


class TestReportContext:
    """Report runs bind the query name and reference time to their logs"""

    def test_query_logs_carry_context(self, restore_logging, sample_snapshot, fixed_clock, test_settings):
        capture = LogCapture()
        structlog.configure(processors=[structlog.contextvars.merge_contextvars, capture])

        ReportRunner(sample_snapshot, clock=fixed_clock, settings=test_settings, validate=False).run(
            "churned_customers"
        )

        events = {entry["event"]: entry for entry in capture.entries}
        for name in ("Churn computed", "Report complete"):
            assert events[name]["query"] == "churned_customers"
            assert events[name]["as_of"] == "2024-09-01T00:00:00"

    def test_context_is_unbound_after_run(self, restore_logging, sample_snapshot, fixed_clock, test_settings):
        capture = LogCapture()
        structlog.configure(processors=[structlog.contextvars.merge_contextvars, capture])

        ReportRunner(sample_snapshot, clock=fixed_clock, settings=test_settings, validate=False).run_all(
            ["total_spend_per_customer"]
        )

        finished = [e for e in capture.entries if e["event"] == "Report run finished"]
        assert "query" not in finished[0]
