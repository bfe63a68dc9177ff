"""Tests for structlog configuration."""

from __future__ import annotations

import json
import logging

import pytest
import structlog

from crudkit.config.logging import configure_logging


class TestConfigureLogging:
    def test_verbose_enables_debug(self) -> None:
        configure_logging(verbose=True)
        assert logging.getLogger("crudkit").level == logging.DEBUG
        assert logging.getLogger("crudkit.telemetry").getEffectiveLevel() == logging.DEBUG

    def test_non_verbose_sets_warning(self) -> None:
        configure_logging(verbose=False)
        assert logging.getLogger("crudkit").level == logging.WARNING
        assert logging.getLogger("crudkit.telemetry").getEffectiveLevel() == logging.WARNING

    def test_root_logger_is_left_to_the_host(self) -> None:
        root = logging.getLogger()
        handlers, level = root.handlers[:], root.level
        configure_logging(verbose=True)
        assert root.handlers == handlers
        assert root.level == level
        assert logging.getLogger("crudkit").propagate is False

    def test_json_mode_output(self, capfd: pytest.CaptureFixture[str]) -> None:
        configure_logging(verbose=True, log_json=True)
        log = structlog.get_logger("crudkit.test")
        log.warning("json test", answer=42)
        parsed = json.loads(capfd.readouterr().err.strip())
        assert parsed["event"] == "json test"
        assert parsed["answer"] == 42
        assert parsed["level"] == "warning"
        assert parsed["logger"] == "crudkit.test"
        assert "timestamp" in parsed

    def test_stdlib_crudkit_logger_gets_structured_fields(
        self, capfd: pytest.CaptureFixture[str]
    ) -> None:
        configure_logging(verbose=True, log_json=True)
        logging.getLogger("crudkit.services.crud").debug("Contact emitted create")
        parsed = json.loads(capfd.readouterr().err.strip())
        assert parsed["event"] == "Contact emitted create"
        assert parsed["level"] == "debug"
        assert parsed["logger"] == "crudkit.services.crud"

    def test_quiet_mode_hides_debug(self, capfd: pytest.CaptureFixture[str]) -> None:
        configure_logging(verbose=False, log_json=True)
        logging.getLogger("crudkit.pipeline.hooks").debug("noise")
        assert capfd.readouterr().err == ""

    def test_other_libraries_are_not_routed(self, capfd: pytest.CaptureFixture[str]) -> None:
        configure_logging(verbose=True, log_json=True)
        logging.getLogger("sqlalchemy.engine").debug("SELECT 1")
        assert "SELECT 1" not in capfd.readouterr().err

    def test_telemetry_opens_span_logger_only(self, capfd: pytest.CaptureFixture[str]) -> None:
        configure_logging(verbose=False, log_json=True, telemetry=True)
        logging.getLogger("crudkit.services.crud").debug("noise")
        structlog.get_logger("crudkit.telemetry").debug("span.complete", span_name="op")
        lines = capfd.readouterr().err.strip().splitlines()
        assert len(lines) == 1
        parsed = json.loads(lines[0])
        assert parsed["event"] == "span.complete"
        assert parsed["span_name"] == "op"
        assert parsed["logger"] == "crudkit.telemetry"

    def test_telemetry_off_resets_span_logger(self) -> None:
        configure_logging(telemetry=True)
        configure_logging(telemetry=False)
        assert logging.getLogger("crudkit.telemetry").getEffectiveLevel() == logging.WARNING

    def test_idempotent_calls_keep_host_handlers(self) -> None:
        package = logging.getLogger("crudkit")
        host_handler = logging.NullHandler()
        package.addHandler(host_handler)
        configure_logging(verbose=True)
        configure_logging(verbose=True, log_json=True)
        assert host_handler in package.handlers
        assert len(package.handlers) == 2
