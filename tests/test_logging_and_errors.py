"""Tests for utils.logging_config and utils.errors."""

from __future__ import annotations

import json
import logging

import pytest

from utils import logging_config
from utils.errors import ErrorCollector, ErrorSeverity, ErrorType


@pytest.fixture
def clean_root():
    root = logging.getLogger()
    level = root.level
    yield root
    for handler in logging_config._installed_handlers:
        root.removeHandler(handler)
        handler.close()
    logging_config._installed_handlers.clear()
    root.setLevel(level)


class TestSetupLogging:

    def test_repeated_setup_does_not_stack_handlers(self, clean_root):
        before = len(clean_root.handlers)
        logging_config.setup_logging("DEBUG")
        logging_config.setup_logging("INFO")
        assert len(clean_root.handlers) == before + 1
        assert clean_root.level == logging.INFO

    def test_json_lines_to_file(self, clean_root, tmp_path):
        log_file = tmp_path / "logs" / "sim.log"
        logging_config.setup_logging("INFO", log_file=log_file, fmt_mode="json")
        logging_config.get_logger("core.parser").info("Parsed 3 motion commands")
        for handler in logging_config._installed_handlers:
            handler.flush()

        record = json.loads(log_file.read_text(encoding="utf-8").strip().splitlines()[-1])
        assert record["lvl"] == "INFO"
        assert record["name"] == "core.parser"
        assert record["msg"] == "Parsed 3 motion commands"

    def test_human_format(self):
        formatter = logging_config.SimulatorFormatter()
        record = logging.LogRecord("core.playback", logging.DEBUG, __file__, 1,
                                   "Playback %s", ("IDLE -> RUNNING",), None)
        assert formatter.format(record).endswith("| DEBUG | core.playback | Playback IDLE -> RUNNING")

    def test_bad_mode(self, clean_root):
        with pytest.raises(ValueError):
            logging_config.setup_logging(fmt_mode="xml")


class TestErrorCollector:

    def test_sorted_by_line_then_column(self):
        errors = ErrorCollector()
        errors.add_error(3, 5, 6, "b", ErrorType.SYNTAX)
        errors.add_error(1, 0, 1, "a", ErrorType.SYNTAX)
        errors.add_error(3, 0, 2, "c", ErrorType.FORMAT)
        assert [e.message for e in errors.get_all_errors()] == ["a", "c", "b"]

    def test_warnings_are_not_errors(self):
        errors = ErrorCollector()
        errors.add_warning(2, "skipped")
        assert errors.has_warnings()
        assert not errors.has_errors()
        assert errors.get_errors_for_line(2)[0].severity is ErrorSeverity.WARNING
        assert str(errors.get_errors_for_line(2)[0]) == "Line 2: skipped"

    def test_clear(self):
        errors = ErrorCollector()
        errors.add_warning(1, "x")
        errors.clear()
        assert len(errors) == 0
