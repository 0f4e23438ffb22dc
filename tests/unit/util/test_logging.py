# pylint: disable=missing-docstring
import logging
from socket import gethostname

import pytest

from flowprep.util.defaults import DEFAULT_LOG_CONFIG
from flowprep.util.logging import FlowprepFormatter


def make_record() -> logging.LogRecord:
    return logging.LogRecord(
        name="Stream",
        level=logging.INFO,
        pathname="test.py",
        lineno=1,
        msg="test message",
        args=None,
        exc_info=None,
    )


class TestFlowprepFormatter:
    def test_format_with_default_format(self):
        default_formatter_config = DEFAULT_LOG_CONFIG["formatters"]["flowprep"]
        formatter = FlowprepFormatter(
            fmt=default_formatter_config["format"], datefmt=default_formatter_config["datefmt"]
        )
        formatted_record = formatter.format(make_record())
        assert isinstance(formatted_record, str)
        assert "test message" in formatted_record
        assert "INFO" in formatted_record
        assert "Stream" in formatted_record

    @pytest.mark.parametrize(
        "custom_format, expected",
        [
            ("%(asctime)-15s %(hostname)-5s %(name)-5s %(levelname)-8s: %(message)s", gethostname),
            ("%(hostname)s", gethostname),
        ],
    )
    def test_format_custom_format_with_hostname(self, custom_format, expected):
        formatter = FlowprepFormatter(fmt=custom_format)
        formatted_record = formatter.format(make_record())
        assert expected() in formatted_record


class TestDefaultLogConfig:
    def test_console_handler_uses_flowprep_formatter(self):
        assert DEFAULT_LOG_CONFIG["handlers"]["console"]["formatter"] == "flowprep"
        formatter_class = DEFAULT_LOG_CONFIG["formatters"]["flowprep"]["class"]
        assert formatter_class == "flowprep.util.logging.FlowprepFormatter"

    @pytest.mark.parametrize("logger_name", ["root", "Scheduler", "Stream"])
    def test_default_log_levels(self, logger_name):
        assert DEFAULT_LOG_CONFIG["loggers"][logger_name]["level"] == "INFO"
