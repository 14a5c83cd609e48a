"""Tests for request-id propagation into log records."""

import logging

from src.logging_config import QUIET_LOGGERS, configure_logging
from src.middleware.request_id import RequestIdLogFilter, request_id_var


def _record() -> logging.LogRecord:
    return logging.LogRecord("buildconnect", logging.INFO, __file__, 1, "quote submitted", None, None)


def test_filter_stamps_current_request_id():
    record = _record()
    token = request_id_var.set("req-7")
    try:
        assert RequestIdLogFilter().filter(record) is True
    finally:
        request_id_var.reset(token)

    assert record.request_id == "req-7"


def test_filter_outside_a_request_uses_placeholder():
    record = _record()
    RequestIdLogFilter().filter(record)
    assert record.request_id == "-"


def test_configure_logging_installs_one_handler():
    configure_logging("debug")
    configure_logging("debug")

    root = logging.getLogger()
    stamped = [h for h in root.handlers if any(isinstance(f, RequestIdLogFilter) for f in h.filters)]
    assert len(stamped) == 1
    assert root.level == logging.DEBUG
    assert all(logging.getLogger(name).level == logging.WARNING for name in QUIET_LOGGERS)
