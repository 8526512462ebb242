import json
import logging
import sys

from logging_config import JSONFormatter, get_logger, set_request_id


def _record(**extra):
    record = logging.LogRecord("checklist.database", logging.INFO, __file__, 1, "Stored report", None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter_keeps_known_fields_only():
    set_request_id("abc12345")
    record = _record(report_id="65f1c0ffee", duration_ms=3.5, vehicle_reg="WR 1838-11")

    data = json.loads(JSONFormatter().format(record))

    assert data["message"] == "Stored report"
    assert data["logger"] == "checklist.database"
    assert data["request_id"] == "abc12345"
    assert data["report_id"] == "65f1c0ffee"
    assert data["duration_ms"] == 3.5
    assert "vehicle_reg" not in data
    assert "user_id" not in data
    set_request_id("")


def test_json_formatter_includes_exception_text():
    try:
        raise RuntimeError("mongo down")
    except RuntimeError:
        record = logging.LogRecord("checklist.main", logging.ERROR, __file__, 1, "boom", None, sys.exc_info())

    data = json.loads(JSONFormatter().format(record))

    assert "RuntimeError: mongo down" in data["exception"]


def test_get_logger_is_namespaced():
    assert get_logger("sessions").name == "checklist.sessions"
