import json
import logging

from flask import Flask

from src.timeclock.timeclock.common.logging_utils import JsonFormatter, RequestContextFilter


def _record(**extra):
    record = logging.LogRecord("timeclock.test", logging.INFO, __file__, 1, "Punch recorded", (), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_formatter_emits_extra_fields_and_skips_record_internals():
    line = json.loads(JsonFormatter().format(_record(user_id="u1", event_id="e1")))

    assert line["message"] == "Punch recorded"
    assert line["level"] == "INFO"
    assert line["user_id"] == "u1"
    assert line["event_id"] == "e1"
    assert "lineno" not in line
    assert "msg" not in line


def test_request_context_is_attached_inside_a_request():
    app = Flask(__name__)
    record = _record()

    with app.test_request_context("/api/punches", method="POST", headers={"X-User-Id": "u1"}):
        assert RequestContextFilter().filter(record)

    line = json.loads(JsonFormatter().format(record))
    assert line["http_method"] == "POST"
    assert line["http_path"] == "/api/punches"
    assert line["acting_user"] == "u1"


def test_no_request_context_outside_flask():
    record = _record()

    assert RequestContextFilter().filter(record)
    assert "http_path" not in json.loads(JsonFormatter().format(record))
