"""Structured Logging — JSON formatter and request-scoped adapter.

Tests cover:
    - JSONFormatter emits the base fields plus known extras
    - Non-JSON extras are stringified instead of crashing the handler
    - RequestLogAdapter keeps call-site extras AND the request_id
"""

import json
import logging

from routemap.infrastructure.observability import JSONFormatter, request_logger


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord(
        "routemap.request", logging.ERROR, __file__, 1, "FAILURE %s", ("GET /x",), None,
    )
    record.__dict__.update(extra)
    return record


def test_json_formatter_includes_extras():
    payload = json.loads(JSONFormatter().format(
        _record(request_id="abc", status=404, failure={"events": []}),
    ))
    assert payload["message"] == "FAILURE GET /x"
    assert payload["level"] == "ERROR"
    assert payload["request_id"] == "abc"
    assert payload["status"] == 404
    assert payload["failure"] == {"events": []}


def test_json_formatter_stringifies_unknown_objects():
    class Row:
        def __str__(self):
            return "<Row 1>"

    payload = json.loads(JSONFormatter().format(_record(failure={"result": Row()})))
    assert payload["failure"] == {"result": "<Row 1>"}


def test_request_logger_merges_extras(caplog):
    log = request_logger("req-1", name="tests.adapter")
    with caplog.at_level(logging.INFO, logger="tests.adapter"):
        log.info("Running step %s", "load", extra={"step": "load"})
    record = caplog.records[-1]
    assert record.request_id == "req-1"
    assert record.step == "load"
