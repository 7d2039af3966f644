import json
import logging
import sys

from core.logging import JSONFormatter


def test_json_formatter_includes_extra_fields():
    record = logging.LogRecord("compensation", logging.INFO, __file__, 10, "total=%s", ("625.00",), None)
    record.person_id = "p-1"

    payload = json.loads(JSONFormatter().format(record))

    assert payload["message"] == "total=625.00"
    assert payload["level"] == "INFO"
    assert payload["logger"] == "compensation"
    assert payload["person_id"] == "p-1"


def test_json_formatter_renders_exceptions():
    try:
        raise ValueError("bad tier")
    except ValueError:
        record = logging.LogRecord("agencydesk", logging.ERROR, __file__, 1, "failed", (), None)
        record.exc_info = sys.exc_info()

    payload = json.loads(JSONFormatter().format(record))

    assert "ValueError: bad tier" in payload["exception"]
