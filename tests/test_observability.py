from __future__ import annotations

import json
import logging
from decimal import Decimal

from app.observability import (
    REQUEST_CONTEXT,
    JSONLogFormatter,
    RequestContextFilter,
    configure_logging,
)
from civreg.config import LoggingCfg
from tests.conftest import BARANGAY, OTHER_BARANGAY


def _record(message: str = "resident.created", **extra) -> logging.LogRecord:
    record = logging.LogRecord("app.services.registry", logging.INFO, __file__, 1, message, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def _filtered(record: logging.LogRecord, context: dict) -> logging.LogRecord:
    token = REQUEST_CONTEXT.set(context)
    try:
        assert RequestContextFilter().filter(record) is True
    finally:
        REQUEST_CONTEXT.reset(token)
    return record


def test_records_carry_the_bound_request_context():
    record = _filtered(
        _record(resident_id=7),
        {"request_id": "abc123", "actor_id": "clerk-01", "jurisdiction": BARANGAY},
    )

    payload = json.loads(JSONLogFormatter().format(record))

    assert payload["event"] == "resident.created"
    assert payload["level"] == "INFO"
    assert payload["logger"] == "app.services.registry"
    assert (payload["request_id"], payload["actor_id"], payload["jurisdiction"]) == (
        "abc123",
        "clerk-01",
        BARANGAY,
    )
    assert payload["resident_id"] == 7
    assert "msg" not in payload
    assert "args" not in payload


def test_explicit_extra_wins_over_request_context():
    record = _filtered(_record(jurisdiction=OTHER_BARANGAY), {"jurisdiction": BARANGAY})
    assert record.jurisdiction == OTHER_BARANGAY


def test_records_outside_a_request_are_untouched():
    record = _record()
    RequestContextFilter().filter(record)
    assert not hasattr(record, "jurisdiction")


def test_decimal_extras_are_rendered_as_strings():
    payload = json.loads(JSONLogFormatter().format(_record(monthly_income=Decimal("12.50"))))
    assert payload["monthly_income"] == "12.50"


def test_structured_handler_is_installed_once():
    root = logging.getLogger()
    level = root.level
    first = configure_logging(LoggingCfg(level="DEBUG"))
    try:
        second = configure_logging(LoggingCfg(level="warning"))

        assert second is first
        assert [h for h in root.handlers if h.get_name() == first.get_name()] == [first]
        assert root.level == logging.WARNING
        assert isinstance(first.formatter, JSONLogFormatter)
        assert any(isinstance(f, RequestContextFilter) for f in first.filters)
    finally:
        root.removeHandler(first)
        root.setLevel(level)
