from __future__ import annotations

from datetime import datetime, timezone

import pytest

from logrca.core.events import (
    clean_query_string,
    extract_app,
    extract_message,
    extract_severity,
    extract_timestamp,
    extract_trace_context,
    get_float,
    parse_timestamp,
    quote_literal,
    severity_from_value,
    truncate_text,
)


def test_message_layouts() -> None:
    assert extract_message({"msg": "a"}) == "a"
    assert extract_message({"message": "", "text": "b"}) == "b"
    assert extract_message({"user_data": {"msg": "c"}}) == "c"
    assert extract_message({"user_data": {"event": {"_message": "d"}}}) == "d"
    assert extract_message({"user_data": "not a dict"}) == ""
    assert extract_message({}) == ""


@pytest.mark.parametrize(
    "value,expected",
    [
        ("ERROR", ("ERROR", 5)),
        ("warn", ("warn", 4)),
        ("fatal", ("fatal", 6)),
        (5, ("ERROR", 5)),
        ("6", ("CRITICAL", 6)),
        ("loud", ("loud", 0)),
        (42, ("", 0)),
        (True, ("", 0)),
        (None, ("", 0)),
    ],
)
def test_severity_from_value(value, expected) -> None:
    assert severity_from_value(value) == expected


def test_extract_severity_prefers_event_then_metadata_then_info() -> None:
    assert extract_severity({"severity": "ERROR", "metadata": {"severity": 6}}) == ("ERROR", 5)
    assert extract_severity({"metadata": {"severity": 6}}) == ("CRITICAL", 6)
    assert extract_severity({"severity": None}) == ("INFO", 3)
    assert extract_severity({}) == ("INFO", 3)


def test_extract_app_label_precedence() -> None:
    assert extract_app({"labels": {"applicationname": "a"}, "applicationname": "b"}) == "a"
    assert extract_app({"$l.applicationname": "c"}) == "c"
    assert extract_app({"service": "d"}) == "d"
    assert extract_app({"labels": "oops"}) == ""


def test_trace_context() -> None:
    assert extract_trace_context({"user_data": {"traceId": "t", "spanId": "s"}}) == ("t", "s")
    assert extract_trace_context({"trace_id": "t2"}) == ("t2", "")


def test_get_float_accepts_numeric_strings() -> None:
    assert get_float({"n": "12"}, "n") == 12.0
    assert get_float({"n": "x", "m": 3}, "n", "m") == 3.0
    assert get_float({"n": True}, "n") == 0.0


def test_timestamps_normalized_to_utc() -> None:
    assert parse_timestamp("2024-01-15T10:00:00Z") == datetime(2024, 1, 15, 10, 0, tzinfo=timezone.utc)
    assert parse_timestamp("2024-01-15T12:00:00+02:00") == datetime(2024, 1, 15, 10, 0, tzinfo=timezone.utc)
    assert parse_timestamp("2024-01-15 10:00") == datetime(2024, 1, 15, 10, 0, tzinfo=timezone.utc)
    assert parse_timestamp(1705312800) == datetime(2024, 1, 15, 10, 0, tzinfo=timezone.utc)
    assert parse_timestamp(1705312800000) == datetime(2024, 1, 15, 10, 0, tzinfo=timezone.utc)
    assert parse_timestamp("not a time") is None
    assert parse_timestamp(None) is None
    assert extract_timestamp({"metadata": {"timestamp": "2024-01-15T10:00:00Z"}}) is not None


def test_text_helpers() -> None:
    assert truncate_text("abcdef", 5) == "ab..."
    assert truncate_text("abc", 5) == "abc"
    assert clean_query_string("source logs\n  | filter x\n\n| limit 5 ") == "source logs | filter x | limit 5"


@pytest.mark.parametrize("raw", ["10", "March", "10:30", "Monday"])
def test_partial_dates_are_not_timestamps(raw: str) -> None:
    assert parse_timestamp(raw) is None


def test_free_form_full_dates_still_parse() -> None:
    assert parse_timestamp("Jan 15 2024 10:00:00") == datetime(2024, 1, 15, 10, 0, tzinfo=timezone.utc)
    assert parse_timestamp("15 January 2024") == datetime(2024, 1, 15, tzinfo=timezone.utc)


def test_quote_literal_escapes_backslash_then_quote() -> None:
    assert quote_literal("o'brien") == "o\\'brien"
    assert quote_literal("a\\b") == "a\\\\b"
    assert quote_literal("plain-svc") == "plain-svc"
    assert quote_literal("") == ""
