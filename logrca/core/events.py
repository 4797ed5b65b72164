"""
Field extraction for raw log-store events.

Events come back from the log store in several shapes:
- raw log records: {"metadata": {...}, "labels": {...}, "user_data": {...}}
- flattened records: {"message": ..., "severity": ..., "applicationname": ...}
- aggregation rows: {"applicationname": "api", "error_count": 42}

Everything here is pure and tolerant: missing or mistyped fields yield empty values, never errors.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple

from dateutil import parser as date_parser

# Log store severity scale (higher = more severe)
SEVERITY_LEVELS: Dict[str, int] = {
    "VERBOSE": 1,
    "DEBUG": 2,
    "INFO": 3,
    "WARNING": 4,
    "WARN": 4,
    "ERROR": 5,
    "CRITICAL": 6,
    "FATAL": 6,
}
_SEVERITY_NAMES = {1: "VERBOSE", 2: "DEBUG", 3: "INFO", 4: "WARNING", 5: "ERROR", 6: "CRITICAL"}
ERROR_SEVERITY = SEVERITY_LEVELS["ERROR"]

_MESSAGE_FIELDS = ("message", "msg", "text", "log", "_message")
_USER_DATA_MESSAGE_FIELDS = ("message", "msg", "text")
_TIMESTAMP_FIELDS = ("timestamp", "@timestamp", "time", "_time", "ts")


def _as_dict(v: Any) -> Dict[str, Any]:
    return v if isinstance(v, dict) else {}


def get_str(event: Dict[str, Any], *keys: str) -> str:
    """Return the first non-empty string value among `keys`."""
    for key in keys:
        val = event.get(key)
        if isinstance(val, str) and val:
            return val
    return ""


def get_float(event: Dict[str, Any], *keys: str) -> float:
    """Return the first numeric value among `keys` (numeric strings accepted), else 0."""
    for key in keys:
        val = event.get(key)
        if isinstance(val, bool):
            continue
        if isinstance(val, (int, float)):
            return float(val)
        if isinstance(val, str) and val.strip():
            try:
                return float(val)
            except ValueError:
                continue
    return 0.0


def extract_message(event: Dict[str, Any]) -> str:
    """Extract message text from the common event layouts ('' when absent)."""
    msg = get_str(event, *_MESSAGE_FIELDS)
    if msg:
        return msg

    user_data = _as_dict(event.get("user_data"))
    msg = get_str(user_data, *_USER_DATA_MESSAGE_FIELDS)
    if msg:
        return msg
    return get_str(_as_dict(user_data.get("event")), "_message")


def severity_from_value(value: Any) -> Tuple[str, int]:
    """Map a severity name or number to (name, level). Unknown values map to level 0."""
    if isinstance(value, bool):
        return "", 0
    if isinstance(value, (int, float)):
        level = int(value)
        return _SEVERITY_NAMES.get(level, ""), level if level in _SEVERITY_NAMES else 0
    if isinstance(value, str) and value.strip():
        raw = value.strip()
        if raw.isdigit():
            return severity_from_value(int(raw))
        return raw, SEVERITY_LEVELS.get(raw.upper(), 0)
    return "", 0


def extract_severity(event: Dict[str, Any]) -> Tuple[str, int]:
    """Severity name + numeric level; INFO when the event carries none."""
    for source in (event, _as_dict(event.get("metadata"))):
        if "severity" in source:
            name, level = severity_from_value(source.get("severity"))
            if name or level:
                return name, level
    return "INFO", SEVERITY_LEVELS["INFO"]


def extract_app(event: Dict[str, Any]) -> str:
    app = get_str(_as_dict(event.get("labels")), "applicationname")
    return app or get_str(event, "applicationname", "$l.applicationname", "app", "service")


def extract_subsystem(event: Dict[str, Any]) -> str:
    sub = get_str(_as_dict(event.get("labels")), "subsystemname")
    return sub or get_str(event, "subsystemname", "$l.subsystemname", "subsystem")


def extract_trace_context(event: Dict[str, Any]) -> Tuple[str, str]:
    """Return (trace_id, span_id), preferring structured user_data."""
    user_data = _as_dict(event.get("user_data"))
    trace_id = get_str(user_data, "trace_id", "traceId", "traceID") or get_str(event, "trace_id", "traceId")
    span_id = get_str(user_data, "span_id", "spanId", "spanID") or get_str(event, "span_id", "spanId")
    return trace_id, span_id


def extract_labels(event: Dict[str, Any]) -> Dict[str, str]:
    return {str(k): str(v) for k, v in _as_dict(event.get("labels")).items() if v is not None}


_FILL_A = datetime(2001, 1, 1)
_FILL_B = datetime(2002, 2, 2)


def _parse_full_date(raw: str) -> Optional[datetime]:
    """Free-form date parsing that rejects strings missing a year, month or day."""
    try:
        a = date_parser.parse(raw, default=_FILL_A)
        b = date_parser.parse(raw, default=_FILL_B)
    except (ValueError, OverflowError, TypeError):
        return None
    # dateutil fills missing fields from `default`; differing results mean the date was incomplete.
    return a if a == b else None


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Lenient timestamp parsing.

    Accepts ISO-8601-ish strings and epoch seconds/milliseconds. Returns a UTC-aware datetime,
    or None when the value cannot be understood.
    """
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        seconds = float(value) / 1000.0 if value > 1e12 else float(value)
        try:
            return datetime.fromtimestamp(seconds, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    elif isinstance(value, str) and value.strip():
        try:
            dt = date_parser.isoparse(value.strip())
        except (ValueError, OverflowError):
            dt = _parse_full_date(value.strip())
            if dt is None:
                return None
    else:
        return None

    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def extract_timestamp(event: Dict[str, Any]) -> Optional[datetime]:
    for source in (event, _as_dict(event.get("metadata"))):
        for field in _TIMESTAMP_FIELDS:
            if field in source:
                ts = parse_timestamp(source[field])
                if ts is not None:
                    return ts
    return None


def truncate_text(s: str, max_len: int) -> str:
    if len(s) <= max_len:
        return s
    return s[: max_len - 3] + "..."


def clean_query_string(query: str) -> str:
    """Collapse a multi-line query into a single line (strip each line, drop blanks)."""
    lines = [line.strip() for line in (query or "").split("\n")]
    return " ".join(line for line in lines if line)


def quote_literal(value: str) -> str:
    """Escape a value for use inside a single-quoted query string literal."""
    return (value or "").replace("\\", "\\\\").replace("'", "\\'")
