from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from logrca.core.time_window import parse_time_window, time_range_from_window


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("15m", timedelta(minutes=15)),
        ("1h", timedelta(hours=1)),
        ("6H", timedelta(hours=6)),
        ("2h30m", timedelta(hours=2, minutes=30)),
        (" 24h ", timedelta(hours=24)),
    ],
)
def test_parse_time_window(raw: str, expected: timedelta) -> None:
    assert parse_time_window(raw) == expected


def test_parse_time_window_rejects_unknown_units() -> None:
    with pytest.raises(ValueError):
        parse_time_window("3d")
    with pytest.raises(ValueError):
        parse_time_window("")


def test_time_range_ends_now_and_is_utc() -> None:
    now = datetime(2024, 1, 15, 10, 0)
    tr = time_range_from_window("15m", now=now)
    assert tr.end == datetime(2024, 1, 15, 10, 0, tzinfo=timezone.utc)
    assert tr.start == datetime(2024, 1, 15, 9, 45, tzinfo=timezone.utc)

    live = time_range_from_window("1h")
    assert live.end is not None and live.end.tzinfo is not None
    assert live.end - live.start == timedelta(hours=1)
