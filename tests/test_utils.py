from datetime import datetime, timedelta, timezone

from utils import NOT_AVAILABLE, classify_activity, iso_date


NOW = datetime(2026, 1, 18, 12, 0, tzinfo=timezone.utc)


def _epoch(dt: datetime) -> int:
    return int(dt.timestamp())


def test_no_submission():
    assert classify_activity(None, NOW) == (NOT_AVAILABLE, False)


def test_six_days_ago_is_active():
    date, active = classify_activity(_epoch(NOW - timedelta(days=6)), NOW)
    assert date == "2026-01-12"
    assert active is True


def test_eight_days_ago_is_inactive():
    date, active = classify_activity(_epoch(NOW - timedelta(days=8)), NOW)
    assert date == "2026-01-10"
    assert active is False


def test_window_boundary_is_inclusive():
    _, active = classify_activity(_epoch(NOW - timedelta(seconds=604800)), NOW)
    assert active is True
    _, active = classify_activity(_epoch(NOW - timedelta(seconds=604801)), NOW)
    assert active is False


def test_date_is_utc_calendar_day():
    # 23:30 UTC is already the next day in most of Asia
    late = datetime(2026, 1, 17, 23, 30, tzinfo=timezone.utc)
    date, _ = classify_activity(_epoch(late), NOW)
    assert date == "2026-01-17"
    assert iso_date(late) == "2026-01-17"
