from datetime import datetime, timezone

from dayrange import DayRange, day_key, day_key_from_timestamp, is_in_range, iter_day_keys, shift_day_key


def test_range_pads_one_day_each_side():
    r = DayRange.from_instants(
        datetime(2025, 1, 1, 8, tzinfo=timezone.utc),
        datetime(2025, 1, 31, 20, tzinfo=timezone.utc),
    )
    assert (r.since_key, r.until_key) == ("2025-01-01", "2025-01-31")
    assert (r.scan_since_key, r.scan_until_key) == ("2024-12-31", "2025-02-01")


def test_day_key_uses_local_calendar():
    # conftest pins TZ=UTC
    assert day_key(datetime(2025, 3, 9, 23, 59, tzinfo=timezone.utc)) == "2025-03-09"
    assert day_key(datetime(2025, 3, 9, 23, 59)) == "2025-03-09"


def test_is_in_range_is_inclusive():
    assert is_in_range("2025-01-15", "2025-01-15", "2025-01-15")
    assert not is_in_range("2025-01-14", "2025-01-15", "2025-01-20")
    assert not is_in_range("2025-01-21", "2025-01-15", "2025-01-20")


def test_iter_day_keys_crosses_month_and_leap_day():
    assert list(iter_day_keys("2024-02-28", "2024-03-01")) == ["2024-02-28", "2024-02-29", "2024-03-01"]
    assert list(iter_day_keys("2024-03-02", "2024-03-01")) == []
    assert shift_day_key("2025-01-01", -1) == "2024-12-31"


def test_timestamp_formats():
    assert day_key_from_timestamp("2025-01-15T10:20:30.123Z") == "2025-01-15"
    assert day_key_from_timestamp("2025-01-15T10:20:30Z") == "2025-01-15"
    assert day_key_from_timestamp("2025-01-15T10:20:30.123456789Z") == "2025-01-15"
    assert day_key_from_timestamp("2025-01-15T23:30:00-02:00") == "2025-01-16"
    assert day_key_from_timestamp("2025-01-15T00:30:00+0100") == "2025-01-14"
    # 2025-01-15T12:00:00Z as epoch seconds and milliseconds
    assert day_key_from_timestamp(1736942400) == "2025-01-15"
    assert day_key_from_timestamp(1736942400000) == "2025-01-15"
    assert day_key_from_timestamp("1736942400000") == "2025-01-15"
    assert day_key_from_timestamp("1736942400") == "2025-01-15"


def test_unparseable_timestamps():
    for value in (None, "", "yesterday", "2025-13-45T00:00:00Z", True, {"ts": 1}, -5):
        assert day_key_from_timestamp(value) is None


def test_short_digit_strings_are_not_epochs():
    for value in ("20250115", "2025", "0", "123456789"):
        assert day_key_from_timestamp(value) is None
