"""
Тесты для общего ядра: интервалы, разбор дат, настройки.
"""
import itertools
from datetime import date, datetime, timedelta, timezone

import pytest
from conftest import at
from pydantic import ValidationError

from shared_kernel import (
    HotelSettings,
    Interval,
    InvalidIntervalError,
    overlaps,
    parse_day,
    parse_instant,
)


def interval(start_day: int, end_day: int) -> Interval:
    return Interval(start=at(start_day), end=at(end_day))


class TestInterval:
    """Тесты полуоткрытого интервала."""

    def test_overlap_is_symmetric(self):
        """overlaps(a, b) == overlaps(b, a) для всех пар."""
        intervals = [
            interval(10, 12),
            interval(12, 14),
            interval(11, 13),
            interval(9, 20),
            interval(14, 14),
            interval(15, 13),
        ]
        for a, b in itertools.product(intervals, repeat=2):
            assert overlaps(a, b) == overlaps(b, a)

    def test_checkout_day_is_exclusive(self):
        """[D, D+2) и [D+2, D+4) не пересекаются."""
        assert not overlaps(interval(10, 12), interval(12, 14))

    def test_partial_overlap(self):
        assert overlaps(interval(10, 12), interval(11, 13))

    def test_nested_interval_overlaps(self):
        assert interval(9, 20).overlaps(interval(11, 12))

    def test_degenerate_interval_never_overlaps(self):
        empty = interval(11, 11)
        inverted = interval(13, 11)

        assert not empty.is_valid
        assert not inverted.is_valid
        assert not overlaps(empty, interval(9, 20))
        assert not overlaps(interval(9, 20), inverted)

    def test_require_valid_rejects_inverted(self):
        with pytest.raises(InvalidIntervalError):
            interval(13, 11).require_valid()

    def test_contains_is_half_open(self):
        stay = interval(10, 12)

        assert stay.contains(at(10))
        assert stay.contains(at(11, 23, 59))
        assert not stay.contains(at(12))
        assert not stay.contains(at(9, 23, 59))

    def test_for_day_covers_whole_day(self):
        day = Interval.for_day(date(2024, 6, 15))

        assert day.start == at(15)
        assert day.contains(at(15, 23, 59))
        assert not day.contains(at(16))
        assert not day.contains(at(14, 23, 59))

    def test_interval_is_immutable(self):
        stay = interval(10, 12)
        with pytest.raises(ValidationError):
            stay.start = at(11)


class TestParseInstant:
    """Тесты разбора моментов времени из документов."""

    def test_iso_string_with_offset(self):
        assert parse_instant("2024-06-10T15:00:00+00:00") == at(10, 15)

    def test_iso_string_with_z_suffix(self):
        assert parse_instant("2024-06-10T15:00:00Z") == at(10, 15)

    def test_naive_value_uses_given_timezone(self):
        manila = timezone(timedelta(hours=8))
        parsed = parse_instant("2024-06-10T15:00:00", manila)

        assert parsed == datetime(2024, 6, 10, 7, 0, tzinfo=timezone.utc)

    def test_date_only_string(self):
        assert parse_instant("2024-06-10") == at(10)

    def test_date_object(self):
        assert parse_instant(date(2024, 6, 10)) == at(10)

    def test_datetime_passes_through(self):
        assert parse_instant(at(10, 9)) == at(10, 9)

    @pytest.mark.parametrize(
        "value", [None, "", "   ", "not a date", float("nan"), float("inf"), True]
    )
    def test_unusable_values_give_none(self, value):
        assert parse_instant(value) is None

    def test_parse_day(self):
        assert parse_day("2024-06-10T23:30:00+00:00") == date(2024, 6, 10)
        assert parse_day("garbage") is None


class TestHotelSettings:
    """Тесты настроек."""

    def test_defaults(self):
        settings = HotelSettings(_env_file=None)

        assert settings.extra_guest_fee == 200
        assert settings.atomic_reservations is False
        assert settings.default_check_in_time.hour == 15
        assert settings.default_check_out_time.hour == 11

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("HOTEL_EXTRA_GUEST_FEE", "350")
        monkeypatch.setenv("HOTEL_ATOMIC_RESERVATIONS", "true")
        monkeypatch.setenv("HOTEL_LOG_LEVEL", "debug")

        settings = HotelSettings(_env_file=None)

        assert settings.extra_guest_fee == 350
        assert settings.atomic_reservations is True
        assert settings.log_level == "DEBUG"

    def test_unknown_timezone_is_rejected(self):
        with pytest.raises(ValidationError):
            HotelSettings(_env_file=None, timezone="Mars/Olympus_Mons")
