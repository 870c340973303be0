"""Tests for civil-day classification in the target timezone."""

from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from briefly.core import civil
from briefly.core.civil import (
    TARGET_TIMEZONE,
    as_instant,
    civil_date,
    day_start,
    end_of_civil_day,
    is_same_civil_day,
    now_in_target,
    start_of_civil_day,
    to_target,
    to_target_civil_datetime,
)
from briefly.errors import TimezoneUnavailable

SP = ZoneInfo("America/Sao_Paulo")
UTC = timezone.utc


class TestToTarget:
    def test_target_zone_is_sao_paulo(self):
        assert TARGET_TIMEZONE == "America/Sao_Paulo"

    def test_converts_utc_instant(self):
        local = to_target(datetime(2025, 1, 15, 2, 30, tzinfo=UTC))
        assert local.tzinfo == SP
        assert (local.day, local.hour, local.minute) == (14, 23, 30)

    def test_naive_is_floating_wall_clock(self):
        local = to_target(datetime(2025, 1, 15, 9, 0))
        assert local.hour == 9
        assert local.utcoffset() == timedelta(hours=-3)

    def test_civil_datetime_tuple(self):
        instant = datetime(2025, 3, 1, 1, 5, 9, tzinfo=UTC)
        assert to_target_civil_datetime(instant) == (2025, 2, 28, 22, 5, 9)

    def test_civil_datetime_across_historic_dst(self):
        # Sao Paulo observed DST (UTC-2) in January 2018
        instant = datetime(2018, 1, 10, 12, 0, tzinfo=UTC)
        assert to_target_civil_datetime(instant)[3] == 10


class TestSameCivilDay:
    def test_reflexive(self):
        instant = datetime(2025, 6, 1, 23, 59, tzinfo=UTC)
        assert is_same_civil_day(instant, instant)

    def test_utc_dates_differ_but_civil_day_same(self):
        # 23:00 and 01:00 UTC next day are both on Jan 15 in Sao Paulo
        a = datetime(2025, 1, 15, 13, 0, tzinfo=UTC)
        b = datetime(2025, 1, 16, 1, 0, tzinfo=UTC)
        assert is_same_civil_day(a, b)

    def test_utc_same_date_but_civil_days_differ(self):
        a = datetime(2025, 1, 15, 2, 0, tzinfo=UTC)  # Jan 14, 23:00 local
        b = datetime(2025, 1, 15, 4, 0, tzinfo=UTC)  # Jan 15, 01:00 local
        assert not is_same_civil_day(a, b)
        assert civil_date(a) == date(2025, 1, 14)


class TestDayBoundaries:
    def test_start_of_civil_day(self):
        start = start_of_civil_day(datetime(2025, 1, 15, 20, 0, tzinfo=UTC))
        assert start == datetime(2025, 1, 15, 3, 0, tzinfo=UTC)
        assert start.tzinfo == SP

    def test_end_of_civil_day(self):
        end = end_of_civil_day(datetime(2025, 1, 15, 12, 0, tzinfo=SP))
        assert end == datetime(2025, 1, 16, 0, 0, tzinfo=SP) - timedelta(microseconds=1)

    def test_day_start_inside_dst_gap(self):
        # Clocks jumped 00:00 -> 01:00 on 2018-11-04; midnight did not exist
        start = day_start(date(2018, 11, 4))
        assert start == datetime(2018, 11, 4, 3, 0, tzinfo=UTC)
        assert start.hour == 1
        assert start.utcoffset() == timedelta(hours=-2)

    def test_short_day_has_23_hours(self):
        length = day_start(date(2018, 11, 5)) - day_start(date(2018, 11, 4))
        assert length == timedelta(hours=23)


class TestNowAndInstants:
    def test_now_in_target_uses_given_instant(self):
        now = now_in_target(datetime(2025, 1, 15, 13, 0, tzinfo=UTC))
        assert now.hour == 10
        assert now.tzinfo == SP

    def test_now_in_target_defaults_to_clock(self):
        assert now_in_target().tzinfo == SP

    def test_as_instant_date(self):
        assert as_instant(date(2025, 1, 15)) == datetime(2025, 1, 15, tzinfo=SP)

    def test_as_instant_keeps_aware(self):
        value = datetime(2025, 1, 15, 12, 0, tzinfo=UTC)
        assert as_instant(value) is value


class TestTimezoneUnavailable:
    def test_missing_zone_raises_instead_of_utc(self, monkeypatch):
        monkeypatch.setattr(civil, "TARGET_TIMEZONE", "Nowhere/Atlantis")
        with pytest.raises(TimezoneUnavailable):
            to_target(datetime(2025, 1, 15, 12, 0, tzinfo=UTC))
