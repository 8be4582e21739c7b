"""Tests for the in-game calendar mapping."""

from datetime import date, datetime, timedelta, timezone

import pytest

from rite.gamecal import (
    DEFAULT_CALENDAR, GameCalendar, days_between_utc, format_game_month,
    game_month_index_for, to_utc_day,
)


class TestGameMonthIndex:
    def test_anchor_maps_to_anchor_month(self):
        assert game_month_index_for("2025-04-19") == 64
        assert format_game_month(64) == "May '5"

    def test_active_minutes(self):
        assert DEFAULT_CALENDAR.active_minutes_per_day == 1416

    def test_one_day_is_one_month(self):
        assert game_month_index_for(date(2025, 4, 20)) == 65
        assert game_month_index_for(date(2025, 4, 18)) == 63

    def test_restart_drift_accumulates(self):
        # 30 days * 1416 / 1440 = 29.5 -> rounds up to 30
        assert game_month_index_for(date(2025, 5, 19)) == 64 + 30
        # 61 days -> 59.98 -> 60
        assert game_month_index_for(date(2025, 6, 19)) == 64 + 60

    def test_half_rounds_up_before_anchor(self):
        # -30 days -> -29.5 -> -29
        assert game_month_index_for(date(2025, 3, 20)) == 64 - 29

    def test_non_decreasing(self):
        start = date(2025, 1, 1)
        values = [game_month_index_for(start + timedelta(days=i)) for i in range(400)]
        assert values == sorted(values)

    def test_time_of_day_ignored(self):
        assert game_month_index_for(datetime(2025, 4, 19, 23, 59)) == 64
        assert game_month_index_for("2025-04-19T12:00:00") == 64

    def test_custom_calendar(self):
        cal = GameCalendar(anchor_date=date(2025, 1, 1), anchor_year=1, anchor_month=1,
                           restarts_per_day=0)
        assert cal.month_index_for("2025-01-11") == 12 + 10


class TestUtcDays:
    def test_aware_datetime_converted(self):
        late = datetime(2025, 4, 19, 23, 0, tzinfo=timezone(timedelta(hours=-5)))
        assert to_utc_day(late) == date(2025, 4, 20)

    def test_days_between(self):
        assert days_between_utc("2025-04-20", date(2025, 4, 19)) == 1
        assert days_between_utc(date(2025, 4, 19), "2025-04-20") == -1

    def test_bad_string(self):
        with pytest.raises(ValueError):
            to_utc_day("April 19")


class TestFormatGameMonth:
    @pytest.mark.parametrize("index,label", [
        (0, "Jan '0"),
        (11, "Dec '0"),
        (12, "Jan '1"),
        (64, "May '5"),
        (-1, "Dec '-1"),
    ])
    def test_labels(self, index, label):
        assert format_game_month(index) == label
