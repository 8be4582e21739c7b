"""
Game calendar
=============

The game server runs its own calendar: one real day is one in-game month,
except that the clock stops while the server restarts (4 restarts a day,
about 6 minutes each). So only 1416 of the 1440 minutes in a real day move
the calendar forward.

`game_month_index_for` maps a real date to an integer month index
(year * 12 + month - 1), counting from a known anchor:

    real 2025-04-19  ->  in-game Year 5, May  ->  index 64

There is no exact inverse; rounding loses information.
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Union

MINUTES_PER_DAY = 24 * 60
MONTH_NAMES = ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]

DateLike = Union[date, datetime, str]


@dataclass(frozen=True)
class GameCalendar:
    """Anchor point and restart schedule of the in-game calendar."""
    anchor_date: date = date(2025, 4, 19)
    anchor_year: int = 5
    anchor_month: int = 5  # May
    restarts_per_day: int = 4
    restart_minutes: int = 6

    @property
    def active_minutes_per_day(self) -> int:
        return MINUTES_PER_DAY - self.restarts_per_day * self.restart_minutes

    @property
    def anchor_index(self) -> int:
        return self.anchor_year * 12 + (self.anchor_month - 1)

    def month_index_for(self, real: DateLike) -> int:
        """In-game month index for a real date (whole-day granularity)."""
        delta_days = days_between_utc(real, self.anchor_date)
        active_minutes = delta_days * self.active_minutes_per_day
        # round half up: floor(active / 1440 + 1/2), in integers
        months_delta = (2 * active_minutes + MINUTES_PER_DAY) // (2 * MINUTES_PER_DAY)
        return self.anchor_index + months_delta


DEFAULT_CALENDAR = GameCalendar()


def to_utc_day(value: DateLike) -> date:
    """Calendar day of a date/datetime/ISO string, read in UTC.

    Naive datetimes are taken as UTC already.
    """
    if isinstance(value, str):
        value = datetime.fromisoformat(value.strip())
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date()
    return value


def days_between_utc(a: DateLike, b: DateLike) -> int:
    """Whole days from b to a, both truncated to UTC midnight."""
    return (to_utc_day(a) - to_utc_day(b)).days


def game_month_index_for(real: DateLike, calendar: GameCalendar = DEFAULT_CALENDAR) -> int:
    return calendar.month_index_for(real)


def format_game_month(index: int) -> str:
    """Display label for a month index, e.g. 64 -> "May '5"."""
    year, month = divmod(index, 12)
    return f"{MONTH_NAMES[month]} '{year}"
