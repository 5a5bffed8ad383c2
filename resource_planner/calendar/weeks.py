"""Planning week arithmetic.

Weeks are Monday-starting ISO weeks. The planning flow caps weeks at 52:
stepping past week 52 rolls over to week 1 of the next year even in ISO years
that have a week 53. Dates that fall in an ISO week 53 still get week key 53
from week_key_for_date.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, timedelta

MAX_PLANNING_WEEK = 52
WORKING_DAYS = 5


@dataclass(frozen=True, order=True)
class WeekKey:
    """Identity of a planning period: (year, week number)."""

    year: int
    week: int

    def __str__(self) -> str:
        return f"{self.week}/{self.year}"


def _js_weekday(day: date) -> int:
    """Weekday with Sunday=0 .. Saturday=6."""
    return day.isoweekday() % 7


def iso_week_number(day: date) -> int:
    """Return the ISO-8601 week number of a date.

    The date is moved to the Thursday of its week; the week number is the
    ordinal of that Thursday's week within the Thursday's own year.
    """
    thursday = day + timedelta(days=4 - day.isoweekday())
    year_start = date(thursday.year, 1, 1)
    return math.ceil(((thursday - year_start).days + 1) / 7)


def iso_week_year(day: date) -> int:
    """Year owning the ISO week of a date (the year of its Thursday)."""
    return (day + timedelta(days=4 - day.isoweekday())).year


def monday_of_week(week: int, year: int) -> date:
    """Return the Monday starting ISO week `week` of `year`.

    Starts from January 1st plus (week - 1) weeks; when that day is Sunday to
    Thursday the Monday of its own week is used, on Friday or Saturday the
    Monday of the following week.
    """
    simple = date(year, 1, 1) + timedelta(days=(week - 1) * 7)
    weekday = _js_weekday(simple)
    if weekday <= 4:
        return simple - timedelta(days=weekday - 1)
    return simple + timedelta(days=8 - weekday)


def next_week(week: int, year: int) -> WeekKey:
    """Week following (week, year); week 52 rolls over to week 1 of year + 1."""
    week += 1
    if week > MAX_PLANNING_WEEK:
        return WeekKey(year=year + 1, week=1)
    return WeekKey(year=year, week=week)


def previous_week(week: int, year: int) -> WeekKey:
    """Week preceding (week, year); week 1 rolls back to week 52 of year - 1."""
    week -= 1
    if week < 1:
        return WeekKey(year=year - 1, week=MAX_PLANNING_WEEK)
    return WeekKey(year=year, week=week)


def previous_working_day(day: date) -> date:
    """Return the working day before `day`.

    Monday goes back to the previous Friday, weekend days go back to the
    Friday just before them, Tuesday to Friday go back one day.
    """
    weekday = day.isoweekday()
    if weekday == 1:
        return day - timedelta(days=3)
    if weekday == 7:
        return day - timedelta(days=2)
    return day - timedelta(days=1)


def week_key_for_date(day: date) -> WeekKey:
    """Planning week key of a calendar date (ISO year and ISO week)."""
    return WeekKey(year=iso_week_year(day), week=iso_week_number(day))


def week_days(week: int, year: int, days: int = WORKING_DAYS) -> list[date]:
    """Dates of the first `days` days of the week, Monday first."""
    monday = monday_of_week(week, year)
    return [monday + timedelta(days=offset) for offset in range(days)]


def week_date_range(week: int, year: int) -> tuple[date, date]:
    """Monday and Sunday bounding the week."""
    monday = monday_of_week(week, year)
    return monday, monday + timedelta(days=6)


def week_offset_days(source: WeekKey, target: WeekKey) -> int:
    """Days between the Mondays of two weeks."""
    return (monday_of_week(target.week, target.year) - monday_of_week(source.week, source.year)).days


def current_week_key(today: date | None = None) -> WeekKey:
    """Planning week containing `today`, capped to the planning range."""
    key = week_key_for_date(today or date.today())
    if key.week > MAX_PLANNING_WEEK:
        return next_week(key.week, key.year)
    return key


def planning_week_options(weeks_with_data: list[int]) -> list[int]:
    """Weeks offered by the week picker.

    A year without any planned week offers the full 1..52 range.
    """
    if not weeks_with_data:
        return list(range(1, MAX_PLANNING_WEEK + 1))
    return sorted(set(weeks_with_data))
