"""Filtering and calendar helpers over serialised events.

Events here are the dictionaries produced by ``serialize_event``: ``date`` is
an ISO ``YYYY-MM-DD`` string (possibly empty) and ``departments`` is a list
of department tags or ``None``.
"""

import calendar
from collections import Counter
from datetime import date, timedelta
from typing import Iterable

DAYS_IN_WEEK = 7

MONTH_VIEW = 'month'
WEEK_VIEW = 'week'
DAY_VIEW = 'day'
CALENDAR_VIEWS = (MONTH_VIEW, WEEK_VIEW, DAY_VIEW)


def parse_event_date(event: dict) -> date | None:
    raw = event.get('date')
    if not raw:
        return None
    try:
        return date.fromisoformat(raw)
    except ValueError:
        return None


def event_departments(event: dict) -> list[str]:
    departments = event.get('departments')
    return departments if isinstance(departments, list) else []


def matches_search(event: dict, search: str) -> bool:
    needle = search.strip().lower()
    if not needle:
        return True
    haystacks = (event.get('title'), event.get('description'), event.get('location'))
    return any(needle in value.lower() for value in haystacks if value)


def filter_events(events: Iterable[dict], search: str | None = None, department: str | None = None) -> list[dict]:
    filtered = []
    for event in events:
        if search and not matches_search(event, search):
            continue
        if department and department not in event_departments(event):
            continue
        filtered.append(event)
    return filtered


def events_on_date(events: Iterable[dict], day: date) -> list[dict]:
    return [event for event in events if parse_event_date(event) == day]


def week_dates(day: date) -> list[date | None]:
    """The Sunday-first week holding ``day``; slots past ``date.min``/``date.max`` are ``None``."""
    # date.weekday() has Monday as 0.
    first = day.toordinal() - (day.weekday() + 1) % DAYS_IN_WEEK
    last_ordinal = date.max.toordinal()
    return [
        date.fromordinal(ordinal) if 1 <= ordinal <= last_ordinal else None
        for ordinal in range(first, first + DAYS_IN_WEEK)
    ]


def events_in_week(events: Iterable[dict], day: date) -> list[dict]:
    days = {week_day for week_day in week_dates(day) if week_day}
    return [event for event in events if parse_event_date(event) in days]


def count_events_in_month(events: Iterable[dict], year: int, month: int) -> int:
    count = 0
    for event in events:
        event_date = parse_event_date(event)
        if event_date and event_date.year == year and event_date.month == month:
            count += 1
    return count


def department_event_counts(events: Iterable[dict]) -> dict[str, int]:
    counts: Counter[str] = Counter()
    for event in events:
        counts.update(event_departments(event))
    return dict(counts)


def month_grid(year: int, month: int) -> list[list[date | None]]:
    """Weeks of the month, Sunday first, padded with ``None`` outside the month."""
    weeks = []
    # monthdayscalendar pads with 0 rather than building dates in the
    # neighbouring months, which may not exist for years 1 and 9999.
    for week in calendar.Calendar(firstweekday=calendar.SUNDAY).monthdayscalendar(year, month):
        weeks.append([date(year, month, day) if day else None for day in week])
    return weeks


def calendar_step(view: str, day: date, step: int) -> date | None:
    """Move ``step`` months, weeks or days from ``day``; ``None`` past the supported range."""
    try:
        if view == MONTH_VIEW:
            index = day.year * 12 + day.month - 1 + step
            return date(index // 12, index % 12 + 1, 1)
        if view == WEEK_VIEW:
            return day + timedelta(weeks=step)
        return day + timedelta(days=step)
    except (ValueError, OverflowError):
        return None
