"""
Recurring booking dates.

Expands one start date plus a repeat rule into the ordered list of dates
to book. Weekday numbers follow the booking calendar: 0 = Sunday,
1 = Monday, ... 6 = Saturday.
"""

from __future__ import annotations

import calendar
from datetime import date, timedelta

from autobook.errors import InvalidRecurrenceSpec
from autobook.models import RecurrencePattern, RecurrenceSpec

# "Never ends" books a year ahead.
NEVER_ENDS_WEEKS = 52

_MIN_ITERATIONS = 365

_FIXED_STEPS: dict[RecurrencePattern, timedelta] = {
    RecurrencePattern.DAILY: timedelta(days=1),
    RecurrencePattern.WEEKLY: timedelta(days=7),
    RecurrencePattern.BIWEEKLY: timedelta(days=14),
}


def calendar_weekday(day: date) -> int:
    """Weekday with Sunday as 0."""
    return day.isoweekday() % 7


def add_months(anchor: date, months: int) -> date:
    """*anchor* moved by whole months, day clamped to the month's length."""
    month_index = anchor.month - 1 + months
    year = anchor.year + month_index // 12
    month = month_index % 12 + 1
    day = min(anchor.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def _validate(
    pattern: RecurrencePattern,
    weekdays: set[int],
    occurrences: int | None,
    window_weeks: int | None,
) -> None:
    if pattern is RecurrencePattern.NONE:
        return
    if occurrences is not None and window_weeks is not None:
        raise InvalidRecurrenceSpec("Give either occurrences or window_weeks, not both")
    if occurrences is None and window_weeks is None:
        raise InvalidRecurrenceSpec("A repeating booking needs occurrences or window_weeks")
    if occurrences is not None and occurrences <= 0:
        raise InvalidRecurrenceSpec(f"occurrences must be positive, got {occurrences}")
    if window_weeks is not None and window_weeks <= 0:
        raise InvalidRecurrenceSpec(f"window_weeks must be positive, got {window_weeks}")
    bad = sorted(d for d in weekdays if not 0 <= d <= 6)
    if bad:
        raise InvalidRecurrenceSpec(f"Weekdays must be 0-6, got {bad}")


def generate_dates(
    start_date: date,
    pattern: RecurrencePattern,
    weekdays: set[int] | frozenset[int] | list[int] = (),
    *,
    occurrences: int | None = None,
    window_weeks: int | None = None,
) -> list[date]:
    """
    Dates to book for a repeat rule, strictly increasing.

    * Weekly/biweekly with weekdays: every matching day from the start.
    * Otherwise: the start date, then fixed steps (or calendar months).

    Stops once *occurrences* dates exist, or once the next candidate is
    ``window_weeks * 7`` or more days after the start. A hard iteration
    ceiling keeps contradictory rules finite.
    """
    pattern = RecurrencePattern(pattern)
    weekday_set = set(weekdays)
    _validate(pattern, weekday_set, occurrences, window_weeks)

    if pattern is RecurrencePattern.NONE:
        return [start_date]

    window_days = window_weeks * 7 if window_weeks is not None else None
    ceiling = max(
        window_days or 0,
        occurrences * 14 if occurrences is not None else 0,
        _MIN_ITERATIONS,
    )
    walk_weekdays = (
        pattern in (RecurrencePattern.WEEKLY, RecurrencePattern.BIWEEKLY)
        and bool(weekday_set)
    )

    dates: list[date] = []
    current = start_date
    steps = 0
    for _ in range(ceiling):
        if walk_weekdays:
            if calendar_weekday(current) in weekday_set:
                dates.append(current)
                if occurrences is not None and len(dates) >= occurrences:
                    break
            current += timedelta(days=1)
        else:
            dates.append(current)
            if occurrences is not None and len(dates) >= occurrences:
                break
            steps += 1
            if pattern is RecurrencePattern.MONTHLY:
                current = add_months(start_date, steps)
            else:
                current += _FIXED_STEPS[pattern]

        if window_days is not None and (current - start_date).days >= window_days:
            break

    return dates


def dates_for(start_date: date, spec: RecurrenceSpec | None) -> list[date]:
    """Dates for a request's recurrence block (None means a one-off)."""
    if spec is None:
        return [start_date]
    if spec.never_ends and spec.pattern is not RecurrencePattern.NONE:
        if spec.occurrences is not None or spec.window_weeks is not None:
            raise InvalidRecurrenceSpec("never_ends cannot be combined with occurrences or window_weeks")
    window_weeks = NEVER_ENDS_WEEKS if spec.never_ends else spec.window_weeks
    occurrences = None if spec.never_ends else spec.occurrences
    return generate_dates(
        start_date,
        spec.pattern,
        spec.weekdays,
        occurrences=occurrences,
        window_weeks=window_weeks,
    )
