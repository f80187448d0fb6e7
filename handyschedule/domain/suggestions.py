"""
Alternative-date search order and display labels.
"""

import math
from typing import Iterator, Tuple

from pendulum import DateTime

from .models import AlternativeSuggestion, WorkingHoursPolicy

DEFAULT_MAX_DAYS = 7
DEFAULT_MAX_RESULTS = 5


def weekday_name(date: DateTime) -> str:
    """English weekday name, e.g. ``Monday``."""
    return date.format("dddd", locale="en")


def date_label(date: DateTime, today: DateTime) -> str:
    """
    Short human label for ``date`` relative to ``today``.

    ``Today``, ``Tomorrow`` and ``Yesterday`` for the adjacent days, the
    weekday name within a week, and ``Jun 14`` style beyond that.
    """
    day = date.date()
    current = today.date()

    if day == current:
        return "Today"
    if day == current.add(days=1):
        return "Tomorrow"
    if day == current.subtract(days=1):
        return "Yesterday"

    diff_days = math.ceil(abs((date - today).total_seconds()) / 86400)
    if diff_days <= 7:
        return weekday_name(date)

    return date.format("MMM D", locale="en")


def make_suggestion(date: DateTime, today: DateTime) -> AlternativeSuggestion:
    return AlternativeSuggestion(
        date=date,
        label=date_label(date, today),
        day_of_week=weekday_name(date),
    )


def candidate_dates(
    desired_start: DateTime,
    now: DateTime,
    policy: WorkingHoursPolicy,
    max_days: int = DEFAULT_MAX_DAYS,
) -> Iterator[Tuple[int, DateTime]]:
    """
    Yield ``(offset, candidate)`` pairs in search order.

    For each offset 1..max_days the forward date comes first, then the
    backward date. Days off are never yielded, nor dates that are not
    strictly after ``now``.
    """
    for offset in range(1, max_days + 1):
        forward = desired_start.add(days=offset)
        if forward > now and not policy.is_day_off(forward):
            yield offset, forward

        backward = desired_start.subtract(days=offset)
        if backward > now and not policy.is_day_off(backward):
            yield -offset, backward
