"""
Display helpers for durations and conflict messages.
"""

import math
from typing import Sequence

from .models import CommittedJob


def format_duration(hours: float) -> str:
    """
    Format a duration in hours for display.

    Examples: ``45 minutes``, ``1 hour``, ``3 hours``, ``2h 30m``,
    ``2 days``, ``1d 6h``.
    """
    if hours < 1:
        return f"{round(hours * 60)} minutes"
    if hours == 1:
        return "1 hour"
    if hours < 24:
        whole_hours = math.floor(hours)
        minutes = round((hours - whole_hours) * 60)
        if minutes == 0:
            return f"{whole_hours} hours"
        return f"{whole_hours}h {minutes}m"

    days = math.floor(hours / 24)
    remaining_hours = round(hours % 24)
    if remaining_hours == 0:
        return f"{days} day{'s' if days > 1 else ''}"
    return f"{days}d {remaining_hours}h"


def format_conflict_message(conflicting_jobs: Sequence[CommittedJob]) -> str:
    """Summarize conflicting jobs for the person trying to book."""
    if not conflicting_jobs:
        return ""

    if len(conflicting_jobs) == 1:
        job = conflicting_jobs[0]
        when = job.start_time.format("YYYY-MM-DD") if job.start_time else "an unscheduled date"
        return f'You already have "{job.title}" scheduled for {when}'

    return f"You have {len(conflicting_jobs)} other projects scheduled during this time"
