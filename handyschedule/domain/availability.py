"""
Availability calculation over working hours and committed jobs.

Pure domain logic: callers fetch the jobs, this module only intersects
them with the working-hours policy.
"""

from datetime import timedelta
from typing import Dict, List, Sequence

from pendulum import Date, DateTime

from .models import AvailabilitySlot, CommittedJob, TimeWindow, WorkingHoursPolicy

DEFAULT_SLOT_HOURS = 2.0


class AvailabilityCalculator:
    """
    Builds day-level and slot-level availability for one handyman.

    Day-level availability counts jobs by calendar date of their start;
    slot-level availability uses true interval overlap. The two are
    deliberately not unified: a job crossing midnight only counts against
    the day it starts on.
    """

    def __init__(self, policy: WorkingHoursPolicy):
        self.policy = policy

    def daily_availability(
        self,
        range_start: DateTime,
        range_end: DateTime,
        jobs: Sequence[CommittedJob],
    ) -> List[AvailabilitySlot]:
        """
        One slot per working day in [range_start, range_end], both days inclusive.

        Days off produce no slot at all.
        """
        jobs_per_day = self._count_jobs_per_day(jobs)
        slots: List[AvailabilitySlot] = []

        current = range_start.start_of("day")

        while current <= range_end:
            working = self.policy.working_window(current)

            if working:
                count = jobs_per_day.get(current.date(), 0)
                slots.append(
                    AvailabilitySlot(
                        date=current,
                        start_time=working.start,
                        end_time=working.end,
                        available=count == 0,
                        conflict_count=count,
                    )
                )

            current = current.add(days=1)

        return slots

    def time_slots(
        self,
        date: DateTime,
        jobs: Sequence[CommittedJob],
        slot_hours: float = DEFAULT_SLOT_HOURS,
    ) -> List[AvailabilitySlot]:
        """
        Partition the working day of ``date`` into ``slot_hours`` slots.

        A slot is unavailable when it overlaps any of the given jobs. The
        last slot is clipped to the end of working hours. Returns an empty
        list on a day off.
        """
        if slot_hours <= 0:
            raise ValueError(f"slot_hours must be positive, got {slot_hours}")

        working = self.policy.working_window(date)
        if working is None:
            return []

        job_windows = [w for w in (job.window() for job in jobs) if w is not None]
        day = date.start_of("day")
        step = timedelta(hours=slot_hours)

        slots: List[AvailabilitySlot] = []
        current = working.start

        while current < working.end:
            slot = TimeWindow(start=current, end=min(current + step, working.end))
            overlapping = sum(1 for busy in job_windows if slot.overlaps(busy))

            slots.append(
                AvailabilitySlot(
                    date=day,
                    start_time=slot.start,
                    end_time=slot.end,
                    available=overlapping == 0,
                    conflict_count=overlapping,
                )
            )
            current = slot.end

        return slots

    def next_working_day(self, from_date: DateTime) -> DateTime:
        """Return the first day after ``from_date`` that is not a day off."""
        next_day = from_date.add(days=1)

        while self.policy.is_day_off(next_day):
            next_day = next_day.add(days=1)

        return next_day

    @staticmethod
    def _count_jobs_per_day(jobs: Sequence[CommittedJob]) -> Dict[Date, int]:
        counts: Dict[Date, int] = {}

        for job in jobs:
            if job.start_time is None:
                continue
            day = job.start_time.date()
            counts[day] = counts.get(day, 0) + 1

        return counts
