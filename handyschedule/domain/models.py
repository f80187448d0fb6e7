"""
Domain models for time windows, working hours and committed jobs.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any, Dict, FrozenSet, List, Mapping, Optional

from pendulum import DateTime

from .exceptions import InvalidPolicyError, InvalidWindowError

# Statuses that reserve the handyman's time.
OCCUPYING_STATUSES: FrozenSet[str] = frozenset(
    {
        "agreed_scheduled",
        "awaiting_payment",
        "in_progress",
        "payment_processing",
    }
)

DEFAULT_JOB_DURATION_HOURS = 4.0

DEFAULT_START_HOUR = 8
DEFAULT_END_HOUR = 18
DEFAULT_DAYS_OFF: FrozenSet[int] = frozenset({0})  # Sunday


def day_of_week(dt: DateTime) -> int:
    """Return the weekday with 0=Sunday ... 6=Saturday."""
    return dt.isoweekday() % 7


@dataclass(frozen=True)
class TimeWindow:
    """
    Immutable half-open time interval [start, end).

    Invariant: start must be before end.
    """
    start: DateTime
    end: DateTime

    def __post_init__(self):
        if self.start >= self.end:
            raise InvalidWindowError(
                f"Start time {self.start} must be before end time {self.end}"
            )

    @classmethod
    def from_duration(cls, start: DateTime, hours: float) -> "TimeWindow":
        """Build a window of ``hours`` length starting at ``start``."""
        return cls(start=start, end=start + timedelta(hours=hours))

    def duration_hours(self) -> float:
        return (self.end - self.start).total_seconds() / 3600

    def overlaps(self, other: "TimeWindow") -> bool:
        """Check if this window overlaps another. Touching ends do not overlap."""
        return self.start < other.end and other.start < self.end

    def contains(self, instant: DateTime) -> bool:
        return self.start <= instant < self.end

    def intersect(self, other: "TimeWindow") -> "TimeWindow | None":
        """
        Calculate the intersection of two windows.
        Returns None if there is no overlap.
        """
        if not self.overlaps(other):
            return None

        return TimeWindow(
            start=max(self.start, other.start),
            end=min(self.end, other.end),
        )

    def __str__(self) -> str:
        return f"{self.start.format('YYYY-MM-DD HH:mm')} - {self.end.format('HH:mm')}"


def overlaps(a: TimeWindow, b: TimeWindow) -> bool:
    """Half-open overlap test, symmetric in its arguments."""
    return a.overlaps(b)


def overlap_hours(a: TimeWindow, b: TimeWindow) -> float:
    """Hours shared by two windows; 0 when they are disjoint."""
    shared = a.intersect(b)
    if shared is None:
        return 0.0
    return shared.duration_hours()


@dataclass(frozen=True)
class WorkingHoursPolicy:
    """
    Per-handyman working hours and days off.

    ``days_off`` uses 0=Sunday ... 6=Saturday.
    """
    start_hour: int = DEFAULT_START_HOUR
    end_hour: int = DEFAULT_END_HOUR
    days_off: FrozenSet[int] = DEFAULT_DAYS_OFF

    def __post_init__(self):
        for name in ("start_hour", "end_hour"):
            value = getattr(self, name)
            if not 0 <= value <= 23:
                raise InvalidPolicyError(f"{name} must be between 0 and 23, got {value}")
        if self.start_hour >= self.end_hour:
            raise InvalidPolicyError(
                f"start_hour {self.start_hour} must be before end_hour {self.end_hour}"
            )
        invalid_days = sorted(day for day in self.days_off if day not in range(7))
        if invalid_days:
            raise InvalidPolicyError(f"days_off must be between 0 and 6, got {invalid_days}")
        if len(set(self.days_off)) == 7:
            raise InvalidPolicyError("days_off cannot cover every day of the week")
        # Accept any iterable of weekdays but always store a frozenset.
        object.__setattr__(self, "days_off", frozenset(self.days_off))

    @classmethod
    def default(cls) -> "WorkingHoursPolicy":
        return cls()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "WorkingHoursPolicy":
        """
        Build a policy from a stored ``workingHours`` document.

        Missing keys fall back to the defaults, so a document holding only
        ``daysOff`` is still usable.
        """
        return cls(
            start_hour=int(data.get("start", DEFAULT_START_HOUR)),
            end_hour=int(data.get("end", DEFAULT_END_HOUR)),
            days_off=frozenset(int(day) for day in data.get("daysOff", DEFAULT_DAYS_OFF)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "start": self.start_hour,
            "end": self.end_hour,
            "daysOff": sorted(self.days_off),
        }

    def is_day_off(self, dt: DateTime) -> bool:
        return day_of_week(dt) in self.days_off

    def working_window(self, date: DateTime) -> TimeWindow | None:
        """
        Get the working window for the calendar day of ``date``.
        Returns None on a day off.
        """
        if self.is_day_off(date):
            return None

        start = date.set(hour=self.start_hour, minute=0, second=0, microsecond=0)
        end = date.set(hour=self.end_hour, minute=0, second=0, microsecond=0)

        return TimeWindow(start=start, end=end)


def is_working_time(instant: DateTime, policy: WorkingHoursPolicy) -> bool:
    """True if ``instant`` falls inside the policy's working hours."""
    if policy.is_day_off(instant):
        return False
    return policy.start_hour <= instant.hour < policy.end_hour


@dataclass(frozen=True)
class CommittedJob:
    """
    Read-only projection of a job record that occupies a handyman's time.
    """
    id: str
    title: str
    handyman_id: str
    status: str
    start_time: Optional[DateTime] = None
    end_time: Optional[DateTime] = None
    duration_hours: Optional[float] = None

    def __post_init__(self):
        if self.start_time is not None and self.end_time is not None and self.end_time <= self.start_time:
            raise InvalidWindowError(
                f"Job {self.id} ends at {self.end_time}, not after its start {self.start_time}"
            )
        if self.duration_hours is not None and self.duration_hours <= 0:
            raise InvalidWindowError(
                f"Job {self.id} has a non-positive duration of {self.duration_hours}h"
            )

    @property
    def effective_duration_hours(self) -> float:
        return self.duration_hours or DEFAULT_JOB_DURATION_HOURS

    def window(self) -> TimeWindow | None:
        """
        Resolve the job's effective window.

        Without an explicit end the window spans ``effective_duration_hours``
        from the start. Returns None for a job with no start time.
        """
        if self.start_time is None:
            return None

        if self.end_time is not None:
            return TimeWindow(start=self.start_time, end=self.end_time)

        return TimeWindow.from_duration(self.start_time, self.effective_duration_hours)


@dataclass
class ConflictResult:
    """Outcome of checking a candidate window against committed jobs."""
    has_conflict: bool
    conflicting_jobs: List[CommittedJob] = field(default_factory=list)


@dataclass(frozen=True)
class AlternativeSuggestion:
    """A conflict-free date offered in place of the requested one."""
    date: DateTime
    label: str
    day_of_week: str


@dataclass(frozen=True)
class AvailabilitySlot:
    """
    Availability of one working window, either a whole day or a part of one.
    """
    date: DateTime
    start_time: DateTime
    end_time: DateTime
    available: bool
    conflict_count: int = 0

    def label(self) -> str:
        return f"{self.start_time.format('HH:mm')} - {self.end_time.format('HH:mm')}"


@dataclass(frozen=True)
class ScheduleStats:
    """Job counts and hours over the weekly and monthly reporting windows."""
    projects_this_week: int
    projects_next_week: int
    projects_next_month: int
    hours_this_week: float
    hours_next_week: float
    average_project_duration: float


@dataclass
class BookingValidation:
    """Combined answer for a booking request: conflicts plus alternatives."""
    valid: bool
    conflicts: List[CommittedJob] = field(default_factory=list)
    suggestions: List[AlternativeSuggestion] = field(default_factory=list)
