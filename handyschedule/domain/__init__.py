"""
Domain layer - Pure scheduling logic without I/O.
"""

from .availability import AvailabilityCalculator
from .conflicts import find_conflicts
from .exceptions import (
    InvalidPolicyError,
    InvalidWindowError,
    SchedulingError,
    StoreUnavailableError,
)
from .models import (
    OCCUPYING_STATUSES,
    AlternativeSuggestion,
    AvailabilitySlot,
    BookingValidation,
    CommittedJob,
    ConflictResult,
    ScheduleStats,
    TimeWindow,
    WorkingHoursPolicy,
    is_working_time,
    overlap_hours,
    overlaps,
)

__all__ = [
    "OCCUPYING_STATUSES",
    "AlternativeSuggestion",
    "AvailabilityCalculator",
    "AvailabilitySlot",
    "BookingValidation",
    "CommittedJob",
    "ConflictResult",
    "InvalidPolicyError",
    "InvalidWindowError",
    "ScheduleStats",
    "SchedulingError",
    "StoreUnavailableError",
    "TimeWindow",
    "WorkingHoursPolicy",
    "find_conflicts",
    "is_working_time",
    "overlap_hours",
    "overlaps",
]
