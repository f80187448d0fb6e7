"""
Application service for handyman scheduling.

The service coordinates reads from a job store adapter and delegates the
actual conflict, availability and suggestion logic to the domain layer.
The store is injected through a small protocol so the JSON adapter, the
in-memory adapter or a test stub can be plugged in interchangeably.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Collection, List, Optional, Protocol, Tuple, TypeVar

import pendulum
from pendulum import DateTime

from ..domain.availability import DEFAULT_SLOT_HOURS, AvailabilityCalculator
from ..domain.conflicts import find_conflicts
from ..domain.exceptions import InvalidWindowError, SchedulingError, StoreUnavailableError
from ..domain.models import (
    DEFAULT_JOB_DURATION_HOURS,
    OCCUPYING_STATUSES,
    AlternativeSuggestion,
    AvailabilitySlot,
    BookingValidation,
    CommittedJob,
    ConflictResult,
    ScheduleStats,
    TimeWindow,
    WorkingHoursPolicy,
)
from ..domain.suggestions import (
    DEFAULT_MAX_DAYS,
    DEFAULT_MAX_RESULTS,
    candidate_dates,
    make_suggestion,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Inclusive [start, end] range on job start times.
DateRange = Tuple[DateTime, DateTime]


class JobStoreProtocol(Protocol):
    """Protocol describing the job store behaviour needed by the service."""

    async def query_jobs(
        self,
        handyman_id: str,
        statuses: Collection[str],
        date_range: Optional[DateRange] = None,
    ) -> List[CommittedJob]:
        """Return the handyman's jobs in ``statuses``, optionally limited by start time."""

    async def get_working_hours_policy(self, handyman_id: str) -> Optional[WorkingHoursPolicy]:
        """Return the stored policy, or None when the handyman has none."""

    async def set_working_hours_policy(
        self, handyman_id: str, policy: WorkingHoursPolicy
    ) -> bool:
        """Persist the policy and report whether the write succeeded."""


class ScheduleService:
    """
    Answers booking, availability and reporting questions for handymen.

    Every public operation is read-only except ``update_working_hours``.
    Store failures are raised as ``StoreUnavailableError``; nothing is
    retried and no operation returns a partial result.
    """

    def __init__(
        self,
        job_store: JobStoreProtocol,
        *,
        timezone: str = "UTC",
        clock: Optional[Callable[[], DateTime]] = None,
        store_timeout: Optional[float] = None,
        default_policy: Optional[WorkingHoursPolicy] = None,
    ) -> None:
        self._job_store = job_store
        self.default_policy = default_policy or WorkingHoursPolicy.default()
        self.timezone = timezone
        self._clock = clock or (lambda: pendulum.now(self.timezone))
        self._store_timeout = store_timeout

    def now(self) -> DateTime:
        return self._clock()

    # Working hours

    async def get_working_hours(self, handyman_id: str) -> WorkingHoursPolicy:
        """Stored policy, or the default policy when none is stored."""
        policy = await self._call_store(
            "get_working_hours",
            handyman_id,
            self._job_store.get_working_hours_policy(handyman_id),
        )
        if policy is None:
            logger.debug("No working hours stored for %s, using defaults", handyman_id)
            return self.default_policy
        return policy

    async def update_working_hours(self, handyman_id: str, policy: WorkingHoursPolicy) -> bool:
        saved = await self._call_store(
            "update_working_hours",
            handyman_id,
            self._job_store.set_working_hours_policy(handyman_id, policy),
        )
        if not saved:
            raise StoreUnavailableError(
                f"Job store rejected the working hours update for {handyman_id}",
                handyman_id=handyman_id,
                operation="update_working_hours",
            )
        logger.info("Updated working hours for %s: %s", handyman_id, policy.to_dict())
        return True

    # Conflicts

    async def check_conflict(
        self,
        handyman_id: str,
        window: TimeWindow,
        exclude_job_id: Optional[str] = None,
    ) -> ConflictResult:
        """Check ``window`` against every committed job of the handyman."""
        jobs = await self._fetch_jobs("check_conflict", handyman_id)
        result = find_conflicts(window, jobs, exclude_job_id=exclude_job_id)

        logger.debug(
            "Conflict check for %s in %s: %d conflicting job(s)",
            handyman_id,
            window,
            len(result.conflicting_jobs),
        )
        return result

    async def check_time_slot(
        self,
        handyman_id: str,
        start: DateTime,
        duration_hours: float = DEFAULT_JOB_DURATION_HOURS,
        exclude_job_id: Optional[str] = None,
    ) -> ConflictResult:
        """Conflict check for a job of ``duration_hours`` starting at ``start``."""
        window = TimeWindow.from_duration(start, duration_hours)
        return await self.check_conflict(handyman_id, window, exclude_job_id=exclude_job_id)

    async def is_available(
        self,
        handyman_id: str,
        start: DateTime,
        duration_hours: float = DEFAULT_JOB_DURATION_HOURS,
    ) -> bool:
        result = await self.check_time_slot(handyman_id, start, duration_hours)
        return not result.has_conflict

    # Availability

    async def get_busy_jobs(
        self,
        handyman_id: str,
        start: DateTime,
        end: DateTime,
    ) -> List[CommittedJob]:
        """Committed jobs starting within [start, end], earliest first."""
        jobs = await self._fetch_jobs("get_busy_jobs", handyman_id, (start, end))
        return sorted(
            (job for job in jobs if job.start_time is not None),
            key=lambda job: job.start_time,
        )

    async def get_availability(
        self,
        handyman_id: str,
        range_start: DateTime,
        range_end: DateTime,
    ) -> List[AvailabilitySlot]:
        """
        One slot per working day in [range_start, range_end].

        Days off are omitted rather than reported as unavailable.
        """
        if range_end < range_start:
            raise InvalidWindowError(
                f"Range end {range_end} is before range start {range_start}",
                handyman_id=handyman_id,
                operation="get_availability",
            )

        date_range = (range_start.start_of("day"), range_end.end_of("day"))
        policy, jobs = await asyncio.gather(
            self.get_working_hours(handyman_id),
            self._fetch_jobs("get_availability", handyman_id, date_range),
        )

        return AvailabilityCalculator(policy).daily_availability(range_start, range_end, jobs)

    async def get_available_time_slots(
        self,
        handyman_id: str,
        date: DateTime,
        policy: Optional[WorkingHoursPolicy] = None,
        slot_hours: float = DEFAULT_SLOT_HOURS,
    ) -> List[AvailabilitySlot]:
        """
        Split one working day into ``slot_hours`` slots and mark the busy ones.

        Only jobs starting on ``date`` are considered.
        """
        if policy is None:
            policy = await self.get_working_hours(handyman_id)

        if policy.is_day_off(date):
            return []

        day_range = (date.start_of("day"), date.end_of("day"))
        jobs = await self._fetch_jobs("get_available_time_slots", handyman_id, day_range)

        return AvailabilityCalculator(policy).time_slots(date, jobs, slot_hours=slot_hours)

    async def next_working_day(self, handyman_id: str, from_date: DateTime) -> DateTime:
        policy = await self.get_working_hours(handyman_id)
        return AvailabilityCalculator(policy).next_working_day(from_date)

    # Suggestions

    async def suggest_alternatives(
        self,
        handyman_id: str,
        desired_start: DateTime,
        duration_hours: float = DEFAULT_JOB_DURATION_HOURS,
        max_days: int = DEFAULT_MAX_DAYS,
        max_results: int = DEFAULT_MAX_RESULTS,
        exclude_job_id: Optional[str] = None,
    ) -> List[AlternativeSuggestion]:
        """
        Search outward from ``desired_start`` for conflict-free dates.

        Offsets 1..max_days are tried in turn, forward before backward, and
        the search stops once ``max_results`` dates are found. Because the
        search stops early, a free backward date at offset k+1 is never
        preferred over a forward date found at offset k. Results are
        returned in ascending date order.
        """
        if max_days < 1:
            raise ValueError(f"max_days must be at least 1, got {max_days}")
        if max_results < 1:
            raise ValueError(f"max_results must be at least 1, got {max_results}")

        policy, jobs = await asyncio.gather(
            self.get_working_hours(handyman_id),
            self._fetch_jobs("suggest_alternatives", handyman_id),
        )
        now = self.now()
        found: List[DateTime] = []

        for offset, candidate in candidate_dates(desired_start, now, policy, max_days):
            window = TimeWindow.from_duration(candidate, duration_hours)
            if find_conflicts(window, jobs, exclude_job_id=exclude_job_id).has_conflict:
                continue

            logger.debug("Candidate %s (offset %+d) is free for %s", candidate, offset, handyman_id)
            found.append(candidate)
            if len(found) >= max_results:
                break

        return [make_suggestion(date, now) for date in sorted(found)]

    async def validate_booking(
        self,
        handyman_id: str,
        start: DateTime,
        duration_hours: float = DEFAULT_JOB_DURATION_HOURS,
        exclude_job_id: Optional[str] = None,
    ) -> BookingValidation:
        """Check a proposed booking and, when it conflicts, offer alternatives."""
        conflict = await self.check_time_slot(
            handyman_id, start, duration_hours, exclude_job_id=exclude_job_id
        )

        suggestions: List[AlternativeSuggestion] = []
        if conflict.has_conflict:
            suggestions = await self.suggest_alternatives(
                handyman_id,
                start,
                duration_hours,
                exclude_job_id=exclude_job_id,
            )

        return BookingValidation(
            valid=not conflict.has_conflict,
            conflicts=conflict.conflicting_jobs,
            suggestions=suggestions,
        )

    # Statistics

    async def get_schedule_stats(self, handyman_id: str) -> ScheduleStats:
        """
        Job counts and hours for this week, next week and the next 30 days.

        The three range queries run concurrently; if any fails the whole
        call fails.
        """
        now = self.now()
        next_week = now.add(days=7)

        this_week_jobs, next_week_jobs, month_jobs = await asyncio.gather(
            self._fetch_jobs("get_schedule_stats", handyman_id, (now, now.add(days=7))),
            self._fetch_jobs("get_schedule_stats", handyman_id, (next_week, next_week.add(days=7))),
            self._fetch_jobs("get_schedule_stats", handyman_id, (now, now.add(days=30))),
        )

        month_hours = _total_hours(month_jobs)
        average = month_hours / len(month_jobs) if month_jobs else 0.0

        return ScheduleStats(
            projects_this_week=len(this_week_jobs),
            projects_next_week=len(next_week_jobs),
            projects_next_month=len(month_jobs),
            hours_this_week=_total_hours(this_week_jobs),
            hours_next_week=_total_hours(next_week_jobs),
            average_project_duration=average,
        )

    # Store access

    async def _fetch_jobs(
        self,
        operation: str,
        handyman_id: str,
        date_range: Optional[DateRange] = None,
    ) -> List[CommittedJob]:
        jobs = await self._call_store(
            operation,
            handyman_id,
            self._job_store.query_jobs(handyman_id, OCCUPYING_STATUSES, date_range),
        )
        return list(jobs)

    async def _call_store(self, operation: str, handyman_id: str, call: Awaitable[T]) -> T:
        """
        Await a store call under the configured deadline.

        Any failure, including an expired deadline, becomes a
        ``StoreUnavailableError`` naming the handyman and the operation.
        """
        try:
            if self._store_timeout is None:
                return await call
            return await asyncio.wait_for(call, timeout=self._store_timeout)
        except SchedulingError as exc:
            if exc.handyman_id is None:
                exc.handyman_id = handyman_id
            if exc.operation is None:
                exc.operation = operation
            raise
        except asyncio.TimeoutError as exc:
            logger.error("Job store timed out during %s for %s", operation, handyman_id)
            raise StoreUnavailableError(
                f"Job store did not answer within {self._store_timeout}s",
                handyman_id=handyman_id,
                operation=operation,
            ) from exc
        except Exception as exc:
            logger.error("Job store failed during %s for %s: %s", operation, handyman_id, exc)
            raise StoreUnavailableError(
                f"Job store failed: {exc}",
                handyman_id=handyman_id,
                operation=operation,
            ) from exc


def _total_hours(jobs: List[CommittedJob]) -> float:
    return sum(job.effective_duration_hours for job in jobs)
