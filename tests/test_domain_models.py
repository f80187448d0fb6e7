"""
Tests for domain models.
"""

import pendulum
import pytest

from handyschedule.domain.exceptions import InvalidPolicyError, InvalidWindowError
from handyschedule.domain.models import (
    CommittedJob,
    TimeWindow,
    WorkingHoursPolicy,
    day_of_week,
    is_working_time,
    overlap_hours,
    overlaps,
)

TZ = "Europe/Berlin"


def _dt(value: str):
    return pendulum.parse(value, tz=TZ)


def _window(start: str, end: str) -> TimeWindow:
    return TimeWindow(start=_dt(start), end=_dt(end))


class TestTimeWindow:
    """Tests for TimeWindow model."""

    def test_create_valid_window(self):
        """Test creating a valid window."""
        window = _window("2025-06-10 09:00", "2025-06-10 13:00")

        assert window.start == _dt("2025-06-10 09:00")
        assert window.duration_hours() == 4

    def test_start_after_end_raises_error(self):
        """A window that ends before it starts is rejected."""
        with pytest.raises(InvalidWindowError, match="must be before end time"):
            _window("2025-06-10 13:00", "2025-06-10 09:00")

    def test_empty_window_raises_error(self):
        """start == end is not a window either."""
        with pytest.raises(InvalidWindowError):
            _window("2025-06-10 09:00", "2025-06-10 09:00")

    def test_invalid_window_is_a_value_error(self):
        with pytest.raises(ValueError):
            _window("2025-06-10 13:00", "2025-06-10 09:00")

    def test_from_duration_accepts_fractional_hours(self):
        window = TimeWindow.from_duration(_dt("2025-06-10 09:00"), 1.5)

        assert window.end == _dt("2025-06-10 10:30")

    def test_overlap_is_symmetric(self):
        """overlaps(a, b) == overlaps(b, a) for overlapping, touching and disjoint pairs."""
        windows = [
            _window("2025-06-10 09:00", "2025-06-10 12:00"),
            _window("2025-06-10 11:00", "2025-06-10 14:00"),
            _window("2025-06-10 14:00", "2025-06-10 17:00"),
            _window("2025-06-10 10:00", "2025-06-10 10:30"),
            _window("2025-06-11 09:00", "2025-06-11 10:00"),
        ]

        for a in windows:
            for b in windows:
                assert overlaps(a, b) == overlaps(b, a)

    def test_touching_windows_do_not_overlap(self):
        """A window ending at T and one starting at T do not conflict."""
        first = _window("2025-06-10 00:00", "2025-06-10 10:00")
        second = _window("2025-06-10 10:00", "2025-06-10 20:00")

        assert not overlaps(first, second)
        assert not overlaps(second, first)

    def test_contained_window_overlaps(self):
        outer = _window("2025-06-10 08:00", "2025-06-10 18:00")
        inner = _window("2025-06-10 10:00", "2025-06-10 11:00")

        assert overlaps(outer, inner)

    def test_contains_is_half_open(self):
        window = _window("2025-06-10 09:00", "2025-06-10 13:00")

        assert window.contains(_dt("2025-06-10 09:00"))
        assert window.contains(_dt("2025-06-10 12:59"))
        assert not window.contains(_dt("2025-06-10 13:00"))

    def test_intersect(self):
        """Test intersection calculation."""
        intersection = _window("2025-06-10 09:00", "2025-06-10 12:00").intersect(
            _window("2025-06-10 11:00", "2025-06-10 14:00")
        )

        assert intersection is not None
        assert intersection.start == _dt("2025-06-10 11:00")
        assert intersection.end == _dt("2025-06-10 12:00")

    def test_intersect_no_overlap(self):
        """Test intersection with no overlap returns None."""
        intersection = _window("2025-06-10 09:00", "2025-06-10 12:00").intersect(
            _window("2025-06-10 12:00", "2025-06-10 17:00")
        )

        assert intersection is None


class TestOverlapHours:
    """Tests for overlap_hours."""

    def test_partial_overlap(self):
        a = _window("2025-06-10 09:00", "2025-06-10 13:00")
        b = _window("2025-06-10 12:00", "2025-06-10 14:00")

        assert overlap_hours(a, b) == 1

    def test_disjoint_windows_share_nothing(self):
        a = _window("2025-06-10 09:00", "2025-06-10 13:00")
        b = _window("2025-06-10 13:00", "2025-06-10 14:00")

        assert overlap_hours(a, b) == 0

    def test_fractional_overlap(self):
        a = _window("2025-06-10 09:00", "2025-06-10 10:30")
        b = _window("2025-06-10 10:00", "2025-06-10 12:00")

        assert overlap_hours(a, b) == 0.5


class TestWorkingHoursPolicy:
    """Tests for WorkingHoursPolicy model."""

    def test_default_policy(self):
        """Defaults are 8-18 with Sunday off."""
        policy = WorkingHoursPolicy.default()

        assert policy.start_hour == 8
        assert policy.end_hour == 18
        assert policy.days_off == frozenset({0})

    def test_day_of_week_starts_on_sunday(self):
        assert day_of_week(_dt("2025-06-08")) == 0  # Sunday
        assert day_of_week(_dt("2025-06-09")) == 1  # Monday
        assert day_of_week(_dt("2025-06-14")) == 6  # Saturday

    def test_is_day_off(self):
        policy = WorkingHoursPolicy(start_hour=9, end_hour=17, days_off=[0, 6])

        assert policy.is_day_off(_dt("2025-06-08"))  # Sunday
        assert policy.is_day_off(_dt("2025-06-14"))  # Saturday
        assert not policy.is_day_off(_dt("2025-06-10"))  # Tuesday

    def test_days_off_are_stored_as_frozenset(self):
        policy = WorkingHoursPolicy(days_off=[0, 6, 6])

        assert policy.days_off == frozenset({0, 6})

    def test_start_must_be_before_end(self):
        with pytest.raises(InvalidPolicyError, match="must be before end_hour"):
            WorkingHoursPolicy(start_hour=18, end_hour=8)

    def test_hour_out_of_range(self):
        with pytest.raises(InvalidPolicyError, match="between 0 and 23"):
            WorkingHoursPolicy(start_hour=8, end_hour=24)

    def test_invalid_weekday(self):
        with pytest.raises(InvalidPolicyError, match="days_off"):
            WorkingHoursPolicy(days_off=[7])

    def test_every_day_off_is_rejected(self):
        with pytest.raises(InvalidPolicyError):
            WorkingHoursPolicy(days_off=range(7))

    def test_working_window_for_day(self):
        """The working window sits on the calendar day of the given date."""
        policy = WorkingHoursPolicy(start_hour=9, end_hour=17)

        window = policy.working_window(_dt("2025-06-10 15:45"))

        assert window is not None
        assert window.start == _dt("2025-06-10 09:00")
        assert window.end == _dt("2025-06-10 17:00")

    def test_working_window_on_day_off(self):
        assert WorkingHoursPolicy.default().working_window(_dt("2025-06-08")) is None

    def test_from_dict_fills_missing_keys(self):
        """A stored document with only daysOff keeps the default hours."""
        policy = WorkingHoursPolicy.from_dict({"daysOff": [0, 6]})

        assert policy.start_hour == 8
        assert policy.end_hour == 18
        assert policy.days_off == frozenset({0, 6})

    def test_to_dict_uses_document_names(self):
        policy = WorkingHoursPolicy(start_hour=7, end_hour=15, days_off=[6, 0])

        assert policy.to_dict() == {"start": 7, "end": 15, "daysOff": [0, 6]}
        assert WorkingHoursPolicy.from_dict(policy.to_dict()) == policy


class TestIsWorkingTime:
    """Tests for is_working_time."""

    def test_inside_working_hours(self):
        assert is_working_time(_dt("2025-06-10 08:00"), WorkingHoursPolicy.default())
        assert is_working_time(_dt("2025-06-10 17:59"), WorkingHoursPolicy.default())

    def test_end_hour_is_excluded(self):
        assert not is_working_time(_dt("2025-06-10 18:00"), WorkingHoursPolicy.default())

    def test_before_start(self):
        assert not is_working_time(_dt("2025-06-10 07:59"), WorkingHoursPolicy.default())

    def test_day_off(self):
        assert not is_working_time(_dt("2025-06-08 10:00"), WorkingHoursPolicy.default())


class TestCommittedJob:
    """Tests for the derived window of a committed job."""

    def test_explicit_end_is_used(self):
        job = CommittedJob(
            id="p1",
            title="Paint",
            handyman_id="h1",
            status="agreed_scheduled",
            start_time=_dt("2025-06-11 08:00"),
            end_time=_dt("2025-06-11 17:00"),
            duration_hours=2,
        )

        assert job.window() == _window("2025-06-11 08:00", "2025-06-11 17:00")

    def test_end_derived_from_duration(self):
        job = CommittedJob(
            id="p1",
            title="Fence",
            handyman_id="h1",
            status="in_progress",
            start_time=_dt("2025-06-11 08:00"),
            duration_hours=6,
        )

        assert job.window() == _window("2025-06-11 08:00", "2025-06-11 14:00")

    def test_duration_defaults_to_four_hours(self):
        job = CommittedJob(
            id="p1",
            title="Sink",
            handyman_id="h1",
            status="in_progress",
            start_time=_dt("2025-06-11 08:00"),
        )

        assert job.effective_duration_hours == 4
        assert job.window() == _window("2025-06-11 08:00", "2025-06-11 12:00")

    def test_end_not_after_start_is_rejected(self):
        with pytest.raises(InvalidWindowError):
            CommittedJob(
                id="p1",
                title="Backwards",
                handyman_id="h1",
                status="in_progress",
                start_time=_dt("2025-06-10 13:00"),
                end_time=_dt("2025-06-10 09:00"),
            )

    def test_non_positive_duration_is_rejected(self):
        with pytest.raises(InvalidWindowError):
            CommittedJob(
                id="p1",
                title="Zero",
                handyman_id="h1",
                status="in_progress",
                start_time=_dt("2025-06-10 13:00"),
                duration_hours=-2,
            )

    def test_job_without_start_has_no_window(self):
        job = CommittedJob(id="p1", title="Unscheduled", handyman_id="h1", status="in_progress")

        assert job.window() is None
