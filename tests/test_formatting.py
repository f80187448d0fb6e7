"""
Tests for display formatting helpers.
"""

import pendulum
import pytest

from handyschedule.domain.formatting import format_conflict_message, format_duration
from handyschedule.domain.models import CommittedJob


@pytest.mark.parametrize(
    "hours, expected",
    [
        (0.75, "45 minutes"),
        (1, "1 hour"),
        (3, "3 hours"),
        (2.5, "2h 30m"),
        (24, "1 day"),
        (48, "2 days"),
        (30, "1d 6h"),
    ],
)
def test_format_duration(hours, expected):
    assert format_duration(hours) == expected


def _job(job_id: str, title: str):
    return CommittedJob(
        id=job_id,
        title=title,
        handyman_id="h1",
        status="in_progress",
        start_time=pendulum.parse("2025-06-10 09:00", tz="Europe/Berlin"),
    )


class TestConflictMessage:
    """Tests for format_conflict_message."""

    def test_no_conflicts(self):
        assert format_conflict_message([]) == ""

    def test_single_conflict_names_the_job(self):
        message = format_conflict_message([_job("p1", "Fix sink")])

        assert message == 'You already have "Fix sink" scheduled for 2025-06-10'

    def test_several_conflicts_are_counted(self):
        message = format_conflict_message([_job("p1", "Fix sink"), _job("p2", "Paint")])

        assert message == "You have 2 other projects scheduled during this time"
