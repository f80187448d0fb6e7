"""
Job store adapters backing the scheduling service.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Collection, Dict, Iterable, List, Mapping, Optional, Tuple

import pendulum
from pendulum import DateTime

from ..domain.exceptions import StoreUnavailableError
from ..domain.models import CommittedJob, WorkingHoursPolicy

logger = logging.getLogger(__name__)

DateRange = Tuple[DateTime, DateTime]


def _in_range(job: CommittedJob, date_range: Optional[DateRange]) -> bool:
    if date_range is None:
        return True
    if job.start_time is None:
        return False
    start, end = date_range
    return start <= job.start_time <= end


class InMemoryJobStore:
    """
    Dict-backed store, useful for tests and for embedding the service.
    """

    def __init__(
        self,
        jobs: Iterable[CommittedJob] = (),
        policies: Optional[Mapping[str, WorkingHoursPolicy]] = None,
    ):
        self.jobs: List[CommittedJob] = list(jobs)
        self.policies: Dict[str, WorkingHoursPolicy] = dict(policies or {})

    def add_job(self, job: CommittedJob) -> None:
        self.jobs.append(job)

    async def query_jobs(
        self,
        handyman_id: str,
        statuses: Collection[str],
        date_range: Optional[DateRange] = None,
    ) -> List[CommittedJob]:
        return [
            job for job in self.jobs
            if job.handyman_id == handyman_id
            and job.status in statuses
            and _in_range(job, date_range)
        ]

    async def get_working_hours_policy(self, handyman_id: str) -> Optional[WorkingHoursPolicy]:
        return self.policies.get(handyman_id)

    async def set_working_hours_policy(self, handyman_id: str, policy: WorkingHoursPolicy) -> bool:
        self.policies[handyman_id] = policy
        return True


class JsonJobStore:
    """
    Store that reads project and user documents from a JSON file.

    Expected layout::

        {
            "projects": [
                {
                    "id": "p1",
                    "handymanId": "h1",
                    "title": "Fix sink",
                    "status": "in_progress",
                    "scheduledStartDate": "2025-06-10T09:00:00",
                    "scheduledEndDate": "2025-06-10T13:00:00",
                    "preferredDate": "2025-06-10",
                    "estimatedDurationHours": 4
                }
            ],
            "users": {
                "h1": {"workingHours": {"start": 8, "end": 18, "daysOff": [0]}}
            }
        }

    The start time comes from ``scheduledStartDate`` and falls back to
    ``preferredDate``. Times without an offset are read in ``timezone``.
    Projects that cannot be read, including ones whose end is not after
    their start, are skipped with a warning. Working-hours updates are
    written back to the file.
    """

    def __init__(self, data_file: Path, timezone: str = "UTC"):
        self.data_file = Path(data_file)
        self.timezone = timezone
        self._load_documents()

    def _load_documents(self) -> None:
        """Load documents from the JSON file; a missing file is an empty store."""
        if not self.data_file.exists():
            logger.warning("Job data file %s not found, starting empty", self.data_file)
            self.projects: List[Dict[str, Any]] = []
            self.users: Dict[str, Dict[str, Any]] = {}
            return

        try:
            with open(self.data_file, "r", encoding="utf-8") as f:
                data = json.load(f) or {}
        except (OSError, ValueError) as exc:
            raise StoreUnavailableError(
                f"Could not read job data from {self.data_file}: {exc}"
            ) from exc

        if not isinstance(data, dict):
            raise StoreUnavailableError(
                f"Job data in {self.data_file} must contain a mapping at the root level."
            )

        self.projects = list(data.get("projects", []))
        self.users = dict(data.get("users", {}))

    def _save_documents(self, users: Dict[str, Dict[str, Any]]) -> None:
        """Write to a sibling temp file and swap it in, so a failed write leaves the old file."""
        self.data_file.parent.mkdir(parents=True, exist_ok=True)
        tmp_file = self.data_file.with_name(self.data_file.name + ".tmp")

        try:
            with open(tmp_file, "w", encoding="utf-8") as f:
                json.dump({"projects": self.projects, "users": users}, f, indent=2)
            tmp_file.replace(self.data_file)
        except (OSError, TypeError, ValueError):
            tmp_file.unlink(missing_ok=True)
            raise

    def _parse_datetime(self, value: Any) -> Optional[DateTime]:
        if value in (None, ""):
            return None

        dt = pendulum.parse(str(value), tz=self.timezone)

        if isinstance(dt, DateTime):
            return dt.in_timezone(self.timezone)

        raise ValueError(f"Could not parse datetime: {value}")

    def _to_job(self, document: Mapping[str, Any]) -> CommittedJob:
        start = self._parse_datetime(document.get("scheduledStartDate"))
        if start is None:
            start = self._parse_datetime(document.get("preferredDate"))

        duration = document.get("estimatedDurationHours")

        return CommittedJob(
            id=str(document["id"]),
            title=document.get("title", ""),
            handyman_id=str(document["handymanId"]),
            status=document["status"],
            start_time=start,
            end_time=self._parse_datetime(document.get("scheduledEndDate")),
            duration_hours=float(duration) if duration else None,
        )

    async def query_jobs(
        self,
        handyman_id: str,
        statuses: Collection[str],
        date_range: Optional[DateRange] = None,
    ) -> List[CommittedJob]:
        jobs: List[CommittedJob] = []

        for document in self.projects:
            if document.get("handymanId") != handyman_id:
                continue
            if document.get("status") not in statuses:
                continue

            try:
                job = self._to_job(document)
            except (KeyError, ValueError) as exc:
                logger.warning("Skipping unreadable project %s: %s", document.get("id"), exc)
                continue

            if _in_range(job, date_range):
                jobs.append(job)

        return jobs

    async def get_working_hours_policy(self, handyman_id: str) -> Optional[WorkingHoursPolicy]:
        working_hours = self.users.get(handyman_id, {}).get("workingHours")
        if not working_hours:
            return None
        return WorkingHoursPolicy.from_dict(working_hours)

    async def set_working_hours_policy(self, handyman_id: str, policy: WorkingHoursPolicy) -> bool:
        user = dict(self.users.get(handyman_id, {}))
        user["workingHours"] = policy.to_dict()
        user["updatedAt"] = pendulum.now("UTC").to_iso8601_string()

        users = {**self.users, handyman_id: user}
        self._save_documents(users)
        self.users = users
        return True
