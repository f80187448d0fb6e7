"""
Conflict detection between a candidate window and committed jobs.
"""

import logging
from typing import Iterable, Optional

from .models import CommittedJob, ConflictResult, TimeWindow

logger = logging.getLogger(__name__)


def find_conflicts(
    candidate: TimeWindow,
    jobs: Iterable[CommittedJob],
    exclude_job_id: Optional[str] = None,
) -> ConflictResult:
    """
    Return the committed jobs whose effective window overlaps ``candidate``.

    Jobs are kept in the order they were given. The job named by
    ``exclude_job_id`` is ignored so a booking can be re-checked while it is
    being edited. Jobs without a start time cannot be placed on the
    calendar and are skipped.
    """
    conflicting = []

    for job in jobs:
        if exclude_job_id is not None and job.id == exclude_job_id:
            continue

        job_window = job.window()
        if job_window is None:
            logger.debug("Skipping job %s without a start time", job.id)
            continue

        if candidate.overlaps(job_window):
            conflicting.append(job)

    return ConflictResult(has_conflict=bool(conflicting), conflicting_jobs=conflicting)
