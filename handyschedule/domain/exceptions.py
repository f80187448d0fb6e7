"""
Domain-specific exception hierarchy for the scheduling core.
"""

from __future__ import annotations

from typing import Optional


class SchedulingError(Exception):
    """Base class for all scheduling errors.

    Carries the handyman and the operation so callers can render an
    actionable message without parsing the text.
    """

    def __init__(
        self,
        message: str,
        *,
        handyman_id: Optional[str] = None,
        operation: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.handyman_id = handyman_id
        self.operation = operation


class InvalidWindowError(SchedulingError, ValueError):
    """Raised when a time window does not start before it ends."""


class InvalidPolicyError(SchedulingError, ValueError):
    """Raised when a working-hours policy is malformed."""


class StoreUnavailableError(SchedulingError):
    """Raised when the job store cannot be read or written."""
