"""
Service layer that orchestrates the job store and domain logic.
"""

from .scheduler import JobStoreProtocol, ScheduleService

__all__ = ["JobStoreProtocol", "ScheduleService"]
