"""
Adapters layer - Job store implementations.
"""

from .job_store import InMemoryJobStore, JsonJobStore

__all__ = ["InMemoryJobStore", "JsonJobStore"]
