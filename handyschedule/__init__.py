"""
handyschedule - handyman schedule-conflict resolution.
"""

__version__ = "0.1.0"
