#!/usr/bin/env python3
"""
Error types for the Academic Calendar Engine.
Callers map these to whatever presentation they need (HTTP status, CLI exit code).
"""


class AcademicCalendarError(Exception):
    """Base exception for all academic calendar errors."""
    pass


class ValidationError(AcademicCalendarError):
    """Invalid input or configuration (out-of-range years, negative day deltas)."""
    pass


class ConflictError(AcademicCalendarError):
    """A record with the same unique key already exists in the store."""
    pass


class NotFoundError(AcademicCalendarError):
    """An expected record could not be found."""
    pass


class PersistenceError(AcademicCalendarError):
    """Transport or storage failure in the persistence layer."""
    pass
