#!/usr/bin/env python3
"""
Database Operations for the Academic Calendar Store
Provides academic year and semester persistence on PostgreSQL with retry and error mapping,
plus the async repository the generator consumes.
"""

import asyncio
import logging
import time
from functools import wraps
from typing import Any, Dict, List, Optional

import psycopg2
from psycopg2 import errors

from academic_records import AcademicYear, NewAcademicYear, NewSemester, Semester
from calendar_errors import ConflictError, PersistenceError

from .connection import DatabaseConnectionManager

# Configure logging
logger = logging.getLogger(__name__)


class DatabaseOperationError(PersistenceError):
    """Custom exception for database operation errors."""
    pass


class RetryableError(DatabaseOperationError):
    """Exception for errors that can be retried."""
    pass


class NonRetryableError(DatabaseOperationError):
    """Exception for errors that should not be retried."""
    pass


def retry_on_database_error(max_retries: int = 3, delay: float = 1.0, backoff: float = 2.0):
    """
    Decorator to retry database operations on transient errors.

    Unique-key violations become ConflictError; other integrity, programming and
    data errors become NonRetryableError.

    Args:
        max_retries: Maximum number of retry attempts
        delay: Initial delay between retries in seconds
        backoff: Multiplier for delay after each retry
    """
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            current_delay = delay

            for attempt in range(max_retries + 1):
                try:
                    return func(*args, **kwargs)
                except (psycopg2.OperationalError, psycopg2.InterfaceError) as e:
                    if attempt < max_retries:
                        logger.warning(f"Database operation failed (attempt {attempt + 1}/{max_retries + 1}): {e}")
                        logger.info(f"Retrying in {current_delay:.1f} seconds...")
                        time.sleep(current_delay)
                        current_delay *= backoff
                    else:
                        logger.error(f"Database operation failed after {max_retries + 1} attempts")
                        raise RetryableError(f"Operation failed after {max_retries + 1} attempts: {e}") from e
                except errors.UniqueViolation as e:
                    logger.info(f"Unique constraint violated in {func.__name__}: {e}")
                    raise ConflictError(str(e).strip()) from e
                except (psycopg2.ProgrammingError, psycopg2.IntegrityError, psycopg2.DataError) as e:
                    logger.error(f"Non-retryable database error: {e}")
                    raise NonRetryableError(f"Database operation failed: {e}") from e
                except psycopg2.Error as e:
                    logger.error(f"Unexpected error in database operation: {e}")
                    raise DatabaseOperationError(f"Unexpected database error: {e}") from e

        return wrapper
    return decorator


def _academic_year_from_row(row: Dict[str, Any]) -> AcademicYear:
    return AcademicYear(
        id=str(row['id']),
        year_label=row['year_label'],
        start_date=row['start_date'],
        end_date=row['end_date'],
        is_active=row['is_active'],
        is_current=row['is_current'],
        created_at=row.get('created_at'),
    )


def _semester_from_row(row: Dict[str, Any]) -> Semester:
    return Semester(
        id=str(row['id']),
        academic_year_id=str(row['academic_year_id']),
        name=row['name'],
        order=row['semester_order'],
        start_date=row['start_date'],
        end_date=row['end_date'],
    )


class AcademicCalendarOperations:
    """
    Blocking CRUD operations for academic years and semesters.
    Inserts are not retried: a retried insert whose first attempt committed would
    come back as a conflict.
    """

    def __init__(self, db_manager: DatabaseConnectionManager):
        """
        Initialize academic calendar operations.

        Args:
            db_manager: Pooled connection source
        """
        self.db_manager = db_manager

    @retry_on_database_error(max_retries=2)
    def find_academic_year_by_label(self, label: str) -> Optional[AcademicYear]:
        """
        Look up an academic year by its label.

        Returns:
            The academic year, or None if not found
        """
        with self.db_manager.get_cursor() as cur:
            cur.execute("""
                SELECT id, year_label, start_date, end_date, is_active, is_current, created_at
                FROM academic_years
                WHERE year_label = %s
            """, (label,))
            row = cur.fetchone()

        if row:
            logger.debug(f"Found academic year {label}")
            return _academic_year_from_row(row)

        logger.debug(f"No academic year found for {label}")
        return None

    @retry_on_database_error(max_retries=0)
    def create_academic_year(self, data: NewAcademicYear) -> AcademicYear:
        """
        Insert an academic year.

        Raises:
            ConflictError: If the label already exists
            DatabaseOperationError: If the insert fails
        """
        with self.db_manager.get_cursor() as cur:
            cur.execute("""
                INSERT INTO academic_years (year_label, start_date, end_date, is_active, is_current)
                VALUES (%(year_label)s, %(start_date)s, %(end_date)s, %(is_active)s, %(is_current)s)
                RETURNING id, year_label, start_date, end_date, is_active, is_current, created_at
            """, {
                'year_label': data.year_label,
                'start_date': data.start_date,
                'end_date': data.end_date,
                'is_active': data.is_active,
                'is_current': data.is_current,
            })
            row = cur.fetchone()

        logger.info(f"✅ Inserted academic year {data.year_label}")
        return _academic_year_from_row(row)

    @retry_on_database_error(max_retries=0)
    def create_semester(self, data: NewSemester) -> Semester:
        """
        Insert a semester.

        Raises:
            ConflictError: If the academic year already has a semester with this order
            DatabaseOperationError: If the insert fails
        """
        with self.db_manager.get_cursor() as cur:
            cur.execute("""
                INSERT INTO semesters (academic_year_id, name, semester_order, start_date, end_date)
                VALUES (%(academic_year_id)s, %(name)s, %(order)s, %(start_date)s, %(end_date)s)
                RETURNING id, academic_year_id, name, semester_order, start_date, end_date
            """, {
                'academic_year_id': data.academic_year_id,
                'name': data.name,
                'order': data.order,
                'start_date': data.start_date,
                'end_date': data.end_date,
            })
            row = cur.fetchone()

        logger.debug(f"Inserted semester {data.order} ({data.name}) for academic year {data.academic_year_id}")
        return _semester_from_row(row)

    @retry_on_database_error(max_retries=2)
    def list_academic_years(self) -> List[AcademicYear]:
        """All academic years ordered by start date."""
        with self.db_manager.get_cursor() as cur:
            cur.execute("""
                SELECT id, year_label, start_date, end_date, is_active, is_current, created_at
                FROM academic_years
                ORDER BY start_date
            """)
            rows = cur.fetchall()

        return [_academic_year_from_row(row) for row in rows]

    @retry_on_database_error(max_retries=2)
    def get_semesters(self, academic_year_id: str) -> List[Semester]:
        """Semesters of an academic year in order."""
        with self.db_manager.get_cursor() as cur:
            cur.execute("""
                SELECT id, academic_year_id, name, semester_order, start_date, end_date
                FROM semesters
                WHERE academic_year_id = %s
                ORDER BY semester_order
            """, (academic_year_id,))
            rows = cur.fetchall()

        return [_semester_from_row(row) for row in rows]


class PostgresAcademicCalendarRepository:
    """
    Async repository over AcademicCalendarOperations.
    Blocking calls run in the default executor so the event loop keeps running.
    """

    def __init__(self, operations: AcademicCalendarOperations):
        self.operations = operations

    async def find_academic_year_by_label(self, label: str) -> Optional[AcademicYear]:
        return await asyncio.to_thread(self.operations.find_academic_year_by_label, label)

    async def create_academic_year(self, data: NewAcademicYear) -> AcademicYear:
        return await asyncio.to_thread(self.operations.create_academic_year, data)

    async def create_semester(self, data: NewSemester) -> Semester:
        return await asyncio.to_thread(self.operations.create_semester, data)
