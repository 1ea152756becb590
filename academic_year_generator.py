#!/usr/bin/env python3
"""
Academic Year Generator
Creates academic years and their semesters from the unconventional calendar,
idempotently, through an injected persistence repository.
"""

import logging
import os
from datetime import date, datetime
from typing import Callable, List, Optional

import dateutil.tz

from academic_records import (
    AcademicCalendarRepository,
    AcademicYear,
    NewAcademicYear,
    NewSemester,
    Semester,
)
from calendar_config import CalendarConfig, DEFAULT_UNCONVENTIONAL_CALENDAR
from calendar_errors import ConflictError, NotFoundError, ValidationError
from calendar_events import CalendarEvent, produce_calendar_events
from unconventional_date import UnconventionalDate

# Configure logging
logger = logging.getLogger(__name__)

MIN_START_YEAR = 2020
MAX_START_YEAR = 2050
MAX_YEAR_COUNT = 10
FUTURE_YEARS_TO_GENERATE = 3

DEFAULT_SEMESTER_DURATION_DAYS = 112
DEFAULT_BREAK_DAYS = 14


def academic_year_label(year: int) -> str:
    """Label of the academic year starting in the given year, e.g. '2025-2026'."""
    return f"{year}-{year + 1}"


def _entry(values, index):
    return values[index] if index < len(values) else None


def _default_clock() -> date:
    timezone = os.getenv('CALENDAR_TIMEZONE', 'UTC')
    return datetime.now(dateutil.tz.gettz(timezone)).date()


class AcademicYearGenerator:
    """
    Generates academic years and semesters into a repository.

    Generation is check-then-create. Concurrent callers racing on the same
    label are resolved by the store's unique constraint: the loser gets a
    ConflictError from the repository, which is treated as "already exists".
    """

    def __init__(self,
                 repository: AcademicCalendarRepository,
                 config: CalendarConfig = DEFAULT_UNCONVENTIONAL_CALENDAR,
                 clock: Optional[Callable[[], date]] = None):
        """
        Initialize the generator.

        Args:
            repository: Persistence port for academic years and semesters
            config: Calendar configuration
            clock: Returns today's standard date. Defaults to the current date
                   in CALENDAR_TIMEZONE.
        """
        self.repository = repository
        self.config = config
        self.clock = clock or _default_clock

    def _current_year(self) -> int:
        return self.clock().year

    def _academic_year_bounds(self, year: int):
        start = UnconventionalDate(
            year,
            self.config.academic_year_start_month,
            self.config.academic_year_start_day
        )
        end = UnconventionalDate(
            year + 1,
            self.config.academic_year_end_month,
            self.config.days_per_month
        )
        return start, end

    async def generate_academic_years(self, start_year: int, count: int = 5) -> List[AcademicYear]:
        """
        Generate academic years with their semesters, skipping labels that already exist.

        The first year of the batch is created as the current year. Errors other
        than label conflicts propagate and stop the batch; years already created
        stay in place.

        Args:
            start_year: First year to generate
            count: Number of consecutive years

        Returns:
            The academic years created by this call

        Raises:
            ValidationError: If start_year or count is out of bounds
        """
        if not MIN_START_YEAR <= start_year <= MAX_START_YEAR:
            raise ValidationError(
                f"start_year must be between {MIN_START_YEAR} and {MAX_START_YEAR}, got {start_year}"
            )
        if not 1 <= count <= MAX_YEAR_COUNT:
            raise ValidationError(f"count must be between 1 and {MAX_YEAR_COUNT}, got {count}")

        logger.info(f"Generating {count} academic years starting from {start_year}")
        created = []

        try:
            for i in range(count):
                year = start_year + i
                label = academic_year_label(year)

                existing = await self.repository.find_academic_year_by_label(label)
                if existing:
                    logger.info(f"Academic year {label} already exists, skipping")
                    continue

                start_date, end_date = self._academic_year_bounds(year)

                try:
                    academic_year = await self.repository.create_academic_year(NewAcademicYear(
                        year_label=label,
                        start_date=start_date.to_standard_date(),
                        end_date=end_date.to_standard_date(),
                        is_active=True,
                        is_current=(i == 0),
                    ))
                except ConflictError:
                    logger.info(f"Academic year {label} was created concurrently, skipping")
                    continue

                logger.info(f"✅ Created academic year {label} ({start_date.format()} - {end_date.format()})")

                await self.generate_semesters(academic_year.id, start_date)
                created.append(academic_year)

        except Exception as e:
            logger.error(f"❌ Error generating academic years: {e}")
            raise

        logger.info(f"Academic years generation completed: {len(created)} created")
        return created

    async def generate_semesters(self, academic_year_id: str, start_date: UnconventionalDate) -> List[Semester]:
        """
        Create the configured semesters of an academic year back to back, each followed by its break.

        Missing, empty or zero names, durations and breaks fall back to
        'Semester N', 112 and 14 days.
        A failure partway leaves the earlier semesters in place.

        Args:
            academic_year_id: Owning academic year
            start_date: First day of the first semester

        Returns:
            The created semesters, in order
        """
        structure = self.config.semester_structure
        semesters = []
        current_start = start_date

        for i in range(structure.count):
            name = _entry(structure.names, i) or f"Semester {i + 1}"
            duration = _entry(structure.duration_in_days, i) or DEFAULT_SEMESTER_DURATION_DAYS
            break_days = _entry(structure.breaks_between, i) or DEFAULT_BREAK_DAYS

            semester_end = current_start.add_days(duration - 1)

            semester = await self.repository.create_semester(NewSemester(
                academic_year_id=academic_year_id,
                name=name,
                order=i + 1,
                start_date=current_start.to_standard_date(),
                end_date=semester_end.to_standard_date(),
            ))
            semesters.append(semester)
            logger.debug(f"Created semester {name}: {current_start.format()} - {semester_end.format()}")

            current_start = semester_end.add_days(break_days + 1)

        return semesters

    async def auto_generate_future_years(self) -> bool:
        """
        Best-effort background generation of the current and next years.

        Never raises: any failure is logged with its traceback and reported
        through the return value.

        Returns:
            True if generation completed, False if it failed
        """
        try:
            await self.generate_academic_years(self._current_year(), FUTURE_YEARS_TO_GENERATE)
            return True
        except Exception:
            logger.exception("Failed to auto-generate future years")
            return False

    async def get_current_academic_year(self) -> AcademicYear:
        """
        Academic year labelled with the current standard year, generating it when missing.

        Not safe against concurrent first calls; the losing caller's creation is
        absorbed as a conflict and both read the same record.

        Raises:
            NotFoundError: If the year is still missing after generation
        """
        current_year = self._current_year()
        label = academic_year_label(current_year)

        try:
            academic_year = await self.repository.find_academic_year_by_label(label)

            if not academic_year:
                logger.info(f"Current academic year {label} missing, generating it")
                await self.generate_academic_years(current_year, 1)
                academic_year = await self.repository.find_academic_year_by_label(label)

            if not academic_year:
                raise NotFoundError(f"Academic year {label} not found after generation")

            return academic_year

        except Exception as e:
            logger.error(f"Failed to get current academic year: {e}")
            raise

    def get_unconventional_calendar_events(self, year: int) -> List[CalendarEvent]:
        """Calendar events of a year under this generator's configuration."""
        return produce_calendar_events(year, self.config)
