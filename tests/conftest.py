"""Shared fixtures for the academic calendar tests.

Provides an in-memory repository implementing the persistence port, with
label uniqueness enforced the same way the PostgreSQL schema enforces it.
"""

import itertools
from datetime import date
from typing import Dict, List, Optional

import pytest

from academic_records import AcademicYear, NewAcademicYear, NewSemester, Semester
from academic_year_generator import AcademicYearGenerator
from calendar_errors import ConflictError


class InMemoryAcademicCalendarRepository:
    """Dictionary-backed repository that counts calls."""

    def __init__(self):
        self.academic_years: Dict[str, AcademicYear] = {}
        self.semesters: List[Semester] = []
        self.calls = {'find': 0, 'create_year': 0, 'create_semester': 0}
        self._ids = itertools.count(1)

    async def find_academic_year_by_label(self, label: str) -> Optional[AcademicYear]:
        self.calls['find'] += 1
        return self.academic_years.get(label)

    async def create_academic_year(self, data: NewAcademicYear) -> AcademicYear:
        self.calls['create_year'] += 1
        if data.year_label in self.academic_years:
            raise ConflictError(f"duplicate year_label {data.year_label}")
        academic_year = AcademicYear(
            id=f"ay-{next(self._ids)}",
            year_label=data.year_label,
            start_date=data.start_date,
            end_date=data.end_date,
            is_active=data.is_active,
            is_current=data.is_current,
        )
        self.academic_years[data.year_label] = academic_year
        return academic_year

    async def create_semester(self, data: NewSemester) -> Semester:
        self.calls['create_semester'] += 1
        if any(s.academic_year_id == data.academic_year_id and s.order == data.order for s in self.semesters):
            raise ConflictError(f"duplicate semester order {data.order}")
        semester = Semester(
            id=f"sem-{next(self._ids)}",
            academic_year_id=data.academic_year_id,
            name=data.name,
            order=data.order,
            start_date=data.start_date,
            end_date=data.end_date,
        )
        self.semesters.append(semester)
        return semester

    def semesters_of(self, academic_year_id: str) -> List[Semester]:
        return sorted(
            (s for s in self.semesters if s.academic_year_id == academic_year_id),
            key=lambda s: s.order
        )


@pytest.fixture
def repository():
    """Empty in-memory repository."""
    return InMemoryAcademicCalendarRepository()


@pytest.fixture
def fixed_today():
    """Standard date the generator treats as today."""
    return date(2030, 3, 15)


@pytest.fixture
def generator(repository, fixed_today):
    """Generator with the default configuration and a fixed clock."""
    return AcademicYearGenerator(repository, clock=lambda: fixed_today)
