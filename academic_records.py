#!/usr/bin/env python3
"""
Academic Year and Semester records, and the persistence port the generator depends on.
"""

from dataclasses import dataclass, asdict
from datetime import date, datetime
from typing import Any, Dict, Optional, Protocol


@dataclass
class NewAcademicYear:
    """Data for creating an academic year."""
    year_label: str
    start_date: date
    end_date: date
    is_active: bool = True
    is_current: bool = False


@dataclass
class AcademicYear:
    """A persisted academic year."""
    id: str
    year_label: str
    start_date: date
    end_date: date
    is_active: bool
    is_current: bool
    created_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON output."""
        record = asdict(self)
        record['start_date'] = self.start_date.isoformat()
        record['end_date'] = self.end_date.isoformat()
        if self.created_at:
            record['created_at'] = self.created_at.isoformat()
        return record


@dataclass
class NewSemester:
    """Data for creating a semester."""
    academic_year_id: str
    name: str
    order: int
    start_date: date
    end_date: date


@dataclass
class Semester:
    """A persisted semester."""
    id: str
    academic_year_id: str
    name: str
    order: int
    start_date: date
    end_date: date

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON output."""
        record = asdict(self)
        record['start_date'] = self.start_date.isoformat()
        record['end_date'] = self.end_date.isoformat()
        return record


class AcademicCalendarRepository(Protocol):
    """
    Persistence port for academic years and semesters.

    create_academic_year must raise ConflictError when the label already exists.
    """

    async def find_academic_year_by_label(self, label: str) -> Optional[AcademicYear]:
        ...

    async def create_academic_year(self, data: NewAcademicYear) -> AcademicYear:
        ...

    async def create_semester(self, data: NewSemester) -> Semester:
        ...
