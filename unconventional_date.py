#!/usr/bin/env python3
"""
Unconventional Date
A (year, month, day) value in the 13-month x 28-day calendar, with day arithmetic and
an approximate conversion to and from the standard (Gregorian) calendar.

The standard-calendar conversion is proportional, not calendrical: converting a date
there and back does not always return the original value. Stored dates were produced
with this mapping, so it must stay as it is.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any, Dict, Optional, Union

import dateutil.tz

from calendar_config import (
    CalendarConfig,
    DAYS_PER_MONTH,
    DEFAULT_UNCONVENTIONAL_CALENDAR,
    MONTHS_PER_YEAR,
)
from calendar_errors import ValidationError

# Configure logging
logger = logging.getLogger(__name__)

MONTH_NAMES = (
    'Primarius', 'Secundus', 'Tertius', 'Quartus', 'Quintus', 'Sextus',
    'Septimus', 'Octavus', 'Nonus', 'Decimus', 'Undecimus', 'Duodecimus', 'Tredecimus'
)

STANDARD_MONTHS = 12
STANDARD_DAYS_PER_MONTH = 30


@dataclass(frozen=True, order=True)
class UnconventionalDate:
    """
    A date in the unconventional calendar.

    Out-of-range months and days are clamped into [1, 13] and [1, 28]
    rather than rejected.
    """
    year: int
    month: int
    day: int

    def __post_init__(self):
        """Clamp month and day into the calendar's bounds."""
        object.__setattr__(self, 'month', max(1, min(MONTHS_PER_YEAR, int(self.month))))
        object.__setattr__(self, 'day', max(1, min(DAYS_PER_MONTH, int(self.day))))

    def to_standard_date(self) -> date:
        """
        Approximate standard-calendar date for storage and display.

        A day beyond the end of the target month spills into the next month,
        so 29 February in a common year becomes 1 March.

        Raises:
            ValidationError: If the year is outside 1..9999
        """
        if not date.min.year <= self.year <= date.max.year:
            raise ValidationError(
                f"Year {self.year} has no standard date (supported: {date.min.year}..{date.max.year})"
            )
        month_index = (self.month - 1) * STANDARD_MONTHS // MONTHS_PER_YEAR
        standard_day = (self.day - 1) * STANDARD_DAYS_PER_MONTH // DAYS_PER_MONTH + 1
        return date(self.year, month_index + 1, 1) + timedelta(days=standard_day - 1)

    @classmethod
    def from_standard_date(cls, value: Union[date, datetime]) -> 'UnconventionalDate':
        """Approximate unconventional date for a standard-calendar date or datetime."""
        if isinstance(value, datetime):
            value = value.date()
        month = (value.month - 1) * MONTHS_PER_YEAR // STANDARD_MONTHS + 1
        day = value.day * DAYS_PER_MONTH // STANDARD_DAYS_PER_MONTH + 1
        return cls(value.year, month, day)

    @classmethod
    def today(cls, timezone: Optional[str] = None) -> 'UnconventionalDate':
        """Current date converted from the standard calendar in the given timezone."""
        tz = dateutil.tz.gettz(timezone) if timezone else dateutil.tz.UTC
        return cls.from_standard_date(datetime.now(tz))

    def add_days(self, days: int) -> 'UnconventionalDate':
        """
        Move forward by a number of days, rolling over months and years.

        Args:
            days: Non-negative number of days to add

        Raises:
            ValidationError: If days is negative
        """
        if days < 0:
            raise ValidationError(f"add_days only moves forward, got {days}")

        new_day = self.day + days
        new_month = self.month
        new_year = self.year

        while new_day > DAYS_PER_MONTH:
            new_day -= DAYS_PER_MONTH
            new_month += 1
            if new_month > MONTHS_PER_YEAR:
                new_month = 1
                new_year += 1

        return UnconventionalDate(new_year, new_month, new_day)

    @property
    def month_name(self) -> str:
        return MONTH_NAMES[self.month - 1]

    def format(self) -> str:
        """Display form, e.g. '1 Octavus 2025'."""
        return f"{self.day} {self.month_name} {self.year}"

    def get_academic_year_string(self, config: CalendarConfig = DEFAULT_UNCONVENTIONAL_CALENDAR) -> str:
        """Label of the academic year this date falls in, e.g. '2025-2026'."""
        if self.month >= config.academic_year_start_month:
            return f"{self.year}-{self.year + 1}"
        return f"{self.year - 1}-{self.year}"

    def to_dict(self, config: CalendarConfig = DEFAULT_UNCONVENTIONAL_CALENDAR) -> Dict[str, Any]:
        """Convert to a dictionary for JSON output."""
        return {
            'year': self.year,
            'month': self.month,
            'day': self.day,
            'formatted': self.format(),
            'academic_year': self.get_academic_year_string(config),
            'standard': self.to_standard_date().isoformat(),
        }

    def __str__(self) -> str:
        return self.format()
