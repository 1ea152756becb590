#!/usr/bin/env python3
"""
Unconventional Calendar Configuration
Describes the 13-month x 28-day calendar shape: academic year anchor, semester layout,
fixed holidays and seasonal windows. Loaded once per process and never mutated.
"""

import json
import logging
import os
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

from calendar_errors import ValidationError

# Configure logging
logger = logging.getLogger(__name__)

MONTHS_PER_YEAR = 13
DAYS_PER_MONTH = 28


@dataclass(frozen=True)
class SemesterStructure:
    """Parallel tuples indexed by semester order."""
    count: int = 3
    names: Tuple[str, ...] = ('Autumn Semester', 'Winter Semester', 'Spring Semester')
    duration_in_days: Tuple[int, ...] = (112, 112, 112)
    breaks_between: Tuple[int, ...] = (14, 21, 28)


@dataclass(frozen=True)
class FixedHoliday:
    """A holiday falling on the same unconventional date every year."""
    name: str
    month: int
    day: int


@dataclass(frozen=True)
class SeasonalAdjustment:
    """A named seasonal window with a start and end date."""
    name: str
    start_month: int
    start_day: int
    end_month: int
    end_day: int
    description: str = ''


DEFAULT_FIXED_HOLIDAYS = (
    FixedHoliday('New Year Celebration', 1, 1),
    FixedHoliday('Mid-Year Festival', 7, 14),
    FixedHoliday('Harvest Celebration', 10, 21),
    FixedHoliday('Winter Solstice', 13, 28),
)

DEFAULT_SEASONAL_ADJUSTMENTS = (
    SeasonalAdjustment(
        name='Extended Learning Period',
        start_month=3, start_day=1,
        end_month=5, end_day=28,
        description='Intensive academic focus period with extended class hours'
    ),
    SeasonalAdjustment(
        name='Reflection Season',
        start_month=11, start_day=1,
        end_month=12, end_day=28,
        description='Period for assessment, reflection, and preparation'
    ),
)

DEFAULT_WEEK_NAMES = (
    'Primday', 'Secunday', 'Tertiday', 'Quartday',
    'Quintday', 'Sextday', 'Septday', 'Octday'
)


@dataclass(frozen=True)
class CalendarConfig:
    """
    Static configuration of the unconventional calendar.

    leap_day_frequency is carried for completeness but no algorithm consults it;
    there is no leap-day insertion rule.
    """
    months_per_year: int = MONTHS_PER_YEAR
    days_per_month: int = DAYS_PER_MONTH
    leap_day_frequency: int = 4

    academic_year_start_month: int = 8
    academic_year_start_day: int = 1
    semester_structure: SemesterStructure = field(default_factory=SemesterStructure)

    days_per_week: int = 8
    week_names: Tuple[str, ...] = DEFAULT_WEEK_NAMES

    fixed_holidays: Tuple[FixedHoliday, ...] = DEFAULT_FIXED_HOLIDAYS
    seasonal_adjustments: Tuple[SeasonalAdjustment, ...] = DEFAULT_SEASONAL_ADJUSTMENTS

    @property
    def academic_year_end_month(self) -> int:
        """Month in which an academic year ends (the month before the start month)."""
        return self.academic_year_start_month - 1 or self.months_per_year

    def validate(self) -> None:
        """
        Validate ranges and structure.

        Raises:
            ValidationError: If any field is out of range
        """
        issues = []

        if not 1 <= self.academic_year_start_month <= MONTHS_PER_YEAR:
            issues.append(f"academic_year_start_month out of range: {self.academic_year_start_month}")
        if not 1 <= self.academic_year_start_day <= DAYS_PER_MONTH:
            issues.append(f"academic_year_start_day out of range: {self.academic_year_start_day}")

        structure = self.semester_structure
        if structure.count < 0:
            issues.append(f"semester count must not be negative: {structure.count}")
        if any(duration < 1 for duration in structure.duration_in_days):
            issues.append("semester durations must be at least one day")
        if any(days < 0 for days in structure.breaks_between):
            issues.append("semester breaks must not be negative")

        for holiday in self.fixed_holidays:
            if not _in_calendar(holiday.month, holiday.day):
                issues.append(f"holiday '{holiday.name}' has invalid date {holiday.month}/{holiday.day}")

        for season in self.seasonal_adjustments:
            if not _in_calendar(season.start_month, season.start_day):
                issues.append(f"season '{season.name}' has invalid start {season.start_month}/{season.start_day}")
            if not _in_calendar(season.end_month, season.end_day):
                issues.append(f"season '{season.name}' has invalid end {season.end_month}/{season.end_day}")

        if issues:
            for issue in issues:
                logger.error(f"Invalid calendar configuration: {issue}")
            raise ValidationError("; ".join(issues))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-friendly dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CalendarConfig':
        """
        Build a configuration from a dictionary, falling back to defaults for missing keys.

        Accepts snake_case keys as well as the camelCase keys of the
        admin JSON payload (monthsPerYear, semesterStructure, ...).

        Raises:
            ValidationError: If the data is malformed or out of range
        """
        data = {_snake_case(key): value for key, value in data.items()}
        defaults = cls()

        try:
            structure_data = {
                _snake_case(key): value
                for key, value in (data.get('semester_structure') or {}).items()
            }
            structure = SemesterStructure(
                count=int(structure_data.get('count', defaults.semester_structure.count)),
                names=tuple(structure_data.get('names', defaults.semester_structure.names)),
                duration_in_days=tuple(int(d) for d in structure_data.get(
                    'duration_in_days', defaults.semester_structure.duration_in_days)),
                breaks_between=tuple(int(d) for d in structure_data.get(
                    'breaks_between', defaults.semester_structure.breaks_between)),
            )

            if 'fixed_holidays' in data:
                holidays = tuple(
                    FixedHoliday(name=h['name'], month=int(h['month']), day=int(h['day']))
                    for h in data['fixed_holidays']
                )
            else:
                holidays = defaults.fixed_holidays

            if 'seasonal_adjustments' in data:
                seasons = []
                for raw in data['seasonal_adjustments']:
                    s = {_snake_case(key): value for key, value in raw.items()}
                    seasons.append(SeasonalAdjustment(
                        name=s['name'],
                        start_month=int(s['start_month']),
                        start_day=int(s['start_day']),
                        end_month=int(s['end_month']),
                        end_day=int(s['end_day']),
                        description=s.get('description', ''),
                    ))
                seasons = tuple(seasons)
            else:
                seasons = defaults.seasonal_adjustments

            config = cls(
                months_per_year=int(data.get('months_per_year', defaults.months_per_year)),
                days_per_month=int(data.get('days_per_month', defaults.days_per_month)),
                leap_day_frequency=int(data.get('leap_day_frequency', defaults.leap_day_frequency)),
                academic_year_start_month=int(data.get(
                    'academic_year_start_month', defaults.academic_year_start_month)),
                academic_year_start_day=int(data.get(
                    'academic_year_start_day', defaults.academic_year_start_day)),
                semester_structure=structure,
                days_per_week=int(data.get('days_per_week', defaults.days_per_week)),
                week_names=tuple(data.get('week_names', defaults.week_names)),
                fixed_holidays=holidays,
                seasonal_adjustments=seasons,
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ValidationError(f"Malformed calendar configuration: {e}") from e

        if (config.months_per_year, config.days_per_month) != (MONTHS_PER_YEAR, DAYS_PER_MONTH):
            raise ValidationError(
                f"Only a {MONTHS_PER_YEAR}x{DAYS_PER_MONTH} calendar is supported, "
                f"got {config.months_per_year}x{config.days_per_month}"
            )

        config.validate()
        return config


DEFAULT_UNCONVENTIONAL_CALENDAR = CalendarConfig()


def _in_calendar(month: int, day: int) -> bool:
    return 1 <= month <= MONTHS_PER_YEAR and 1 <= day <= DAYS_PER_MONTH


def _snake_case(key: str) -> str:
    return ''.join(f'_{c.lower()}' if c.isupper() else c for c in key)


def load_calendar_config(path: Optional[Union[str, Path]] = None) -> CalendarConfig:
    """
    Load the calendar configuration.

    Args:
        path: JSON file with overrides. If None, uses CALENDAR_CONFIG_FILE,
              and the built-in defaults when that is unset too.

    Returns:
        Validated CalendarConfig

    Raises:
        ValidationError: If the file cannot be read or holds invalid values
    """
    path = path or os.getenv('CALENDAR_CONFIG_FILE')
    if not path:
        logger.debug("No calendar configuration file set, using defaults")
        return DEFAULT_UNCONVENTIONAL_CALENDAR

    config_file = Path(path)
    try:
        data = json.loads(config_file.read_text(encoding='utf-8'))
    except (OSError, json.JSONDecodeError) as e:
        logger.error(f"❌ Failed to read calendar configuration {config_file}: {e}")
        raise ValidationError(f"Cannot read calendar configuration {config_file}: {e}") from e

    if not isinstance(data, dict):
        raise ValidationError(f"Calendar configuration {config_file} must be a JSON object")

    config = CalendarConfig.from_dict(data)
    logger.info(f"✅ Loaded calendar configuration from {config_file}")
    return config
