#!/usr/bin/env python3
"""
Unconventional Calendar Events
Produces the display-only holiday, seasonal and academic markers for a year,
and exports them as an iCalendar document.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Dict, List, Optional

import dateutil.tz
from icalendar import Calendar, Event

from calendar_config import CalendarConfig, DEFAULT_UNCONVENTIONAL_CALENDAR
from calendar_errors import ValidationError
from unconventional_date import UnconventionalDate

# Configure logging
logger = logging.getLogger(__name__)

MIN_EVENT_YEAR = 1
MAX_EVENT_YEAR = 9998


class EventType(Enum):
    """Kinds of calendar events."""
    HOLIDAY = "holiday"
    SEASONAL = "seasonal"
    ACADEMIC = "academic"


@dataclass(frozen=True)
class CalendarEvent:
    """A single calendar marker. Not persisted."""
    date: UnconventionalDate
    name: str
    type: EventType
    description: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON output."""
        return {
            'date': {
                'year': self.date.year,
                'month': self.date.month,
                'day': self.date.day,
                'formatted': self.date.format(),
                'standard': self.date.to_standard_date().isoformat(),
            },
            'name': self.name,
            'type': self.type.value,
            'description': self.description,
        }


def produce_calendar_events(year: int,
                            config: CalendarConfig = DEFAULT_UNCONVENTIONAL_CALENDAR) -> List[CalendarEvent]:
    """
    Build the calendar events for a year.

    Events come in insertion order (holidays, then seasonal windows, then the
    academic year boundaries); they are not sorted by date.

    Args:
        year: Unconventional calendar year
        config: Calendar configuration

    Returns:
        Ordered list of CalendarEvent

    Raises:
        ValidationError: If year is outside the representable range
    """
    if not MIN_EVENT_YEAR <= year <= MAX_EVENT_YEAR:
        raise ValidationError(f"Year must be between {MIN_EVENT_YEAR} and {MAX_EVENT_YEAR}, got {year}")

    events = []

    for holiday in config.fixed_holidays:
        events.append(CalendarEvent(
            date=UnconventionalDate(year, holiday.month, holiday.day),
            name=holiday.name,
            type=EventType.HOLIDAY,
        ))

    for season in config.seasonal_adjustments:
        events.append(CalendarEvent(
            date=UnconventionalDate(year, season.start_month, season.start_day),
            name=f"{season.name} (Start)",
            type=EventType.SEASONAL,
            description=season.description,
        ))
        events.append(CalendarEvent(
            date=UnconventionalDate(year, season.end_month, season.end_day),
            name=f"{season.name} (End)",
            type=EventType.SEASONAL,
            description=season.description,
        ))

    events.append(CalendarEvent(
        date=UnconventionalDate(year, config.academic_year_start_month, config.academic_year_start_day),
        name='Academic Year Start',
        type=EventType.ACADEMIC,
    ))
    events.append(CalendarEvent(
        date=UnconventionalDate(year + 1, config.academic_year_end_month, config.days_per_month),
        name='Academic Year End',
        type=EventType.ACADEMIC,
    ))

    logger.debug(f"Produced {len(events)} calendar events for {year}")
    return events


def events_to_ical(events: List[CalendarEvent], calendar_name: str = 'Academic Calendar') -> bytes:
    """
    Export events as an iCalendar document of all-day events on their standard dates.

    Args:
        events: Events to export
        calendar_name: Value for X-WR-CALNAME

    Returns:
        Serialized .ics content
    """
    cal = Calendar()
    cal.add('prodid', '-//Academic Calendar Engine//EN')
    cal.add('version', '2.0')
    cal.add('x-wr-calname', calendar_name)

    stamp = datetime.now(dateutil.tz.UTC)

    for index, event in enumerate(events):
        standard = event.date.to_standard_date()
        component = Event()
        component.add('uid', f"{standard.isoformat()}-{event.type.value}-{index}@academic-calendar")
        component.add('dtstamp', stamp)
        component.add('dtstart', standard)
        component.add('dtend', standard + timedelta(days=1))
        component.add('summary', event.name)
        component.add('categories', [event.type.value.upper()])
        if event.description:
            component.add('description', event.description)
        component.add('comment', event.date.format())
        cal.add_component(component)

    logger.info(f"📅 Exported {len(events)} events to iCalendar")
    return cal.to_ical()
