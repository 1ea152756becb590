#!/usr/bin/env python3
"""
Academic Calendar Administration CLI

Command-line interface for administrators of the unconventional academic calendar.
Generates academic years, inspects calendar events and converts dates between calendars.

Usage:
    python calendar_admin.py [command] [options]

Commands:
    init            Create the academic calendar tables
    status          Show database health and applied migrations
    list            List stored academic years with their semesters
    generate        Generate academic years (skips years that already exist)
    auto-generate   Generate the current and next two academic years
    current         Show the current academic year, generating it if missing
    events          List calendar events of a year (optionally as .ics)
    convert         Convert dates between the standard and unconventional calendars
    today           Show today's unconventional date
    config          Show the active calendar configuration
    automation      Run or start the background maintenance

Examples:
    python calendar_admin.py generate 2025 --count 3
    python calendar_admin.py events 2025 --ics academic-2025.ics
    python calendar_admin.py convert to-standard 2025 8 1
    python calendar_admin.py convert to-unconventional 2025-09-01
"""

import argparse
import asyncio
import json
import logging
import os
import sys
from pathlib import Path
from typing import Any, Dict, Optional

from dateutil import parser as date_parser

from academic_year_generator import AcademicYearGenerator
from calendar_config import CalendarConfig, load_calendar_config
from calendar_errors import AcademicCalendarError
from calendar_events import events_to_ical, produce_calendar_events
from unconventional_date import UnconventionalDate


def load_env_file(path: str = '.env'):
    """Load KEY=VALUE lines from a local .env file without overriding the environment."""
    if os.path.exists(path):
        try:
            with open(path, 'r', encoding='utf-8') as f:
                for line in f:
                    line = line.strip()
                    if line and not line.startswith('#') and '=' in line:
                        key, value = line.split('=', 1)
                        os.environ.setdefault(key.strip(), value.strip())
        except OSError as e:
            print(f'Warning: Error loading .env file: {e}')


# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s',
    handlers=[
        logging.StreamHandler(sys.stdout)
    ]
)
logger = logging.getLogger(__name__)


def safe_print(message):
    try:
        print(message)
    except UnicodeEncodeError:
        print(message.encode('ascii', errors='replace').decode('ascii'))


def print_json(data: Any):
    safe_print(json.dumps(data, indent=2, default=str))


class CalendarAdmin:
    """Administrative interface for the academic calendar engine."""

    def __init__(self, config: Optional[CalendarConfig] = None):
        """
        Initialize the admin interface.

        The database is only connected for commands that need it.
        """
        self.config = config or load_calendar_config()
        self.timezone = os.getenv('CALENDAR_TIMEZONE', 'UTC')
        self._database = None
        self._generator: Optional[AcademicYearGenerator] = None

    @property
    def database(self):
        if self._database is None:
            from calendar_db import DatabaseManager
            self._database = DatabaseManager()
        return self._database

    @property
    def generator(self) -> AcademicYearGenerator:
        if self._generator is None:
            self._generator = AcademicYearGenerator(self.database.repository, self.config)
        return self._generator

    def close(self):
        if self._database is not None:
            self._database.shutdown()

    def init_database(self, force: bool = False) -> Dict[str, Any]:
        """Create the academic calendar tables."""
        result = self.database.initialize_system(force=force)
        if result['success']:
            safe_print("✅ Database initialized")
        else:
            for error in result['errors']:
                safe_print(f"❌ {error}")
        return result

    def status(self) -> Dict[str, Any]:
        """Show database health and applied migrations."""
        result = self.database.get_status()
        print_json(result)
        return result

    def list_years(self) -> Dict[str, Any]:
        """List stored academic years with their semesters."""
        operations = self.database.operations
        years = []
        for academic_year in operations.list_academic_years():
            record = academic_year.to_dict()
            record['semesters'] = [s.to_dict() for s in operations.get_semesters(academic_year.id)]
            years.append(record)

        if not years:
            safe_print("📭 No academic years stored yet")
        for record in years:
            marker = " (current)" if record['is_current'] else ""
            safe_print(f"📚 {record['year_label']}{marker}: {record['start_date']} → {record['end_date']}")
            for semester in record['semesters']:
                safe_print(f"   {semester['order']}. {semester['name']}: {semester['start_date']} → {semester['end_date']}")
        return {'academic_years': years}

    def generate_years(self, start_year: int, count: int) -> Dict[str, Any]:
        """Generate academic years and report which were created."""
        safe_print(f"🚀 Generating {count} academic years starting from {start_year}...")

        created = asyncio.run(self.generator.generate_academic_years(start_year, count))

        result = {
            'requested': count,
            'created': [year.year_label for year in created],
            'skipped': count - len(created),
        }
        safe_print(f"✅ Created {len(created)} academic years, skipped {result['skipped']} existing")
        for year in created:
            safe_print(f"   • {year.year_label}: {year.start_date} → {year.end_date}")
        return result

    def auto_generate(self) -> bool:
        """Generate the current and upcoming academic years, best effort."""
        success = asyncio.run(self.generator.auto_generate_future_years())
        if success:
            safe_print("✅ Future academic years generated")
        else:
            safe_print("❌ Auto-generation failed, see log for details")
        return success

    def current_year(self) -> Dict[str, Any]:
        """Show the current academic year."""
        academic_year = asyncio.run(self.generator.get_current_academic_year())
        print_json(academic_year.to_dict())
        return academic_year.to_dict()

    def calendar_events(self, year: int, ics_file: Optional[str] = None) -> Dict[str, Any]:
        """List calendar events of a year, optionally writing them as iCalendar."""
        events = produce_calendar_events(year, self.config)

        if ics_file:
            Path(ics_file).write_bytes(events_to_ical(events, calendar_name=f"Academic Calendar {year}"))
            safe_print(f"📅 Wrote {len(events)} events to {ics_file}")

        result = {'year': year, 'events': [event.to_dict() for event in events]}
        if not ics_file:
            print_json(result)
        return result

    def convert_to_standard(self, year: int, month: int, day: int) -> Dict[str, Any]:
        """Convert an unconventional date to the standard calendar."""
        unconventional = UnconventionalDate(year, month, day)
        result = {
            'input': {'year': year, 'month': month, 'day': day},
            'output': unconventional.to_standard_date().isoformat(),
        }
        print_json(result)
        return result

    def convert_to_unconventional(self, value: str) -> Dict[str, Any]:
        """Convert a standard date string to the unconventional calendar."""
        standard = date_parser.parse(value)
        result = {
            'input': value,
            'output': UnconventionalDate.from_standard_date(standard).to_dict(self.config),
        }
        print_json(result)
        return result

    def today(self) -> Dict[str, Any]:
        """Show today's date in both calendars."""
        today = UnconventionalDate.today(self.timezone)
        result = {'timezone': self.timezone, 'unconventional': today.to_dict(self.config)}
        print_json(result)
        return result

    def show_config(self) -> Dict[str, Any]:
        """Show the active calendar configuration."""
        result = self.config.to_dict()
        print_json(result)
        return result

    def automation(self, action: str) -> bool:
        """Run one maintenance cycle, or start the background loop and block."""
        from calendar_automation import CalendarAutomationSystem, TriggerReason

        automation = CalendarAutomationSystem(self.generator)

        if action == 'run':
            result = asyncio.run(automation.run_maintenance_cycle(TriggerReason.MANUAL_TRIGGER))
            print_json(result)
            return result['success']

        automation.start_background_monitoring()
        try:
            automation.wait()
        except KeyboardInterrupt:
            automation.stop_background_monitoring()
        return True


def create_parser():
    """Create the argument parser for the admin CLI."""
    parser = argparse.ArgumentParser(
        description='Academic Calendar Administration CLI',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s init
  %(prog)s generate 2025 --count 3
  %(prog)s current
  %(prog)s events 2025 --ics academic-2025.ics
  %(prog)s convert to-standard 2025 8 1
  %(prog)s convert to-unconventional 2025-09-01
        """
    )
    parser.add_argument('--verbose', '-v', action='store_true', help='Enable debug logging')
    parser.add_argument('--config-file', help='JSON calendar configuration (overrides CALENDAR_CONFIG_FILE)')

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    init_parser = subparsers.add_parser('init', help='Create the academic calendar tables')
    init_parser.add_argument('--force', action='store_true', help='Reapply the schema')

    gen_parser = subparsers.add_parser('generate', help='Generate academic years')
    gen_parser.add_argument('start_year', type=int, help='First academic year to generate')
    gen_parser.add_argument('--count', type=int, default=5, help='Number of years (default: 5)')

    subparsers.add_parser('status', help='Show database health and migrations')
    subparsers.add_parser('list', help='List stored academic years with their semesters')

    subparsers.add_parser('auto-generate', help='Generate the current and next two academic years')
    subparsers.add_parser('current', help='Show the current academic year')

    events_parser = subparsers.add_parser('events', help='List calendar events of a year')
    events_parser.add_argument('year', type=int, help='Unconventional calendar year')
    events_parser.add_argument('--ics', dest='ics_file', help='Write the events to this .ics file')

    convert_parser = subparsers.add_parser('convert', help='Convert dates between calendars')
    convert_subparsers = convert_parser.add_subparsers(dest='direction', required=True)
    to_standard = convert_subparsers.add_parser('to-standard', help='Unconventional → standard')
    to_standard.add_argument('year', type=int)
    to_standard.add_argument('month', type=int, choices=range(1, 14), metavar='MONTH')
    to_standard.add_argument('day', type=int, choices=range(1, 29), metavar='DAY')
    to_unconventional = convert_subparsers.add_parser('to-unconventional', help='Standard → unconventional')
    to_unconventional.add_argument('date', help='Standard date, e.g. 2025-09-01')

    subparsers.add_parser('today', help="Show today's unconventional date")
    subparsers.add_parser('config', help='Show the active calendar configuration')

    auto_parser = subparsers.add_parser('automation', help='Background academic year maintenance')
    auto_parser.add_argument('action', choices=['run', 'start'], help='Run one cycle or start the loop')

    return parser


def main(argv=None):
    """Main entry point for the admin CLI."""
    load_env_file()

    parser = create_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    admin = None
    try:
        admin = CalendarAdmin(load_calendar_config(args.config_file))

        if args.command == 'init':
            return 0 if admin.init_database(force=args.force)['success'] else 1

        elif args.command == 'status':
            return 0 if admin.status()['health']['status'] == 'healthy' else 1

        elif args.command == 'list':
            admin.list_years()
            return 0

        elif args.command == 'generate':
            admin.generate_years(args.start_year, args.count)
            return 0

        elif args.command == 'auto-generate':
            return 0 if admin.auto_generate() else 1

        elif args.command == 'current':
            admin.current_year()
            return 0

        elif args.command == 'events':
            admin.calendar_events(args.year, ics_file=args.ics_file)
            return 0

        elif args.command == 'convert':
            if args.direction == 'to-standard':
                admin.convert_to_standard(args.year, args.month, args.day)
            else:
                admin.convert_to_unconventional(args.date)
            return 0

        elif args.command == 'today':
            admin.today()
            return 0

        elif args.command == 'config':
            admin.show_config()
            return 0

        elif args.command == 'automation':
            return 0 if admin.automation(args.action) else 1

    except KeyboardInterrupt:
        safe_print("\n⚠️ Operation cancelled by user")
        return 130
    except (AcademicCalendarError, ValueError) as e:
        safe_print(f"❌ {e}")
        return 1
    finally:
        if admin is not None:
            admin.close()

    parser.print_help()
    return 1


if __name__ == "__main__":
    sys.exit(main())
