"""Tests for the administration CLI."""

import json
from datetime import date
from unittest.mock import MagicMock

import pytest
from icalendar import Calendar

from academic_records import AcademicYear, Semester
from academic_year_generator import AcademicYearGenerator
from calendar_admin import CalendarAdmin, create_parser, main
from calendar_config import DEFAULT_UNCONVENTIONAL_CALENDAR


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    """Run from an empty directory so no .env or configuration file is picked up."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv('CALENDAR_CONFIG_FILE', raising=False)
    monkeypatch.setenv('CALENDAR_TIMEZONE', 'UTC')


@pytest.fixture
def admin(generator):
    """Admin wired to the in-memory generator, no database."""
    admin = CalendarAdmin(DEFAULT_UNCONVENTIONAL_CALENDAR)
    admin._generator = generator
    return admin


class TestParser:
    """Tests for argument parsing."""

    def test_generate_defaults(self):
        args = create_parser().parse_args(['generate', '2025'])
        assert args.start_year == 2025
        assert args.count == 5

    def test_convert_rejects_month_14(self):
        with pytest.raises(SystemExit):
            create_parser().parse_args(['convert', 'to-standard', '2025', '14', '1'])


class TestMain:
    """Tests for commands that need no database."""

    def test_no_command_prints_help(self, capsys):
        assert main([]) == 1
        assert 'Academic Calendar Administration CLI' in capsys.readouterr().out

    def test_convert_to_standard(self, capsys):
        assert main(['convert', 'to-standard', '2025', '8', '1']) == 0
        assert '"output": "2025-07-01"' in capsys.readouterr().out

    def test_convert_to_unconventional(self, capsys):
        assert main(['convert', 'to-unconventional', '2025-09-01']) == 0
        assert '1 Nonus 2025' in capsys.readouterr().out

    def test_convert_invalid_date(self):
        assert main(['convert', 'to-unconventional', 'not-a-date']) == 1

    def test_events_to_ics(self, tmp_path):
        ics_file = tmp_path / 'academic.ics'
        assert main(['events', '2025', '--ics', str(ics_file)]) == 0
        cal = Calendar.from_ical(ics_file.read_bytes())
        assert len([c for c in cal.walk() if c.name == 'VEVENT']) == 10

    def test_events_invalid_year(self):
        assert main(['events', '0']) == 1

    def test_config_file_option(self, tmp_path, capsys):
        config_file = tmp_path / 'calendar.json'
        config_file.write_text(json.dumps({'academicYearStartMonth': 3}))

        assert main(['--config-file', str(config_file), 'config']) == 0
        assert '"academic_year_start_month": 3' in capsys.readouterr().out

    def test_today(self, capsys):
        assert main(['today']) == 0
        assert '"timezone": "UTC"' in capsys.readouterr().out


class TestCalendarAdmin:
    """Tests for database-backed commands over the in-memory repository."""

    def test_generate_years(self, admin, repository):
        result = admin.generate_years(2025, 2)
        assert result == {'requested': 2, 'created': ['2025-2026', '2026-2027'], 'skipped': 0}

        again = admin.generate_years(2025, 2)
        assert again['created'] == []
        assert again['skipped'] == 2

    def test_auto_generate(self, admin, repository):
        assert admin.auto_generate() is True
        assert len(repository.academic_years) == 3

    def test_current_year(self, admin):
        assert admin.current_year()['year_label'] == '2030-2031'

    def test_automation_run(self, admin, repository):
        assert admin.automation('run') is True
        assert '2031-2032' in repository.academic_years

    def test_calendar_events_without_file(self, admin, capsys):
        result = admin.calendar_events(2025)
        assert len(result['events']) == 10
        assert 'Academic Year Start' in capsys.readouterr().out

    def test_close_without_database(self, admin):
        admin.close()


class TestDatabaseCommands:
    """Tests for status and listing over a mocked database manager."""

    def test_status(self, admin, capsys):
        database = MagicMock()
        database.get_status.return_value = {'health': {'status': 'healthy'}, 'migrations': {'migrations': []}}
        admin._database = database

        assert admin.status()['health']['status'] == 'healthy'
        assert '"status": "healthy"' in capsys.readouterr().out

    def test_list_years_with_semesters(self, admin, capsys):
        academic_year = AcademicYear('ay-1', '2025-2026', date(2025, 7, 1), date(2026, 6, 29), True, True)
        semester = Semester('sem-1', 'ay-1', 'Autumn Semester', 1, date(2025, 7, 1), date(2025, 10, 29))
        database = MagicMock()
        database.operations.list_academic_years.return_value = [academic_year]
        database.operations.get_semesters.return_value = [semester]
        admin._database = database

        result = admin.list_years()

        database.operations.get_semesters.assert_called_once_with('ay-1')
        assert result['academic_years'][0]['semesters'][0]['name'] == 'Autumn Semester'
        out = capsys.readouterr().out
        assert '2025-2026 (current)' in out
        assert '1. Autumn Semester: 2025-07-01' in out

    def test_list_without_years(self, admin, capsys):
        database = MagicMock()
        database.operations.list_academic_years.return_value = []
        admin._database = database

        assert admin.list_years() == {'academic_years': []}
        assert 'No academic years stored yet' in capsys.readouterr().out


def test_generator_fixture_is_in_memory(admin):
    assert isinstance(admin.generator, AcademicYearGenerator)
    assert admin._database is None
