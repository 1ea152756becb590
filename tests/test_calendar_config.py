"""Tests for calendar configuration loading and validation."""

import json

import pytest

from calendar_config import (
    CalendarConfig,
    DEFAULT_UNCONVENTIONAL_CALENDAR,
    FixedHoliday,
    load_calendar_config,
)
from calendar_errors import ValidationError


class TestDefaults:
    """Tests for the built-in configuration."""

    def test_shape(self):
        config = DEFAULT_UNCONVENTIONAL_CALENDAR
        assert config.months_per_year == 13
        assert config.days_per_month == 28
        assert config.leap_day_frequency == 4
        assert config.academic_year_start_month == 8
        assert config.academic_year_start_day == 1

    def test_semester_structure(self):
        structure = DEFAULT_UNCONVENTIONAL_CALENDAR.semester_structure
        assert structure.count == 3
        assert structure.duration_in_days == (112, 112, 112)
        assert structure.breaks_between == (14, 21, 28)

    def test_week_names_match_week_length(self):
        config = DEFAULT_UNCONVENTIONAL_CALENDAR
        assert len(config.week_names) == config.days_per_week == 8

    def test_defaults_are_valid(self):
        DEFAULT_UNCONVENTIONAL_CALENDAR.validate()

    def test_end_month(self):
        assert DEFAULT_UNCONVENTIONAL_CALENDAR.academic_year_end_month == 7
        assert CalendarConfig(academic_year_start_month=1).academic_year_end_month == 13

    def test_immutable(self):
        with pytest.raises(AttributeError):
            DEFAULT_UNCONVENTIONAL_CALENDAR.academic_year_start_month = 2

    def test_to_dict_is_json_serializable(self):
        data = json.loads(json.dumps(DEFAULT_UNCONVENTIONAL_CALENDAR.to_dict()))
        assert data['fixed_holidays'][0] == {'name': 'New Year Celebration', 'month': 1, 'day': 1}


class TestValidation:
    """Tests for range checks."""

    def test_invalid_start_month(self):
        with pytest.raises(ValidationError):
            CalendarConfig(academic_year_start_month=14).validate()

    def test_invalid_holiday(self):
        config = CalendarConfig(fixed_holidays=(FixedHoliday('Bad', 2, 30),))
        with pytest.raises(ValidationError, match="Bad"):
            config.validate()


class TestFromDict:
    """Tests for building configuration from JSON data."""

    def test_camel_case_payload(self):
        config = CalendarConfig.from_dict({
            'academicYearStartMonth': 9,
            'semesterStructure': {
                'count': 2,
                'names': ['Fall', 'Spring'],
                'durationInDays': [140, 140],
                'breaksBetween': [21, 28],
            },
            'seasonalAdjustments': [{
                'name': 'Exams',
                'startMonth': 6,
                'startDay': 1,
                'endMonth': 6,
                'endDay': 14,
                'description': 'Final exams',
            }],
        })
        assert config.academic_year_start_month == 9
        assert config.semester_structure.names == ('Fall', 'Spring')
        assert config.semester_structure.duration_in_days == (140, 140)
        assert config.seasonal_adjustments[0].end_day == 14
        assert config.fixed_holidays == DEFAULT_UNCONVENTIONAL_CALENDAR.fixed_holidays

    def test_snake_case_payload(self):
        config = CalendarConfig.from_dict({'academic_year_start_day': 15})
        assert config.academic_year_start_day == 15

    def test_empty_payload_gives_defaults(self):
        assert CalendarConfig.from_dict({}) == DEFAULT_UNCONVENTIONAL_CALENDAR

    def test_other_calendar_shapes_rejected(self):
        with pytest.raises(ValidationError):
            CalendarConfig.from_dict({'monthsPerYear': 12})

    def test_malformed_holiday_rejected(self):
        with pytest.raises(ValidationError):
            CalendarConfig.from_dict({'fixedHolidays': [{'name': 'No date'}]})

    def test_negative_break_rejected(self):
        with pytest.raises(ValidationError):
            CalendarConfig.from_dict({'semesterStructure': {'breaksBetween': [-1]}})


class TestLoadCalendarConfig:
    """Tests for loading from files and the environment."""

    def test_defaults_without_file(self, monkeypatch):
        monkeypatch.delenv('CALENDAR_CONFIG_FILE', raising=False)
        assert load_calendar_config() is DEFAULT_UNCONVENTIONAL_CALENDAR

    def test_explicit_path(self, tmp_path):
        config_file = tmp_path / "calendar.json"
        config_file.write_text(json.dumps({'academicYearStartMonth': 2}))
        assert load_calendar_config(config_file).academic_year_start_month == 2

    def test_environment_variable(self, tmp_path, monkeypatch):
        config_file = tmp_path / "calendar.json"
        config_file.write_text(json.dumps({'academicYearStartDay': 7}))
        monkeypatch.setenv('CALENDAR_CONFIG_FILE', str(config_file))
        assert load_calendar_config().academic_year_start_day == 7

    def test_missing_file(self, tmp_path):
        with pytest.raises(ValidationError):
            load_calendar_config(tmp_path / "missing.json")

    def test_invalid_json(self, tmp_path):
        config_file = tmp_path / "calendar.json"
        config_file.write_text("{not json")
        with pytest.raises(ValidationError):
            load_calendar_config(config_file)

    def test_non_object_json(self, tmp_path):
        config_file = tmp_path / "calendar.json"
        config_file.write_text("[1, 2]")
        with pytest.raises(ValidationError):
            load_calendar_config(config_file)
