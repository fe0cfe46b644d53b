"""
Test the package structure and model validation
"""

from datetime import datetime, timedelta

import pytest

from timecop.models import (
    AbsoluteTaskSpec, Config, Event, EventSource, PercentageTaskSpec, ScheduleContext
)
from timecop.config_manager import ConfigurationError
from timecop.durations import DurationParseError
from timecop.google_calendar import CalendarError
from timecop.timecamp import TimeCampError


def test_models_import():
    """Test that all models can be imported and instantiated"""
    config = Config(timecamp_api_token="tc-token", google_access_token="g-token")
    assert config.calendar_id == "primary"
    assert config.minutes_worked == 480

    now = datetime(2024, 1, 15, 9, 0)
    event = Event(start_time=now, end_time=now + timedelta(minutes=45), description="Standup")
    assert event.source is EventSource.CALENDAR
    assert event.task_id is None
    assert event.duration_minutes == 45

    moved = event.moved_to(now + timedelta(hours=2))
    assert moved.end_time == datetime(2024, 1, 15, 11, 45)
    assert moved.description == "Standup"

    context = ScheduleContext(task_specs=[
        PercentageTaskSpec(task_id=2, fraction=0.5),
        AbsoluteTaskSpec(task_id=1, minutes=30),
    ])
    assert [s.task_id for s in context.absolute_specs] == [1]
    assert [s.task_id for s in context.percentage_specs] == [2]


def test_config_validation():
    """Test configuration validation"""
    with pytest.raises(ValueError, match="Invalid TimeCamp URL format"):
        Config(timecamp_api_token="tc", google_access_token="g", timecamp_url="invalid-url")

    with pytest.raises(ValueError, match="TimeCamp API token is required"):
        Config(timecamp_api_token="your-timecamp-api-token", google_access_token="g")

    with pytest.raises(ValueError, match="Google access token is required"):
        Config(timecamp_api_token="tc", google_access_token="")

    with pytest.raises(ValueError, match="Hours worked must be between"):
        Config(timecamp_api_token="tc", google_access_token="g", hours_worked=15)

    with pytest.raises(ValueError, match="Scheduler time"):
        Config(timecamp_api_token="tc", google_access_token="g", scheduler_time="8am")


def test_minutes_worked_rounds():
    config = Config(timecamp_api_token="tc", google_access_token="g", hours_worked=7.51)
    assert config.minutes_worked == 451


def test_event_validation():
    now = datetime(2024, 1, 15, 9, 0)
    with pytest.raises(ValueError, match="end time"):
        Event(start_time=now, end_time=now - timedelta(minutes=1), description="Backwards")
    with pytest.raises(ValueError, match="non-negative"):
        Event(start_time=now, end_time=now, description="Bad", task_id=-1)


def test_task_spec_validation():
    with pytest.raises(ValueError, match="must not be negative"):
        AbsoluteTaskSpec(task_id=1, minutes=-5)
    with pytest.raises(ValueError, match="must not be negative"):
        PercentageTaskSpec(task_id=1, fraction=-0.1)
    assert PercentageTaskSpec(task_id=1, fraction=1.5).fraction == 1.5


def test_exceptions_import():
    """Test that all custom exceptions can be imported"""
    assert issubclass(DurationParseError, ValueError)
    assert ConfigurationError is not None
    assert CalendarError is not None
    assert TimeCampError is not None
