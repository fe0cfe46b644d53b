"""
Data models for TimeCop
"""

import math
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from enum import Enum
from typing import List, Optional, Union


def round_half_away(value: float) -> int:
    """Round to the nearest integer, ties away from zero (0.5 -> 1)"""
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


class EventSource(Enum):
    """Where an event came from"""
    CALENDAR = "calendar"
    GENERATED = "timecop"


@dataclass
class Event:
    """A block of time to be logged against a task"""
    start_time: datetime
    end_time: datetime
    description: str
    source: EventSource = EventSource.CALENDAR
    source_id: str = ""
    task_id: Optional[int] = None

    def __post_init__(self):
        if self.end_time < self.start_time:
            raise ValueError("Event end time must not be before its start time")
        if self.task_id is not None and self.task_id < 0:
            raise ValueError("Task id must be non-negative")

    @property
    def duration_minutes(self) -> int:
        # Midnight splits end at 23:59:59, which rounds back to a whole minute
        return round_half_away((self.end_time - self.start_time).total_seconds() / 60)

    def moved_to(self, start_time: datetime) -> "Event":
        """Return a copy starting at ``start_time`` with the same duration"""
        return replace(
            self,
            start_time=start_time,
            end_time=start_time + timedelta(minutes=self.duration_minutes),
        )


@dataclass
class AbsoluteTaskSpec:
    """A fixed number of minutes to log against a task"""
    task_id: int
    minutes: int

    def __post_init__(self):
        if self.task_id < 0:
            raise ValueError("Task id must be non-negative")
        if self.minutes < 0:
            raise ValueError("Duration must not be negative")


@dataclass
class PercentageTaskSpec:
    """A fraction of the day's unscheduled time to log against a task"""
    task_id: int
    fraction: float

    def __post_init__(self):
        if self.task_id < 0:
            raise ValueError("Task id must be non-negative")
        if self.fraction < 0:
            raise ValueError("Percentage must not be negative")


TaskSpec = Union[AbsoluteTaskSpec, PercentageTaskSpec]


@dataclass
class ScheduleContext:
    """Per-run inputs shared by every day being scheduled"""
    task_specs: List[TaskSpec] = field(default_factory=list)
    minutes_worked: int = 480

    @property
    def absolute_specs(self) -> List[AbsoluteTaskSpec]:
        return [s for s in self.task_specs if isinstance(s, AbsoluteTaskSpec)]

    @property
    def percentage_specs(self) -> List[PercentageTaskSpec]:
        return [s for s in self.task_specs if isinstance(s, PercentageTaskSpec)]


@dataclass
class SubmissionSummary:
    """Outcome of submitting a batch of events one at a time"""
    successes: int = 0
    failures: List[Event] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures

    @property
    def message(self) -> str:
        return f"{self.successes} successes, {len(self.failures)} failures"


@dataclass
class Config:
    """Configuration settings"""
    timecamp_api_token: str
    google_access_token: str
    timecamp_url: str = "https://app.timecamp.com/third_party/api"
    calendar_id: str = "primary"
    hours_worked: float = 8
    include_weekends: bool = False
    timezone: Optional[str] = None
    strict_parsing: bool = False
    preview_file_path: str = "timecop_preview.json"
    log_level: str = "INFO"
    log_file: str = "timecop.log"
    scheduler_time: str = "08:00"
    task_times: List[List[str]] = field(default_factory=list)

    def __post_init__(self):
        """Validate configuration after initialization"""
        if not self.timecamp_url.startswith(('http://', 'https://')):
            raise ValueError("Invalid TimeCamp URL format. Must start with http:// or https://")

        if not self.timecamp_api_token or self.timecamp_api_token == "your-timecamp-api-token":
            raise ValueError("TimeCamp API token is required and cannot be the default placeholder")

        if not self.google_access_token or self.google_access_token == "your-google-access-token":
            raise ValueError("Google access token is required and cannot be the default placeholder")

        # Events are packed from 09:00, so 15 hours would run past midnight
        if isinstance(self.hours_worked, bool) or not 0 < self.hours_worked < 15:
            raise ValueError("Hours worked must be between 0 and 15")

        try:
            datetime.strptime(self.scheduler_time, "%H:%M")
        except ValueError:
            raise ValueError("Scheduler time must be in HH:MM format")

    @property
    def minutes_worked(self) -> int:
        return round_half_away(self.hours_worked * 60)
