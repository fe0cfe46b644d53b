__all__ = [
    "main", "Config", "Event", "EventSource", "AbsoluteTaskSpec",
    "PercentageTaskSpec", "ScheduleContext", "SubmissionSummary",
]
from .models import (
    Config, Event, EventSource, AbsoluteTaskSpec, PercentageTaskSpec,
    ScheduleContext, SubmissionSummary
)
from .cli import main
__version__ = "0.1.0"
