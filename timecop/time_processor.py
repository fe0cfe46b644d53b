"""
Per-day scheduling of calendar events and task time for TimeCop
"""

import logging
from collections import OrderedDict
from datetime import date
from typing import Dict, List, Mapping, Sequence

from .business_time import add_minutes_to_day, add_percentages_to_day, compact_day
from .models import Event, EventSource, ScheduleContext

logger = logging.getLogger(__name__)


class TimeProcessor:
    """Turns each day's calendar events into a packed, filled schedule"""

    def schedule_day(self, day: date, events: Sequence[Event], context: ScheduleContext) -> List[Event]:
        """Compact the day's events, then add absolute and percentage task time"""
        placed = compact_day(events)
        placed = add_minutes_to_day(context.absolute_specs, placed, day)
        placed = add_percentages_to_day(context.percentage_specs, context.minutes_worked, placed, day)

        self._log_day(day, placed)
        return placed

    def schedule_days(self, day_to_events: Mapping[date, Sequence[Event]],
                      context: ScheduleContext) -> Dict[date, List[Event]]:
        logger.info(f"Scheduling {len(day_to_events)} days with {len(context.task_specs)} task specs")
        return OrderedDict(
            (day, self.schedule_day(day, events, context))
            for day, events in day_to_events.items()
        )

    @staticmethod
    def flatten(day_to_events: Mapping[date, Sequence[Event]]) -> List[Event]:
        return [event for events in day_to_events.values() for event in events]

    def _log_day(self, day: date, events: Sequence[Event]):
        total = sum(e.duration_minutes for e in events)
        logger.info(f"[DAY] {day}: {len(events)} events, {total / 60:.2f}h")
        for event in events:
            kind = "TASK" if event.source is EventSource.GENERATED else "CALENDAR"
            label = event.task_id if event.task_id is not None else event.description
            logger.debug(f"[{kind}] {event.start_time.strftime('%H:%M')}-{event.end_time.strftime('%H:%M')} {label} ({event.duration_minutes}min)")
