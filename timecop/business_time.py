"""
Business time rules: midnight splitting, day bucketing, compaction and
allocation of task time into a day's schedule
"""

import logging
from collections import OrderedDict
from dataclasses import replace
from datetime import date, datetime, time, timedelta
from typing import Dict, Iterable, List, Sequence

from .models import (
    AbsoluteTaskSpec, Event, EventSource, PercentageTaskSpec, round_half_away
)

logger = logging.getLogger(__name__)

WORKDAY_START = time(9, 0)
WEEKEND_DAYS = (5, 6)  # Saturday, Sunday

GENERATED_DESCRIPTION = "Created by TimeCop"
GENERATED_SOURCE_ID = "TimeCop ID"


def first_second_of_date(day: date) -> datetime:
    return datetime.combine(day, time(0, 0, 0))


def last_second_of_date(day: date) -> datetime:
    return datetime.combine(day, time(23, 59, 59))


def workday_start(day: date) -> datetime:
    return datetime.combine(day, WORKDAY_START)


def days_between(start_date: date, end_date: date, include_weekends: bool = True) -> List[date]:
    """Dates from start_date to end_date inclusive, optionally without weekends"""
    days = []
    current = start_date
    while current <= end_date:
        if include_weekends or current.weekday() not in WEEKEND_DAYS:
            days.append(current)
        current += timedelta(days=1)
    return days


def split_event_at_midnight(event: Event) -> List[Event]:
    """Break an event spanning several days into one event per day.

    Every piece but the last ends at 23:59:59; every piece but the first
    starts at 00:00:00.
    """
    pieces = []
    current = event
    while current.start_time.date() != current.end_time.date():
        start_day = current.start_time.date()
        pieces.append(replace(current, end_time=last_second_of_date(start_day)))
        current = replace(current, start_time=first_second_of_date(start_day + timedelta(days=1)))
    pieces.append(current)

    if len(pieces) > 1:
        logger.debug(f"[SPLIT] '{event.description}' split into {len(pieces)} day pieces")
        if current.duration_minutes == 0:
            # Before 09:00, so it anchors the next day's schedule at midnight
            logger.debug(f"[SPLIT] '{event.description}' ends at midnight, leaving a 0min piece at 00:00 on {current.start_time.date()}")
    return pieces


def bucket_events_by_day(events: Iterable[Event], days: Sequence[date]) -> Dict[date, List[Event]]:
    """Map each requested day to the (split) events starting on it.

    Every day in ``days`` gets a bucket, empty if nothing falls on it. Pieces
    landing on other days are dropped, including the tail of an event that
    crosses midnight into an excluded day.
    """
    buckets = OrderedDict((day, []) for day in days)
    dropped = 0

    for event in events:
        for piece in split_event_at_midnight(event):
            bucket = buckets.get(piece.start_time.date())
            if bucket is None:
                dropped += 1
                logger.debug(f"[DROP] '{piece.description}' on {piece.start_time.date()} is outside the requested days")
                continue
            bucket.append(piece)

    if dropped:
        logger.info(f"Dropped {dropped} event pieces outside the requested days")
    return buckets


def latest_event(events: Sequence[Event]) -> Event:
    """The event which ends latest; input order is not assumed"""
    return max(events, key=lambda e: e.end_time)


def next_start_time(events: Sequence[Event], day: date) -> datetime:
    """Where the next event of the day goes: after the latest one, or at 09:00"""
    if not events:
        return workday_start(day)
    return latest_event(events).end_time


def slam_to_earliest(placed: Sequence[Event], event: Event) -> List[Event]:
    """Return ``placed`` plus ``event`` moved as early as the day allows.

    With nothing placed yet, the event moves to the start of the workday
    unless it already starts before it. Otherwise it moves to immediately
    follow the latest-ending placed event.
    """
    if not placed:
        start_of_workday = workday_start(event.start_time.date())
        if event.start_time < start_of_workday:
            return [event]
        return [event.moved_to(start_of_workday)]

    return list(placed) + [event.moved_to(latest_event(placed).end_time)]


def compact_day(events: Iterable[Event]) -> List[Event]:
    """Pack a day's events back to back, starting at the workday start"""
    placed: List[Event] = []
    for event in sorted(events, key=lambda e: e.start_time):
        placed = slam_to_earliest(placed, event)
    return placed


def event_from_task_minutes(start_time: datetime, minutes: int, task_id: int) -> Event:
    return Event(
        start_time=start_time,
        end_time=start_time + timedelta(minutes=minutes),
        description=GENERATED_DESCRIPTION,
        source=EventSource.GENERATED,
        source_id=GENERATED_SOURCE_ID,
        task_id=task_id,
    )


def _add_events_after(task_minutes: Iterable, events: Sequence[Event], day: date) -> List[Event]:
    result = list(events)
    for task_id, minutes in task_minutes:
        event = event_from_task_minutes(next_start_time(result, day), minutes, task_id)
        result.append(event)
        logger.debug(f"[ALLOCATE] Task {task_id}: {event.start_time.strftime('%H:%M')}-{event.end_time.strftime('%H:%M')} ({minutes}min)")
    return result


def add_minutes_to_day(specs: Sequence[AbsoluteTaskSpec], events: Sequence[Event], day: date) -> List[Event]:
    """Append back-to-back events of fixed length after the day's latest event"""
    return _add_events_after(((s.task_id, s.minutes) for s in specs), events, day)


def add_percentages_to_day(specs: Sequence[PercentageTaskSpec], minutes_worked: int,
                           events: Sequence[Event], day: date) -> List[Event]:
    """Split the day's unscheduled minutes between tasks by percentage.

    Every percentage applies to the same remainder, computed once before any
    percentage event is added. Nothing is added when the day is already full.
    """
    if not specs:
        return list(events)

    total_duration = sum(e.duration_minutes for e in events)
    remaining = minutes_worked - total_duration
    if remaining <= 0:
        logger.info(f"[FULL] {day}: {total_duration}min already scheduled of {minutes_worked}min, skipping percentages")
        return list(events)

    task_minutes = [(s.task_id, round_half_away(s.fraction * remaining)) for s in specs]
    return _add_events_after(task_minutes, events, day)
