"""
Main automation manager for TimeCop
"""

import json
import logging
import time
from datetime import date, datetime, timedelta
from typing import List, Optional, Sequence

import schedule

from .business_time import (
    WEEKEND_DAYS, bucket_events_by_day, days_between, first_second_of_date,
    last_second_of_date
)
from .config_manager import load_config, setup_logging, ConfigurationError
from .durations import parse_task_time_pairs
from .google_calendar import GoogleCalendarProvider
from .models import Event, EventSource, ScheduleContext, SubmissionSummary, TaskSpec
from .time_processor import TimeProcessor
from .timecamp import TimeCampSubmitter

logger = logging.getLogger(__name__)


class AutomationManager:
    """Main automation manager that coordinates all components"""

    def __init__(self, config_file: str = "config.json", overrides: Optional[dict] = None):
        try:
            self.config = load_config(config_file, overrides)
            setup_logging(self.config)

            self.calendar = GoogleCalendarProvider(self.config)
            self.submitter = TimeCampSubmitter(self.config)
            self.time_processor = TimeProcessor()

            logger.info("AutomationManager initialized successfully")

        except ConfigurationError as e:
            logger.error(f"Configuration error: {e}")
            raise

    def context_for(self, task_specs: Sequence[TaskSpec]) -> ScheduleContext:
        return ScheduleContext(task_specs=list(task_specs), minutes_worked=self.config.minutes_worked)

    def configured_task_specs(self) -> List[TaskSpec]:
        """Task specs from the ``task_times`` config setting"""
        tokens = [str(part) for pair in self.config.task_times for part in pair]
        return parse_task_time_pairs(tokens, strict=self.config.strict_parsing)

    def build_schedule(self, start_date: date, end_date: date, task_specs: Sequence[TaskSpec]) -> List[Event]:
        """Fetch calendar events for the range and return the filled schedule"""
        days = days_between(start_date, end_date, self.config.include_weekends)
        if not days:
            logger.info(f"No days to process between {start_date} and {end_date}")
            return []

        events = self.calendar.get_events(
            self.config.calendar_id,
            first_second_of_date(start_date),
            last_second_of_date(end_date),
        )
        day_to_events = bucket_events_by_day(events, days)
        day_to_filled = self.time_processor.schedule_days(day_to_events, self.context_for(task_specs))
        return self.time_processor.flatten(day_to_filled)

    def transfer(self, start_date: date, end_date: date, task_specs: Sequence[TaskSpec]) -> SubmissionSummary:
        """Schedule the date range and submit every event to TimeCamp"""
        logger.info(f"Transferring {start_date} to {end_date} from calendar to TimeCamp")
        events = self.build_schedule(start_date, end_date, task_specs)
        if not events:
            logger.info("No events to submit")
        return self.submitter.submit_events(events)

    def generate_preview(self, start_date: date, end_date: date, task_specs: Sequence[TaskSpec]) -> List[Event]:
        """Write the schedule to the preview file instead of submitting it"""
        events = sorted(self.build_schedule(start_date, end_date, task_specs), key=lambda e: e.start_time)
        total_minutes = sum(e.duration_minutes for e in events)

        preview_data = {
            "metadata": {
                "generated_at": datetime.now().isoformat(),
                "start_date": start_date.isoformat(),
                "end_date": end_date.isoformat(),
                "total_entries": len(events),
                "total_hours": total_minutes / 60
            },
            "entries": [
                {
                    "task_id": event.task_id,
                    "start_time": event.start_time.strftime('%Y-%m-%dT%H:%M:%S'),
                    "end_time": event.end_time.strftime('%Y-%m-%dT%H:%M:%S'),
                    "duration_minutes": event.duration_minutes,
                    "description": event.description,
                    "generated": event.source is EventSource.GENERATED
                }
                for event in events
            ]
        }

        with open(self.config.preview_file_path, 'w') as f:
            json.dump(preview_data, f, indent=2)

        logger.info(f"Created preview file: {self.config.preview_file_path}")
        logger.info(f"Total: {len(events)} entries, {total_minutes / 60:.2f} hours")
        return events

    def previous_workday(self, today: Optional[date] = None) -> Optional[date]:
        """The day a scheduled run on ``today`` should submit, or None.

        Without weekends, Saturday and Sunday runs do nothing and Monday's run
        picks up Friday, so every workday is submitted exactly once.
        """
        today = today or date.today()
        day = today - timedelta(days=1)
        if not self.config.include_weekends:
            if today.weekday() in WEEKEND_DAYS:
                return None
            while day.weekday() in WEEKEND_DAYS:
                day -= timedelta(days=1)
        return day

    def process_previous_workday(self, task_specs: Sequence[TaskSpec],
                                 today: Optional[date] = None) -> Optional[SubmissionSummary]:
        day = self.previous_workday(today)
        if day is None:
            logger.info("Nothing to submit on a weekend run")
            return None

        try:
            summary = self.transfer(day, day, task_specs)
        except Exception as e:
            logger.error(f"Unexpected error processing {day}: {e}")
            return None

        if not summary.ok:
            logger.error(f"Some entries for {day} failed: {summary.message}")
        return summary

    def start_scheduler(self, task_specs: Sequence[TaskSpec]):
        """Run the previous workday's transfer every day at the configured time"""
        logger.info("Starting automated scheduler")

        schedule.every().day.at(self.config.scheduler_time).do(self.process_previous_workday, task_specs)

        logger.info(f"Scheduler started. Daily processing at {self.config.scheduler_time}")

        try:
            while True:
                schedule.run_pending()
                time.sleep(60)
        except KeyboardInterrupt:
            logger.info("Scheduler stopped by user")

    def test_connections(self) -> bool:
        """Test connections to Google Calendar and TimeCamp"""
        logger.info("Testing connections...")

        if self.calendar.test_connection():
            logger.info("✓ Google Calendar connection successful")
        else:
            logger.error("✗ Google Calendar connection failed")
            return False

        if self.submitter.test_connection():
            logger.info("✓ TimeCamp connection successful")
        else:
            logger.error("✗ TimeCamp connection failed")
            return False

        logger.info("All connections successful!")
        return True
