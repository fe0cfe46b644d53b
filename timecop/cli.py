#!/usr/bin/env python3
"""
TimeCop: fill TimeCamp timesheets from Google Calendar
Command-line interface
"""

import argparse
import logging
import sys
from datetime import date, datetime
from pathlib import Path

from .automation_manager import AutomationManager
from .config_manager import update_config_files, ConfigurationError
from .durations import DurationParseError, TASK_ID_RE, is_valid_time_token, parse_task_time_pairs
from .google_calendar import CalendarError

# Configure basic logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def parse_date(date_str: str) -> date:
    try:
        return datetime.strptime(date_str, '%Y-%m-%d').date()
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid date '{date_str}'. Use YYYY-MM-DD")


def parse_hours(hours_str: str) -> float:
    try:
        hours = float(hours_str)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid number of hours '{hours_str}'")
    # Events are packed from 09:00, so 15 hours would run past midnight
    if not 0 < hours < 15:
        raise argparse.ArgumentTypeError("Hours worked must be between 0 and 15")
    return hours


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='timecop',
        description="Move Google Calendar events into TimeCamp and fill the rest of each day with task time",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
A TASK_TIME_PAIR is a TimeCamp task id followed by either an absolute time
(1h30m, 1.5h, 90m) or a percentage of the remaining time (25%). Absolute
times are scheduled first; percentages then split whatever is left of the
hours worked. Percentages need not sum to 100%.

Examples:
  # Fill today with 1h on task 1234 and split the rest 80/20
  timecop 1234 1h 2345 80% 3456 20%

  # Preview a week without submitting
  timecop -s 2024-01-15 -e 2024-01-19 --preview 1234 30m 2345 100%

  # Start scheduler
  timecop --scheduler

  # Test connections
  timecop --test-connections

  # Update configuration files
  timecop --update-config
        """
    )

    parser.add_argument(
        'task_times',
        nargs='*',
        metavar='TASK_TIME_PAIR',
        help='Task id and time pairs, e.g. 1234 1h 2345 30%%'
    )

    parser.add_argument(
        '-s', '--start-date',
        type=parse_date,
        default=date.today(),
        help='Start date (inclusive) in YYYY-MM-DD format (default: today)'
    )

    parser.add_argument(
        '-e', '--end-date',
        type=parse_date,
        default=date.today(),
        help='End date (inclusive) in YYYY-MM-DD format (default: today)'
    )

    parser.add_argument(
        '--hours-worked',
        type=parse_hours,
        help='Hours worked per day, less than 15 (default from config: 8)'
    )

    parser.add_argument(
        '-i', '--calendar-id',
        type=str,
        help='ID of the Google calendar to read events from (default from config: primary)'
    )

    parser.add_argument(
        '-t', '--tc-api-token',
        type=str,
        help='TimeCamp API token (default from config or $TC_API_TOKEN)'
    )

    parser.add_argument(
        '-w', '--include-weekends',
        action='store_true',
        help='Create events for weekends'
    )

    parser.add_argument(
        '--preview',
        action='store_true',
        help='Write the schedule to the preview file instead of submitting it'
    )

    parser.add_argument(
        '--scheduler',
        action='store_true',
        help='Start the automated scheduler using task_times from the config'
    )

    parser.add_argument(
        '--test-connections',
        action='store_true',
        help='Test connections to Google Calendar and TimeCamp'
    )

    parser.add_argument(
        '--config',
        type=str,
        default='config.json',
        help='Configuration file path (default: config.json)'
    )

    parser.add_argument(
        '--update-config',
        action='store_true',
        help='Merge new default settings into your configuration file'
    )

    return parser


def validate_args(args) -> list:
    """Return a list of problems with the parsed arguments"""
    errors = []
    if len(args.task_times) % 2 != 0:
        errors.append("Task times must be given as TASK_ID TIME pairs")
    else:
        for task_id, token in zip(args.task_times[::2], args.task_times[1::2]):
            if not TASK_ID_RE.match(task_id):
                errors.append(f"Task id '{task_id}' must be a non-negative integer")
            if not is_valid_time_token(token):
                errors.append(f"Time '{token}' must look like 1h30m, 1.5h, 90m or 25%")

    if args.start_date > args.end_date:
        errors.append("End date must not be before start date")
    return errors


def main(argv=None):
    """Main entry point"""
    parser = build_parser()
    args = parser.parse_args(argv)

    # Handle configuration updates first
    if args.update_config or not Path(args.config).exists():
        try:
            update_config_files(args.config)
            if args.update_config:
                logger.info("Configuration files updated successfully")
                return
        except OSError as e:
            logger.error(f"Failed to update configuration files: {e}")
            sys.exit(1)

    errors = validate_args(args)
    if errors:
        logger.error("The following errors occurred while parsing your command:")
        for error in errors:
            logger.error(f"  {error}")
        sys.exit(1)

    overrides = {
        'hours_worked': args.hours_worked,
        'calendar_id': args.calendar_id,
        'timecamp_api_token': args.tc_api_token,
        'include_weekends': True if args.include_weekends else None,
    }

    try:
        manager = AutomationManager(args.config, overrides)
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        logger.error("Please run 'timecop --update-config' and fill in your tokens")
        sys.exit(1)

    if args.test_connections:
        success = manager.test_connections()
        sys.exit(0 if success else 1)

    try:
        if args.task_times:
            task_specs = parse_task_time_pairs(args.task_times, strict=manager.config.strict_parsing)
        else:
            task_specs = manager.configured_task_specs()

        if args.scheduler:
            logger.info("Starting scheduler...")
            manager.start_scheduler(task_specs)

        elif args.preview:
            logger.info("Generating preview file...")
            manager.generate_preview(args.start_date, args.end_date, task_specs)

        else:
            summary = manager.transfer(args.start_date, args.end_date, task_specs)
            print(summary.message)
            if not summary.ok:
                sys.exit(1)

    except DurationParseError as e:
        logger.error(f"Invalid task times: {e}")
        sys.exit(1)
    except CalendarError as e:
        logger.error(f"Google Calendar error: {e}")
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("Operation cancelled by user")
        sys.exit(1)


if __name__ == "__main__":
    main()
