"""
Google Calendar integration: reads the events TimeCop schedules around
"""

import logging
from datetime import date, datetime, time, timedelta
from typing import Dict, List, Optional
from urllib.parse import quote
from zoneinfo import ZoneInfo

import requests
from dateutil import parser as date_parser

from .models import Config, Event, EventSource

logger = logging.getLogger(__name__)


class CalendarError(Exception):
    """Raised when there's an issue with Google Calendar integration"""
    pass


class GoogleCalendarProvider:
    """Fetches calendar events and converts them to local, minute-resolution events"""

    base_url = "https://www.googleapis.com/calendar/v3"

    def __init__(self, config: Config):
        self.config = config
        self.tz = ZoneInfo(config.timezone) if config.timezone else None
        self.session = requests.Session()
        self.session.headers.update({
            'Authorization': f'Bearer {config.google_access_token}',
            'Accept': 'application/json'
        })

    def _events_url(self, calendar_id: str) -> str:
        return f"{self.base_url}/calendars/{quote(calendar_id, safe='')}/events"

    def _to_rfc3339(self, value: datetime) -> str:
        if self.tz is not None:
            return value.replace(tzinfo=self.tz).isoformat()
        return value.astimezone().isoformat()

    def _to_local(self, value: datetime) -> datetime:
        """Convert an aware datetime to naive local time, truncated to the minute"""
        local = value.astimezone(self.tz) if self.tz is not None else value.astimezone()
        return local.replace(tzinfo=None, second=0, microsecond=0)

    def _request_page(self, calendar_id: str, params: Dict) -> Dict:
        try:
            response = self.session.get(self._events_url(calendar_id), params=params, timeout=30)
            response.raise_for_status()
            return response.json()
        except requests.exceptions.Timeout:
            raise CalendarError(f"Request timeout reading calendar {calendar_id}")
        except requests.exceptions.ConnectionError:
            raise CalendarError("Connection error reaching Google Calendar")
        except requests.exceptions.HTTPError as e:
            if e.response.status_code == 401:
                raise CalendarError("Authentication failed. Please check your Google access token.")
            elif e.response.status_code == 404:
                raise CalendarError(f"Calendar not found: {calendar_id}")
            else:
                raise CalendarError(f"HTTP error {e.response.status_code}: {e.response.text}")
        except requests.exceptions.RequestException as e:
            raise CalendarError(f"Failed to fetch calendar events: {e}")

    def parse_event(self, item: Dict) -> Optional[Event]:
        """Convert a Google Calendar event resource, or None if it can't be used"""
        if item.get('status') == 'cancelled':
            return None

        start = item.get('start', {})
        end = item.get('end', {})
        try:
            if 'dateTime' in start:
                start_time = self._to_local(date_parser.isoparse(start['dateTime']))
                end_time = self._to_local(date_parser.isoparse(end['dateTime']))
            else:
                # All-day events have an exclusive end date
                first_day = date.fromisoformat(start['date'])
                last_day = date.fromisoformat(end['date']) - timedelta(days=1)
                start_time = datetime.combine(first_day, time(0, 0))
                end_time = datetime.combine(max(first_day, last_day), time(23, 59, 59))

            return Event(
                start_time=start_time,
                end_time=end_time,
                description=item.get('summary', ''),
                source=EventSource.CALENDAR,
                source_id=item.get('id', ''),
            )
        except (KeyError, ValueError) as e:
            logger.warning(f"Skipping unreadable calendar event {item.get('id', 'unknown')}: {e}")
            return None

    def get_events(self, calendar_id: str, start: datetime, end: datetime) -> List[Event]:
        """Fetch every event overlapping [start, end] from the calendar"""
        params = {
            'timeMin': self._to_rfc3339(start),
            'timeMax': self._to_rfc3339(end),
            'singleEvents': 'true',
            'orderBy': 'startTime',
        }
        logger.debug(f"Querying calendar {calendar_id} from {params['timeMin']} to {params['timeMax']}")

        events = []
        while True:
            page = self._request_page(calendar_id, params)
            for item in page.get('items', []):
                event = self.parse_event(item)
                if event is not None:
                    events.append(event)

            page_token = page.get('nextPageToken')
            if not page_token:
                break
            params = dict(params, pageToken=page_token)

        logger.info(f"Retrieved {len(events)} calendar events from {calendar_id}")
        return events

    def test_connection(self) -> bool:
        try:
            self._request_page(self.config.calendar_id, {'maxResults': 1})
            logger.info("Successfully connected to Google Calendar")
            return True
        except CalendarError as e:
            logger.error(f"Calendar connection test failed: {e}")
            return False
