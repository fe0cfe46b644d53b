"""
TimeCamp API integration for submitting scheduled events
"""

import logging
from typing import Dict, Iterable, Optional

import requests

from .models import Config, Event, SubmissionSummary

logger = logging.getLogger(__name__)


class TimeCampError(Exception):
    """Raised when there's an issue with TimeCamp integration"""
    pass


class TimeCampSubmitter:
    """Submits events to TimeCamp one at a time, without batching or retries"""

    def __init__(self, config: Config):
        self.config = config
        self.session = requests.Session()
        self.session.headers.update({'Accept': 'application/json'})

    def _url(self, resource: str) -> str:
        return f"{self.config.timecamp_url}/{resource}/format/json/api_token/{self.config.timecamp_api_token}"

    def _make_request(self, method: str, resource: str, **kwargs):
        """Make HTTP request with proper error handling"""
        try:
            response = self.session.request(method, self._url(resource), timeout=30, **kwargs)
            response.raise_for_status()
            return response
        except requests.exceptions.Timeout:
            raise TimeCampError(f"Request timeout for {method} {resource}")
        except requests.exceptions.ConnectionError:
            raise TimeCampError(f"Connection error for {method} {resource}")
        except requests.exceptions.HTTPError as e:
            if e.response.status_code in (401, 403):
                raise TimeCampError("Authentication failed. Please check your TimeCamp API token.")
            else:
                raise TimeCampError(f"HTTP error {e.response.status_code}: {e.response.text}")
        except requests.exceptions.RequestException as e:
            raise TimeCampError(f"Request failed: {e}")

    @staticmethod
    def entry_payload(event: Event) -> Dict:
        """TimeCamp entry fields for an event"""
        payload = {
            'date': event.start_time.strftime('%Y-%m-%d'),
            'start_time': event.start_time.strftime('%H:%M:%S'),
            'end_time': event.end_time.strftime('%H:%M:%S'),
            'duration': event.duration_minutes * 60,
            'note': event.description,
        }
        if event.task_id is not None:
            payload['task_id'] = event.task_id
        return payload

    def submit_event(self, event: Event) -> bool:
        """Submit one event, returning False on any failure"""
        label = event.task_id if event.task_id is not None else event.description
        try:
            self._make_request('POST', 'entries', data=self.entry_payload(event))
            logger.info(f"Logged {event.duration_minutes}min on {event.start_time.strftime('%Y-%m-%d %H:%M')} to {label}")
            return True
        except TimeCampError as e:
            logger.error(f"Failed to log {label} at {event.start_time.strftime('%Y-%m-%d %H:%M')}: {e}")
            return False

    def submit_events(self, events: Iterable[Event]) -> SubmissionSummary:
        """Submit events sequentially; failures are recorded and skipped"""
        summary = SubmissionSummary()
        for event in events:
            if self.submit_event(event):
                summary.successes += 1
            else:
                summary.failures.append(event)

        if summary.failures:
            logger.error(f"Failed to submit {len(summary.failures)} entries:")
            for event in summary.failures:
                logger.error(f"  - {event.start_time.strftime('%Y-%m-%d %H:%M')} {event.description} ({event.duration_minutes}min)")

        logger.info(summary.message)
        return summary

    def get_current_user(self) -> Optional[Dict]:
        try:
            return self._make_request('GET', 'user').json()
        except TimeCampError as e:
            logger.error(f"Failed to get current user: {e}")
            return None

    def test_connection(self) -> bool:
        user_info = self.get_current_user()
        if not user_info:
            logger.error("Failed to connect to TimeCamp API")
            return False
        logger.info(f"Successfully connected to TimeCamp as {user_info.get('email', 'unknown')}")
        return True
