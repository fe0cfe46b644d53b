"""
Parsing of task time tokens such as ``1h30m``, ``90m`` and ``25%``
"""

import logging
import re
from typing import List, Sequence

from .models import AbsoluteTaskSpec, PercentageTaskSpec, TaskSpec, round_half_away

logger = logging.getLogger(__name__)

_NUMBER = r"(\d+(?:\.\d*)?|\.\d+)"

HOURS_MINS_RE = re.compile(
    rf"""
    ^
    (?=.)                   # at least one of the two parts
    (?:{_NUMBER}h)?         # hours
    (?:{_NUMBER}m)?         # minutes
    $
    """,
    re.VERBOSE,
)
PCT_RE = re.compile(rf"^{_NUMBER}%$")
TASK_ID_RE = re.compile(r"^\d+$")


class DurationParseError(ValueError):
    """Raised when a task time token or pair list can't be parsed"""
    pass


def is_percentage(token: str) -> bool:
    return PCT_RE.match(token) is not None


def is_valid_time_token(token: str) -> bool:
    """True if the token matches the hours/minutes or percentage grammar"""
    return HOURS_MINS_RE.match(token) is not None or is_percentage(token)


def hours_to_minutes(token: str, strict: bool = False) -> int:
    """Parse an ``XhYm`` token into minutes.

    Tokens that don't match the pattern are treated as zero minutes, unless
    ``strict`` is set, in which case ``DurationParseError`` is raised.
    """
    match = HOURS_MINS_RE.match(token)
    if match is None:
        if strict:
            raise DurationParseError(f"Invalid duration '{token}'. Use forms like 1h30m, 1.5h or 90m")
        logger.warning(f"Could not parse duration '{token}', treating it as 0 minutes")
        return 0

    hours_str, mins_str = match.groups()
    hours = float(hours_str) if hours_str else 0.0
    mins = float(mins_str) if mins_str else 0.0
    return round_half_away(hours * 60) + round_half_away(mins)


def pct_to_fraction(token: str, strict: bool = False) -> float:
    """Parse an ``X%`` token into a fraction; 150% gives 1.5.

    Non-matching tokens give 0.0 unless ``strict`` is set.
    """
    match = PCT_RE.match(token)
    if match is None:
        if strict:
            raise DurationParseError(f"Invalid percentage '{token}'. Use forms like 25% or 12.5%")
        logger.warning(f"Could not parse percentage '{token}', treating it as 0%")
        return 0.0
    return float(match.group(1)) / 100


def parse_task_spec(task_id: int, token: str, strict: bool = False) -> TaskSpec:
    if is_percentage(token):
        return PercentageTaskSpec(task_id=task_id, fraction=pct_to_fraction(token, strict))
    return AbsoluteTaskSpec(task_id=task_id, minutes=hours_to_minutes(token, strict))


def parse_task_time_pairs(tokens: Sequence[str], strict: bool = False) -> List[TaskSpec]:
    """Turn ``[id, time, id, time, ...]`` into task specs, keeping input order"""
    if len(tokens) % 2 != 0:
        raise DurationParseError("Task times must be given as TASK_ID TIME pairs")

    specs = []
    for task_id, token in zip(tokens[::2], tokens[1::2]):
        task_id = str(task_id)
        if not TASK_ID_RE.match(task_id):
            raise DurationParseError(f"Task id '{task_id}' must be a non-negative integer")
        specs.append(parse_task_spec(int(task_id), str(token), strict))

    logger.debug(f"Parsed {len(specs)} task specs: {specs}")
    return specs
