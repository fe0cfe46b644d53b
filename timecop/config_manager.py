"""
Configuration management for TimeCop
"""

import json
import logging
import os
import shutil
from pathlib import Path
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .models import Config

logger = logging.getLogger(__name__)

DEFAULTS_DIR = Path(__file__).parent / 'defaults'

TOKEN_ENV_VARS = {
    'timecamp_api_token': 'TC_API_TOKEN',
    'google_access_token': 'TIMECOP_GOOGLE_TOKEN',
}


class ConfigurationError(Exception):
    """Raised when there's an issue with configuration"""
    pass


def merge_json_defaults(default_path: Path, user_path: Path) -> bool:
    """Merge keys from ``default_path`` into ``user_path`` without overwriting existing values."""
    if not default_path.exists():
        return False

    if not user_path.exists():
        shutil.copy(default_path, user_path)
        logger.info(f"Created {user_path} from defaults")
        return True

    with open(default_path, 'r') as f:
        default_data = json.load(f)
    with open(user_path, 'r') as f:
        user_data = json.load(f)

    changed = False

    def merge(d, u):
        nonlocal changed
        for k, v in d.items():
            if k not in u:
                u[k] = v
                changed = True
            elif isinstance(v, dict) and isinstance(u.get(k), dict):
                merge(v, u[k])

    merge(default_data, user_data)

    if changed:
        with open(user_path, 'w') as f:
            json.dump(user_data, f, indent=2)
        logger.info(f"Updated {user_path} with new settings")

    return changed


def update_config_files(config_path: str) -> None:
    """Create the user configuration from defaults, or add any new default keys."""
    merge_json_defaults(DEFAULTS_DIR / 'config.json', Path(config_path))


def apply_env_overrides(config_data: dict) -> dict:
    """Fill missing or placeholder tokens from the environment"""
    data = dict(config_data)
    for field, env_var in TOKEN_ENV_VARS.items():
        value = data.get(field)
        if not value or str(value).startswith('your-'):
            env_value = os.environ.get(env_var)
            if env_value:
                data[field] = env_value
    return data


def validate_config_data(config_data: dict) -> None:
    """Validate configuration data structure and values"""
    for field, env_var in TOKEN_ENV_VARS.items():
        value = config_data.get(field)
        if not value or str(value).startswith('your-'):
            raise ConfigurationError(f"Missing required field: {field} (or set ${env_var})")

    timecamp_url = config_data.get('timecamp_url', 'https://app.timecamp.com/third_party/api')
    if not timecamp_url.startswith(('http://', 'https://')):
        raise ConfigurationError("Invalid TimeCamp URL format. Must start with http:// or https://")

    hours_worked = config_data.get('hours_worked', 8)
    if (isinstance(hours_worked, bool) or not isinstance(hours_worked, (int, float))
            or not 0 < hours_worked < 15):
        raise ConfigurationError("Hours worked must be a number between 0 and 15")

    timezone = config_data.get('timezone')
    if timezone:
        try:
            ZoneInfo(timezone)
        except (ZoneInfoNotFoundError, TypeError, ValueError):
            raise ConfigurationError(f"Unknown timezone: {timezone}")

    task_times = config_data.get('task_times', [])
    if not isinstance(task_times, list) or any(
        not isinstance(pair, list) or len(pair) != 2 for pair in task_times
    ):
        raise ConfigurationError("task_times must be a list of [task_id, time] pairs")


def load_config(config_file: str, overrides: Optional[dict] = None) -> Config:
    """Load and validate configuration from JSON file.

    ``overrides`` (e.g. from the command line) take precedence over the file;
    ``None`` values in it are ignored.
    """
    try:
        with open(config_file, 'r') as f:
            config_data = json.load(f)
    except FileNotFoundError:
        raise ConfigurationError(f"Config file not found: {config_file}")
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Invalid JSON in config file: {e}")

    if overrides:
        config_data.update({k: v for k, v in overrides.items() if v is not None})
    config_data = apply_env_overrides(config_data)
    validate_config_data(config_data)

    try:
        return Config(
            timecamp_api_token=config_data['timecamp_api_token'],
            google_access_token=config_data['google_access_token'],
            timecamp_url=config_data.get('timecamp_url', 'https://app.timecamp.com/third_party/api'),
            calendar_id=config_data.get('calendar_id', 'primary'),
            hours_worked=config_data.get('hours_worked', 8),
            include_weekends=config_data.get('include_weekends', False),
            timezone=config_data.get('timezone') or None,
            strict_parsing=config_data.get('strict_parsing', False),
            preview_file_path=config_data.get('preview_file_path', 'timecop_preview.json'),
            log_level=config_data.get('log_level', 'INFO'),
            log_file=config_data.get('log_file', 'timecop.log'),
            scheduler_time=config_data.get('scheduler_time', '08:00'),
            task_times=config_data.get('task_times', []),
        )
    except ValueError as e:
        raise ConfigurationError(f"Invalid configuration: {e}")


def setup_logging(config: Config) -> None:
    """Setup logging for the timecop package"""
    package_logger = logging.getLogger('timecop')

    # Clear existing handlers
    for handler in package_logger.handlers[:]:
        package_logger.removeHandler(handler)

    log_level = getattr(logging, config.log_level.upper(), logging.INFO)
    package_logger.setLevel(log_level)

    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    if config.log_file:
        file_handler = logging.FileHandler(config.log_file)
        file_handler.setLevel(log_level)
        file_handler.setFormatter(formatter)
        package_logger.addHandler(file_handler)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)
    package_logger.addHandler(console_handler)
