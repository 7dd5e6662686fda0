"""
Notification settings stored as flat key/value rows in the `config` table.

The settings UI writes strings ("true", "24", "22:00"); everything is resolved
into a typed NotificationSettings value once per scheduler tick. Read failures
fall back to defaults so the scheduler keeps running.
"""
import json
import logging
import re
from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

from chief_of_staff import crud

logger = logging.getLogger("settings")

KEY_TASK_REMINDERS = "notification_task_reminders"
KEY_OVERDUE_ALERTS = "notification_overdue_alerts"
KEY_DAILY_DIGEST = "notification_daily_digest"
KEY_REMINDER_TIMING = "notification_reminder_timing"
KEY_QUIET_HOURS_ENABLED = "notification_quiet_hours_enabled"
KEY_QUIET_HOURS_START = "notification_quiet_hours_start"
KEY_QUIET_HOURS_END = "notification_quiet_hours_end"
KEY_DAILY_DIGEST_TIME = "notification_daily_digest_time"

NOTIFICATION_KEYS = (
    KEY_TASK_REMINDERS,
    KEY_OVERDUE_ALERTS,
    KEY_DAILY_DIGEST,
    KEY_REMINDER_TIMING,
    KEY_QUIET_HOURS_ENABLED,
    KEY_QUIET_HOURS_START,
    KEY_QUIET_HOURS_END,
    KEY_DAILY_DIGEST_TIME,
)

_HHMM = re.compile(r"^([01]?\d|2[0-3]):([0-5]\d)$")
_TRUE_VALUES = ("true", "1", "yes", "on")
_FALSE_VALUES = ("false", "0", "no", "off")


@dataclass(frozen=True)
class NotificationSettings:
    task_reminders_enabled: bool = True
    overdue_alerts_enabled: bool = True
    daily_digest_enabled: bool = False
    reminder_timing_hours: int = 24
    quiet_hours_enabled: bool = False
    quiet_hours_start: str = "22:00"
    quiet_hours_end: str = "08:00"
    daily_digest_time: str = "08:00"

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


DEFAULTS = NotificationSettings()


def _flag(raw: Optional[str], default: bool) -> bool:
    """Toggles that default on stay on unless explicitly false, and vice versa."""
    if raw is None:
        return default
    value = raw.strip().strip('"').lower()
    if default:
        return value not in _FALSE_VALUES
    return value in _TRUE_VALUES


def _hours(raw: Optional[str], default: int) -> int:
    if raw is None:
        return default
    try:
        hours = int(str(raw).strip().strip('"'))
    except ValueError:
        logger.warning("Invalid %s value %r, using %d", KEY_REMINDER_TIMING, raw, default)
        return default
    if hours <= 0:
        logger.warning("Non-positive %s value %r, using %d", KEY_REMINDER_TIMING, raw, default)
        return default
    return hours


def _clock(key: str, raw: Optional[str], default: str) -> str:
    if raw is None:
        return default
    value = raw.strip().strip('"')
    match = _HHMM.match(value)
    if not match:
        logger.warning("Invalid %s value %r, using %s", key, raw, default)
        return default
    return f"{int(match.group(1)):02d}:{match.group(2)}"


def resolve_settings(raw: Dict[str, str]) -> NotificationSettings:
    """Build typed settings from raw config rows, applying per-key defaults."""
    return NotificationSettings(
        task_reminders_enabled=_flag(raw.get(KEY_TASK_REMINDERS), DEFAULTS.task_reminders_enabled),
        overdue_alerts_enabled=_flag(raw.get(KEY_OVERDUE_ALERTS), DEFAULTS.overdue_alerts_enabled),
        daily_digest_enabled=_flag(raw.get(KEY_DAILY_DIGEST), DEFAULTS.daily_digest_enabled),
        reminder_timing_hours=_hours(raw.get(KEY_REMINDER_TIMING), DEFAULTS.reminder_timing_hours),
        quiet_hours_enabled=_flag(raw.get(KEY_QUIET_HOURS_ENABLED), DEFAULTS.quiet_hours_enabled),
        quiet_hours_start=_clock(KEY_QUIET_HOURS_START, raw.get(KEY_QUIET_HOURS_START), DEFAULTS.quiet_hours_start),
        quiet_hours_end=_clock(KEY_QUIET_HOURS_END, raw.get(KEY_QUIET_HOURS_END), DEFAULTS.quiet_hours_end),
        daily_digest_time=_clock(KEY_DAILY_DIGEST_TIME, raw.get(KEY_DAILY_DIGEST_TIME), DEFAULTS.daily_digest_time),
    )


async def load_notification_settings() -> NotificationSettings:
    try:
        raw = await crud.get_config_values(NOTIFICATION_KEYS)
    except Exception as e:
        logger.error("Error reading notification settings, using defaults: %s", e)
        return DEFAULTS
    return resolve_settings(raw)


def encode_config_value(value: Any) -> str:
    """Strings are stored as-is; anything else is JSON-encoded."""
    return value if isinstance(value, str) else json.dumps(value)


def decode_config_value(value: str) -> Any:
    try:
        return json.loads(value)
    except (TypeError, ValueError):
        return value
