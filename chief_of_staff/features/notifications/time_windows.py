"""
Time-window gates for the notification scheduler.

Everything here is a pure function of settings, the scheduler state and an
explicit `now`, so the rules can be tested at any wall-clock time.
"""
from dataclasses import dataclass, replace
from datetime import date, datetime, timedelta
from typing import Optional

from chief_of_staff.services.common import to_utc
from chief_of_staff.services.settings_service import NotificationSettings

DIGEST_WINDOW_MINUTES = 15


@dataclass(frozen=True)
class SchedulerState:
    last_daily_digest_date: Optional[date] = None


def parse_hhmm(value: str) -> int:
    """'22:30' -> 1350 minutes past midnight."""
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def minutes_of_day(now: datetime) -> int:
    return now.hour * 60 + now.minute


def is_quiet_hours(settings: NotificationSettings, now: datetime) -> bool:
    if not settings.quiet_hours_enabled:
        return False

    current = minutes_of_day(now)
    start = parse_hhmm(settings.quiet_hours_start)
    end = parse_hhmm(settings.quiet_hours_end)

    # Overnight window, e.g. 22:00 to 08:00
    if start > end:
        return current >= start or current < end
    return start <= current < end


def should_fire_daily_digest(
    settings: NotificationSettings,
    now: datetime,
    state: SchedulerState,
    window_minutes: int = DIGEST_WINDOW_MINUTES,
) -> bool:
    if not settings.daily_digest_enabled:
        return False
    if abs(minutes_of_day(now) - parse_hhmm(settings.daily_digest_time)) > window_minutes:
        return False
    return state.last_daily_digest_date != now.date()


def record_daily_digest(state: SchedulerState, today: date) -> SchedulerState:
    return replace(state, last_daily_digest_date=today)


def reminder_window_end(now: datetime, reminder_hours: int) -> datetime:
    return now + timedelta(hours=reminder_hours)


def is_within_reminder_window(
    deadline: Optional[datetime],
    now: datetime,
    reminder_hours: int,
    status: str = "pending",
) -> bool:
    if deadline is None or status == "completed":
        return False
    deadline = to_utc(deadline)
    now = to_utc(now)
    return now <= deadline <= reminder_window_end(now, reminder_hours)
