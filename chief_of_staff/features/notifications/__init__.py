"""
Notification feature module: push reminders, overdue alerts and the daily digest
"""
from .scheduler import (
    NotificationScheduler,
    get_scheduler,
    is_scheduler_running,
    start_scheduler,
    stop_scheduler,
)

__all__ = [
    "NotificationScheduler",
    "get_scheduler",
    "is_scheduler_running",
    "start_scheduler",
    "stop_scheduler",
]
