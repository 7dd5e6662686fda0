"""
Notification Scheduler: periodic task reminders, overdue alerts and the daily digest
"""
import asyncio
import logging
from datetime import datetime, timedelta
from typing import Optional
from zoneinfo import ZoneInfo

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from chief_of_staff import crud
from chief_of_staff.config import get_settings
from chief_of_staff.features.notifications import push
from chief_of_staff.features.notifications.time_windows import (
    DIGEST_WINDOW_MINUTES,
    SchedulerState,
    is_quiet_hours,
    is_within_reminder_window,
    record_daily_digest,
    reminder_window_end,
    should_fire_daily_digest,
)
from chief_of_staff.services.settings_service import NotificationSettings, load_notification_settings

logger = logging.getLogger("scheduler")

JOB_ID = "notification_checks"


class NotificationScheduler:
    """Owns the polling job and the process-local digest marker.

    Ticks never overlap: a tick that starts while the previous one is still
    running is skipped rather than queued.
    """

    def __init__(
        self,
        interval_minutes: int = 15,
        initial_delay_seconds: int = 5,
        tz_name: str = "UTC",
        digest_window_minutes: int = DIGEST_WINDOW_MINUTES,
    ):
        self.interval_minutes = interval_minutes
        self.initial_delay_seconds = initial_delay_seconds
        self.tz = ZoneInfo(tz_name)
        self.tz_name = tz_name
        self.digest_window_minutes = digest_window_minutes
        self.state = SchedulerState()
        self._lock = asyncio.Lock()
        self._scheduler: Optional[AsyncIOScheduler] = None

    @classmethod
    def from_settings(cls) -> "NotificationScheduler":
        settings = get_settings()
        return cls(
            interval_minutes=settings.scheduler_interval_minutes,
            initial_delay_seconds=settings.scheduler_initial_delay_seconds,
            tz_name=settings.scheduler_timezone,
            digest_window_minutes=settings.digest_window_minutes,
        )

    def now(self) -> datetime:
        return datetime.now(self.tz)

    def _localize(self, now: Optional[datetime]) -> datetime:
        if now is None:
            return self.now()
        if now.tzinfo is None:
            return now.replace(tzinfo=self.tz)
        return now.astimezone(self.tz)

    # --- Checks --------------------------------------------------------------

    async def check_task_reminders(self, settings: NotificationSettings, now: datetime) -> int:
        """Send one reminder per open task whose deadline falls inside the horizon."""
        try:
            if is_quiet_hours(settings, now):
                logger.debug("In quiet hours, skipping task reminders")
                return 0
            if not settings.task_reminders_enabled:
                logger.debug("Task reminders disabled, skipping")
                return 0

            hours = settings.reminder_timing_hours
            tasks = await crud.find_tasks_due_between(now, reminder_window_end(now, hours))
            tasks = [t for t in tasks if is_within_reminder_window(t.deadline, now, hours, t.status)]
            if not tasks:
                logger.debug("No upcoming task reminders")
                return 0

            logger.info("Found %d tasks due within %d hours", len(tasks), hours)
            reminded = 0
            for task in tasks:
                try:
                    await push.send_task_reminder(task)
                    reminded += 1
                    logger.info("Sent reminder for task %s: %s", task.id, task.description[:50])
                except Exception as e:
                    logger.error("Failed to send reminder for task %s: %s", task.id, e)
            return reminded
        except Exception as e:
            logger.error("Error checking task reminders: %s", e)
            return 0

    async def check_overdue_tasks(self, settings: NotificationSettings, now: datetime) -> int:
        """Send a single summary notification when anything is overdue."""
        try:
            if is_quiet_hours(settings, now):
                logger.debug("In quiet hours, skipping overdue check")
                return 0
            if not settings.overdue_alerts_enabled:
                logger.debug("Overdue alerts disabled, skipping")
                return 0

            count = await crud.count_overdue(now)
            if count > 0:
                logger.info("Found %d overdue tasks", count)
                await push.send_overdue_notification(count)
            return count
        except Exception as e:
            logger.error("Error checking overdue tasks: %s", e)
            return 0

    async def send_daily_digest(self, settings: NotificationSettings, now: datetime) -> bool:
        try:
            if not should_fire_daily_digest(settings, now, self.state, self.digest_window_minutes):
                return False

            today = now.date()
            due_today = await crud.find_tasks_due_on_date(today, self.tz_name)
            overdue = await crud.count_overdue(now)
            pending = await crud.count_pending()

            result = await push.send_daily_digest(len(due_today), overdue, pending)
            if result.sent == 0:
                logger.warning("Daily digest reached no devices, will retry on the next tick")
                return False

            self.state = record_daily_digest(self.state, today)
            logger.info(
                "Daily digest sent for %s (due today=%d, overdue=%d, pending=%d)",
                today,
                len(due_today),
                overdue,
                pending,
            )
            return True
        except Exception as e:
            logger.error("Error sending daily digest: %s", e)
            return False

    # --- Tick ----------------------------------------------------------------

    async def run_checks(self, now: Optional[datetime] = None) -> bool:
        """Run reminders, overdue and digest checks once. Returns False if the tick was skipped."""
        if self._lock.locked():
            logger.warning("Previous notification check still running, skipping this tick")
            return False

        async with self._lock:
            now = self._localize(now)
            settings = await load_notification_settings()
            await self.check_task_reminders(settings, now)
            await self.check_overdue_tasks(settings, now)
            await self.send_daily_digest(settings, now)
        return True

    # --- Lifecycle -----------------------------------------------------------

    def start(self) -> None:
        if self._scheduler is not None:
            logger.warning("Scheduler already running")
            return

        self._scheduler = AsyncIOScheduler(timezone=self.tz)
        self._scheduler.add_job(
            self.run_checks,
            trigger=IntervalTrigger(minutes=self.interval_minutes, timezone=self.tz),
            # First tick shortly after startup so the app can finish initializing
            next_run_time=self.now() + timedelta(seconds=self.initial_delay_seconds),
            id=JOB_ID,
            name="Task reminders, overdue alerts and daily digest",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        self._scheduler.start()
        logger.info("Task scheduler started (checking every %d minutes)", self.interval_minutes)

    def stop(self) -> None:
        if self._scheduler is None:
            logger.warning("Scheduler not running")
            return
        self._scheduler.shutdown(wait=False)
        self._scheduler = None
        logger.info("Task scheduler stopped")

    @property
    def running(self) -> bool:
        return self._scheduler is not None and self._scheduler.running


# Process-wide instance driven by the app lifespan
_scheduler: Optional[NotificationScheduler] = None


def get_scheduler() -> Optional[NotificationScheduler]:
    return _scheduler


async def start_scheduler() -> NotificationScheduler:
    """Start the background notification scheduler (once per process)."""
    global _scheduler

    if _scheduler is not None:
        logger.warning("Scheduler already running")
        return _scheduler

    push.log_configuration()
    _scheduler = NotificationScheduler.from_settings()
    _scheduler.start()
    return _scheduler


async def stop_scheduler():
    global _scheduler

    if _scheduler is None:
        logger.warning("Scheduler not running")
        return

    _scheduler.stop()
    _scheduler = None


def is_scheduler_running() -> bool:
    return _scheduler is not None and _scheduler.running
