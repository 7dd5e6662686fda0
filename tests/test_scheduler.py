"""
Tests for the notification scheduler tick
"""
import asyncio
import pytest
from datetime import date, datetime, timedelta, timezone
from chief_of_staff import crud
from chief_of_staff.features import notifications
from chief_of_staff.features.notifications import scheduler as scheduler_module
from chief_of_staff.features.notifications.scheduler import JOB_ID, NotificationScheduler
from chief_of_staff.services.settings_service import NotificationSettings

DAY = date(2026, 10, 18)


def at(hour, minute, day=DAY):
    return datetime(day.year, day.month, day.day, hour, minute, tzinfo=timezone.utc)


@pytest.mark.asyncio
async def test_morning_tick_end_to_end(subscribe_devices, fake_webpush):
    await crud.set_config_values({
        "notification_daily_digest": "true",
        "notification_daily_digest_time": "08:00",
        "notification_reminder_timing": "1",
    })
    await crud.create_commitment("Prepare offsite agenda", deadline=at(18, 0))
    await crud.create_commitment("Sign contract", deadline=at(21, 0))
    await crud.create_commitment("Reply to investor", deadline=at(9, 0, day=DAY - timedelta(days=1)))
    endpoints = await subscribe_devices(5)
    fake_webpush.failures[endpoints[2]] = 410

    scheduler = NotificationScheduler(tz_name="UTC")
    assert await scheduler.run_checks(at(8, 3)) is True

    assert not [p for p in fake_webpush.payloads() if p["tag"].startswith("task-")]
    overdue = fake_webpush.payloads("overdue-tasks")
    assert overdue and overdue[0]["body"] == "You have 1 overdue task"

    digests = fake_webpush.payloads("daily-digest")
    assert len(digests) == 4
    assert {d["body"] for d in digests} == {"📅 2 tasks due today • ⚠️ 1 overdue"}
    assert endpoints[2] not in [s.endpoint for s in await crud.list_subscriptions()]
    assert scheduler.state.last_daily_digest_date == DAY

    await scheduler.run_checks(at(8, 10))
    assert len(fake_webpush.payloads("daily-digest")) == 4


@pytest.mark.asyncio
async def test_reminders_sent_for_tasks_inside_horizon(subscribe_devices, fake_webpush):
    now = at(12, 0)
    inside = await crud.create_commitment("Draft memo", deadline=now + timedelta(hours=23), task_type="action")
    await crud.create_commitment("Next week", deadline=now + timedelta(hours=25))
    await crud.create_commitment("Missed", deadline=now - timedelta(hours=1))
    await subscribe_devices(1)

    scheduler = NotificationScheduler()
    reminded = await scheduler.check_task_reminders(NotificationSettings(), now)

    assert reminded == 1
    reminder = fake_webpush.payloads(f"task-{inside.id}")[0]
    assert reminder["title"] == "📋 Task Reminder: action"
    assert reminder["body"] == "Draft memo"


@pytest.mark.asyncio
async def test_quiet_hours_suppress_reminders_and_overdue_but_not_digest(subscribe_devices, fake_webpush):
    await crud.create_commitment("Due soon", deadline=at(23, 0))
    await crud.create_commitment("Late", deadline=at(1, 0))
    await subscribe_devices(1)
    await crud.set_config_values({
        "notification_quiet_hours_enabled": "true",
        "notification_quiet_hours_start": "22:00",
        "notification_quiet_hours_end": "08:00",
        "notification_daily_digest": "true",
        "notification_daily_digest_time": "07:50",
    })

    await NotificationScheduler().run_checks(at(7, 55))

    assert [p["tag"] for p in fake_webpush.payloads()] == ["daily-digest"]


@pytest.mark.asyncio
async def test_disabled_toggles_skip_checks(subscribe_devices, fake_webpush):
    await crud.create_commitment("Due soon", deadline=at(13, 0))
    await crud.create_commitment("Late", deadline=at(1, 0))
    await subscribe_devices(1)
    await crud.set_config_values({
        "notification_task_reminders": "false",
        "notification_overdue_alerts": "false",
    })

    await NotificationScheduler().run_checks(at(12, 0))

    assert fake_webpush.calls == []


@pytest.mark.asyncio
async def test_failing_check_does_not_stop_the_others(subscribe_devices, fake_webpush, monkeypatch):
    await crud.create_commitment("Late", deadline=at(1, 0))
    await crud.set_config_values({"notification_daily_digest": "true"})
    await subscribe_devices(1)

    async def broken(*args, **kwargs):
        raise RuntimeError("query failed")

    monkeypatch.setattr(crud, "find_tasks_due_between", broken)
    monkeypatch.setattr(crud, "find_tasks_due_on_date", broken)

    scheduler = NotificationScheduler()
    assert await scheduler.run_checks(at(8, 0)) is True

    # reminders and digest failed, overdue still went out
    assert [p["tag"] for p in fake_webpush.payloads()] == ["overdue-tasks"]
    assert scheduler.state.last_daily_digest_date is None


@pytest.mark.asyncio
async def test_digest_not_recorded_when_nothing_delivered(clean_db, fake_webpush):
    await crud.set_config_values({"notification_daily_digest": "true"})

    scheduler = NotificationScheduler()
    settings = NotificationSettings(daily_digest_enabled=True)
    assert await scheduler.send_daily_digest(settings, at(8, 0)) is False
    assert scheduler.state.last_daily_digest_date is None


@pytest.mark.asyncio
async def test_overlapping_tick_is_skipped(clean_db, monkeypatch):
    gate = asyncio.Event()

    async def slow_settings():
        await gate.wait()
        return NotificationSettings(task_reminders_enabled=False, overdue_alerts_enabled=False)

    monkeypatch.setattr(scheduler_module, "load_notification_settings", slow_settings)
    scheduler = NotificationScheduler()

    first = asyncio.create_task(scheduler.run_checks(at(12, 0)))
    await asyncio.sleep(0)
    assert await scheduler.run_checks(at(12, 0)) is False

    gate.set()
    assert await first is True


@pytest.mark.asyncio
async def test_localizes_now_to_configured_zone(clean_db, monkeypatch):
    seen = []

    async def record(self, settings, now):
        seen.append(now)
        return 0

    monkeypatch.setattr(NotificationScheduler, "check_overdue_tasks", record)
    scheduler = NotificationScheduler(tz_name="Europe/Berlin")
    await scheduler.run_checks(at(6, 30))

    assert seen[0].hour == 8
    assert seen[0].utcoffset() == timedelta(hours=2)


@pytest.mark.asyncio
async def test_scheduler_job_lifecycle():
    scheduler = NotificationScheduler(interval_minutes=15, initial_delay_seconds=5)
    scheduler.start()
    try:
        assert scheduler.running
        job = scheduler._scheduler.get_job(JOB_ID)
        assert job.trigger.interval == timedelta(minutes=15)
        assert job.max_instances == 1
        assert scheduler.now() < job.next_run_time <= scheduler.now() + timedelta(seconds=5)
    finally:
        scheduler.stop()
    assert not scheduler.running


@pytest.mark.asyncio
async def test_module_entry_points():
    assert not notifications.is_scheduler_running()
    started = await notifications.start_scheduler()
    try:
        assert notifications.is_scheduler_running()
        assert notifications.get_scheduler() is started
        assert await notifications.start_scheduler() is started
    finally:
        await notifications.stop_scheduler()
    assert not notifications.is_scheduler_running()
    assert notifications.get_scheduler() is None
