import pytest
from chief_of_staff import crud
from chief_of_staff.services import settings_service
from chief_of_staff.services.settings_service import NotificationSettings, resolve_settings


def test_absent_keys_use_defaults():
    settings = resolve_settings({})
    assert settings == NotificationSettings(
        task_reminders_enabled=True,
        overdue_alerts_enabled=True,
        daily_digest_enabled=False,
        reminder_timing_hours=24,
        quiet_hours_enabled=False,
        quiet_hours_start="22:00",
        quiet_hours_end="08:00",
        daily_digest_time="08:00",
    )


def test_toggles_follow_their_default_direction():
    settings = resolve_settings({
        "notification_task_reminders": "false",
        "notification_overdue_alerts": "anything",
        "notification_daily_digest": "true",
        "notification_quiet_hours_enabled": "yes",
    })
    assert settings.task_reminders_enabled is False
    assert settings.overdue_alerts_enabled is True
    assert settings.daily_digest_enabled is True
    assert settings.quiet_hours_enabled is True


def test_invalid_values_fall_back_per_key():
    settings = resolve_settings({
        "notification_reminder_timing": "soon",
        "notification_quiet_hours_start": "25:00",
        "notification_quiet_hours_end": "7:30",
        "notification_daily_digest_time": '"09:15"',
    })
    assert settings.reminder_timing_hours == 24
    assert settings.quiet_hours_start == "22:00"
    assert settings.quiet_hours_end == "07:30"
    assert settings.daily_digest_time == "09:15"


def test_non_positive_timing_is_rejected():
    assert resolve_settings({"notification_reminder_timing": "0"}).reminder_timing_hours == 24
    assert resolve_settings({"notification_reminder_timing": "2"}).reminder_timing_hours == 2


@pytest.mark.parametrize("value,encoded", [("22:00", "22:00"), (True, "true"), (48, "48")])
def test_config_value_encoding(value, encoded):
    assert settings_service.encode_config_value(value) == encoded


def test_config_value_decoding_keeps_plain_strings():
    assert settings_service.decode_config_value("true") is True
    assert settings_service.decode_config_value("22:00") == "22:00"


@pytest.mark.asyncio
async def test_load_reads_config_table(clean_db):
    await crud.set_config_values({
        "notification_daily_digest": "true",
        "notification_daily_digest_time": "07:30",
        "unrelated_key": "ignored",
    })
    settings = await settings_service.load_notification_settings()
    assert settings.daily_digest_enabled is True
    assert settings.daily_digest_time == "07:30"
    assert settings.task_reminders_enabled is True


@pytest.mark.asyncio
async def test_load_fails_open_when_store_unreachable(monkeypatch):
    async def broken(keys):
        raise RuntimeError("database is locked")

    monkeypatch.setattr(crud, "get_config_values", broken)
    settings = await settings_service.load_notification_settings()
    assert settings == settings_service.DEFAULTS
