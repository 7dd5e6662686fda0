import pytest
from datetime import date, datetime, timedelta, timezone
from chief_of_staff import crud

NOW = datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)


async def _seed():
    soon = await crud.create_commitment("Send board deck", deadline=NOW + timedelta(hours=23))
    later = await crud.create_commitment("Quarterly review", deadline=NOW + timedelta(hours=25))
    past = await crud.create_commitment("Reply to legal", deadline=NOW - timedelta(hours=1))
    sooner = await crud.create_commitment("Book flights", deadline=NOW + timedelta(hours=2))
    done = await crud.create_commitment("Already handled", deadline=NOW + timedelta(hours=3))
    await crud.complete_commitment(done.id)
    undated = await crud.create_commitment("Someday idea")
    return soon, later, past, sooner, done, undated


@pytest.mark.asyncio
async def test_due_between_is_inclusive_ordered_and_skips_completed(clean_db):
    soon, later, past, sooner, done, undated = await _seed()

    tasks = await crud.find_tasks_due_between(NOW, NOW + timedelta(hours=24))

    assert [t.id for t in tasks] == [sooner.id, soon.id]


@pytest.mark.asyncio
async def test_count_overdue_uses_strict_bound(clean_db):
    await _seed()
    assert await crud.count_overdue(NOW) == 1
    # deadline exactly at now is not overdue yet
    await crud.create_commitment("Right now", deadline=NOW)
    assert await crud.count_overdue(NOW) == 1


@pytest.mark.asyncio
async def test_due_on_date_covers_whole_local_day(clean_db):
    await crud.create_commitment("Early", deadline=datetime(2026, 10, 18, 0, 0, tzinfo=timezone.utc))
    await crud.create_commitment("Late", deadline=datetime(2026, 10, 18, 23, 59, tzinfo=timezone.utc))
    await crud.create_commitment("Tomorrow", deadline=datetime(2026, 10, 19, 0, 0, tzinfo=timezone.utc))

    tasks = await crud.find_tasks_due_on_date(date(2026, 10, 18), "UTC")
    assert [t.description for t in tasks] == ["Early", "Late"]


@pytest.mark.asyncio
async def test_due_on_date_respects_timezone(clean_db):
    # 23:30 UTC on the 18th is already the 19th in Berlin
    await crud.create_commitment("Late call", deadline=datetime(2026, 10, 18, 23, 30, tzinfo=timezone.utc))

    assert await crud.find_tasks_due_on_date(date(2026, 10, 19), "Europe/Berlin")
    assert not await crud.find_tasks_due_on_date(date(2026, 10, 18), "Europe/Berlin")


@pytest.mark.asyncio
async def test_count_pending_includes_undated(clean_db):
    await _seed()
    assert await crud.count_pending() == 5


@pytest.mark.asyncio
async def test_deadlines_are_stored_in_utc(clean_db):
    from zoneinfo import ZoneInfo

    local = datetime(2026, 10, 18, 9, 0, tzinfo=ZoneInfo("America/New_York"))
    created = await crud.create_commitment("Standup notes", deadline=local)

    tasks = await crud.find_tasks_due_between(
        datetime(2026, 10, 18, 13, 0, tzinfo=timezone.utc),
        datetime(2026, 10, 18, 13, 0, tzinfo=timezone.utc),
    )
    assert [t.id for t in tasks] == [created.id]


@pytest.mark.asyncio
async def test_loaded_timestamps_are_aware_utc(clean_db):
    await crud.create_commitment("Ship release", deadline=datetime(2026, 10, 18, 15, 0))

    task = (await crud.get_commitments())[0]
    assert task.deadline == datetime(2026, 10, 18, 15, 0, tzinfo=timezone.utc)
    assert task.deadline.utcoffset() == timedelta(0)
    assert task.created_date.tzinfo is not None
