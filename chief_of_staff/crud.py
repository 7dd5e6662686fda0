import logging
from datetime import date, datetime, time, timezone
from typing import Dict, Iterable, List, Optional
from zoneinfo import ZoneInfo
from sqlalchemy import select, func, delete
from chief_of_staff.database import AsyncSessionLocal
from chief_of_staff.models import models as db
from chief_of_staff.services.common import to_utc

logger = logging.getLogger("crud")


# --- Generic DB helpers ------------------------------------------------------

async def _get_or_none(session, model, id_):
    obj = await session.get(model, id_)
    if not obj:
        logger.warning("%s with id=%s not found.", model.__name__, id_)
    return obj


async def _commit_refresh(session, obj):
    await session.commit()
    await session.refresh(obj)
    return obj


# --- Commitment Operations ---------------------------------------------------

async def create_commitment(
    description: str,
    deadline: Optional[datetime] = None,
    assignee: Optional[str] = None,
    task_type: Optional[str] = None,
    transcript_id: Optional[int] = None,
) -> db.Commitment:
    async with AsyncSessionLocal() as dbs:
        commitment = db.Commitment(
            description=description,
            deadline=to_utc(deadline),
            assignee=assignee,
            task_type=task_type,
            transcript_id=transcript_id,
        )
        dbs.add(commitment)
        await _commit_refresh(dbs, commitment)
        logger.info("Created commitment %s (deadline=%s)", commitment.id, commitment.deadline)
        return commitment


async def get_commitments(status: Optional[str] = None) -> List[db.Commitment]:
    async with AsyncSessionLocal() as dbs:
        stmt = select(db.Commitment)
        if status:
            stmt = stmt.where(db.Commitment.status == status)
        # Undated commitments sort last
        stmt = stmt.order_by(db.Commitment.deadline.is_(None), db.Commitment.deadline, db.Commitment.id)
        result = await dbs.execute(stmt)
        commitments = list(result.scalars())
        logger.info("Fetched %d commitments (status=%s)", len(commitments), status)
        return commitments


async def complete_commitment(commitment_id: int, completion_note: Optional[str] = None) -> Optional[db.Commitment]:
    async with AsyncSessionLocal() as dbs:
        commitment = await _get_or_none(dbs, db.Commitment, commitment_id)
        if not commitment:
            return None
        commitment.status = "completed"
        commitment.completed_date = datetime.now(timezone.utc)
        if completion_note is not None:
            commitment.completion_note = completion_note
        await _commit_refresh(dbs, commitment)
        logger.info("Completed commitment %s", commitment.id)
        return commitment


async def delete_commitment(commitment_id: int) -> bool:
    async with AsyncSessionLocal() as dbs:
        commitment = await _get_or_none(dbs, db.Commitment, commitment_id)
        if not commitment:
            return False
        await dbs.delete(commitment)
        await dbs.commit()
        logger.info("Deleted commitment %s", commitment_id)
        return True


# --- Task Queries (read-only, used by the notification scheduler) ------------

async def find_tasks_due_between(
    start: datetime,
    end: datetime,
    exclude_status: str = "completed",
) -> List[db.Commitment]:
    """Commitments with start <= deadline <= end, soonest first."""
    async with AsyncSessionLocal() as dbs:
        stmt = (
            select(db.Commitment)
            .where(db.Commitment.deadline.isnot(None))
            .where(db.Commitment.deadline >= to_utc(start))
            .where(db.Commitment.deadline <= to_utc(end))
            .where(db.Commitment.status != exclude_status)
            .order_by(db.Commitment.deadline.asc())
        )
        result = await dbs.execute(stmt)
        return list(result.scalars())


async def count_overdue(now: datetime, exclude_status: str = "completed") -> int:
    """Count of commitments whose deadline is strictly before now."""
    async with AsyncSessionLocal() as dbs:
        stmt = (
            select(func.count(db.Commitment.id))
            .where(db.Commitment.deadline.isnot(None))
            .where(db.Commitment.deadline < to_utc(now))
            .where(db.Commitment.status != exclude_status)
        )
        return int((await dbs.execute(stmt)).scalar() or 0)


async def find_tasks_due_on_date(
    day: date,
    tz_name: str = "UTC",
    exclude_status: str = "completed",
) -> List[db.Commitment]:
    """Commitments due within the local calendar day `day` in zone `tz_name`."""
    tz = ZoneInfo(tz_name)
    start = datetime.combine(day, time.min, tzinfo=tz)
    end = datetime.combine(day, time.max, tzinfo=tz)
    return await find_tasks_due_between(start, end, exclude_status=exclude_status)


async def count_pending(exclude_status: str = "completed") -> int:
    async with AsyncSessionLocal() as dbs:
        stmt = select(func.count(db.Commitment.id)).where(db.Commitment.status != exclude_status)
        return int((await dbs.execute(stmt)).scalar() or 0)


# --- Config Operations -------------------------------------------------------

async def get_config_value(key: str) -> Optional[str]:
    async with AsyncSessionLocal() as dbs:
        entry = await dbs.get(db.ConfigEntry, key)
        return entry.value if entry else None


async def get_config_values(keys: Iterable[str]) -> Dict[str, str]:
    """Fetch several keys in one round trip; absent keys are omitted."""
    key_list = list(keys)
    async with AsyncSessionLocal() as dbs:
        result = await dbs.execute(select(db.ConfigEntry).where(db.ConfigEntry.key.in_(key_list)))
        return {entry.key: entry.value for entry in result.scalars()}


async def get_all_config() -> List[db.ConfigEntry]:
    async with AsyncSessionLocal() as dbs:
        result = await dbs.execute(select(db.ConfigEntry).order_by(db.ConfigEntry.key))
        entries = list(result.scalars())
        logger.info("Retrieved %d config keys", len(entries))
        return entries


async def set_config_values(values: Dict[str, str]) -> int:
    """Insert or replace each key; returns the number of keys written."""
    async with AsyncSessionLocal() as dbs:
        for key, value in values.items():
            entry = await dbs.get(db.ConfigEntry, key)
            if entry:
                entry.value = value
                entry.updated_date = datetime.now(timezone.utc)
            else:
                dbs.add(db.ConfigEntry(key=key, value=value))
        await dbs.commit()
        logger.info("Updated %d config key(s): %s", len(values), ", ".join(values))
        return len(values)


async def set_config_value(key: str, value: str) -> None:
    await set_config_values({key: value})


# --- Push Subscription Operations --------------------------------------------

async def upsert_subscription(endpoint: str, keys: str, user_id: str = "default") -> db.PushSubscription:
    """Create or replace the subscription registered for `endpoint`."""
    async with AsyncSessionLocal() as dbs:
        result = await dbs.execute(select(db.PushSubscription).where(db.PushSubscription.endpoint == endpoint))
        sub = result.scalar_one_or_none()
        if sub:
            sub.keys = keys
            sub.user_id = user_id
            sub.created_date = datetime.now(timezone.utc)
            logger.info("Refreshed push subscription for user %s", user_id)
        else:
            sub = db.PushSubscription(endpoint=endpoint, keys=keys, user_id=user_id)
            dbs.add(sub)
            logger.info("Saved push subscription for user %s", user_id)
        return await _commit_refresh(dbs, sub)


async def list_subscriptions() -> List[db.PushSubscription]:
    async with AsyncSessionLocal() as dbs:
        result = await dbs.execute(select(db.PushSubscription).order_by(db.PushSubscription.id))
        return list(result.scalars())


async def delete_subscription(endpoint: str) -> bool:
    async with AsyncSessionLocal() as dbs:
        result = await dbs.execute(delete(db.PushSubscription).where(db.PushSubscription.endpoint == endpoint))
        await dbs.commit()
        removed = (result.rowcount or 0) > 0
        if removed:
            logger.info("Removed push subscription %s", endpoint)
        return removed
