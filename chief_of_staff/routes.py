import logging
from typing import Any, Dict, Optional
from fastapi import APIRouter, HTTPException
from chief_of_staff import crud, schemas
from chief_of_staff.config import get_settings
from chief_of_staff.features.notifications import push, get_scheduler
from chief_of_staff.services import settings_service, task_service

logger = logging.getLogger("routes")
router = APIRouter(tags=["Core"])


# ---------------------------------------------------------------------------
# Commitments
# ---------------------------------------------------------------------------

@router.get("/commitments", response_model=schemas.CommitmentList)
async def get_commitments(status: Optional[schemas.CommitmentStatus] = None):
    commitments = await task_service.list_commitments(status.value if status else None)
    return {"count": len(commitments), "commitments": commitments}


@router.post("/commitments", response_model=schemas.CommitmentOut, status_code=201)
async def post_commitment(body: schemas.CommitmentCreate):
    try:
        return await task_service.create_commitment(
            body.description,
            deadline=body.deadline,
            assignee=body.assignee,
            task_type=body.task_type,
            transcript_id=body.transcript_id,
        )
    except task_service.InvalidDeadline as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/commitments/{commitment_id}/complete", response_model=schemas.CommitmentOut)
async def post_complete_commitment(commitment_id: int, body: Optional[schemas.CommitmentComplete] = None):
    note = body.completion_note if body else None
    commitment = await task_service.complete_commitment(commitment_id, note)
    if commitment is None:
        raise HTTPException(status_code=404, detail="Commitment not found")
    return commitment


@router.delete("/commitments/{commitment_id}", response_model=schemas.MessageOut)
async def delete_commitment(commitment_id: int):
    if not await task_service.delete_commitment(commitment_id):
        raise HTTPException(status_code=404, detail="Commitment not found")
    return {"message": "Commitment deleted"}


# ---------------------------------------------------------------------------
# Configuration (key/value rows read by the scheduler on every tick)
# ---------------------------------------------------------------------------

@router.get("/config")
async def get_config() -> Dict[str, Any]:
    entries = await crud.get_all_config()
    return {e.key: settings_service.decode_config_value(e.value) for e in entries}


@router.post("/config", response_model=schemas.MessageOut)
async def post_config(body: schemas.ConfigUpdate):
    logger.info("Updating config key: %s", body.key)
    await crud.set_config_value(body.key, settings_service.encode_config_value(body.value))
    return {"message": "Configuration updated successfully", "details": {"key": body.key, "value": body.value}}


@router.put("/config", response_model=schemas.MessageOut)
async def put_config(body: Dict[str, Any]):
    if not body:
        raise HTTPException(status_code=400, detail="Configuration object required")
    count = await crud.set_config_values(
        {key: settings_service.encode_config_value(value) for key, value in body.items()}
    )
    return {"message": "Configuration updated successfully", "details": {"count": count}}


@router.get("/config/{key}", response_model=schemas.ConfigValue)
async def get_config_key(key: str):
    value = await crud.get_config_value(key)
    if value is None:
        raise HTTPException(status_code=404, detail="Configuration key not found")
    return {"key": key, "value": settings_service.decode_config_value(value)}


# ---------------------------------------------------------------------------
# Notifications
# ---------------------------------------------------------------------------

@router.get("/notifications/settings", response_model=schemas.NotificationSettingsOut)
async def get_notification_settings():
    settings = await settings_service.load_notification_settings()
    return settings.as_dict()


@router.get("/notifications/vapid-public-key")
async def get_vapid_public_key():
    key = push.get_public_key()
    if not key:
        raise HTTPException(status_code=503, detail="Push notifications are not configured")
    return {"publicKey": key}


@router.post("/notifications/subscribe", response_model=schemas.MessageOut, status_code=201)
async def post_subscribe(body: schemas.PushSubscriptionIn):
    await push.subscribe(body.model_dump(exclude={"user_id"}), user_id=body.user_id)
    return {"message": "Subscribed to push notifications"}


@router.post("/notifications/unsubscribe", response_model=schemas.MessageOut)
async def post_unsubscribe(body: schemas.UnsubscribeIn):
    removed = await push.unsubscribe(body.endpoint)
    return {"message": "Unsubscribed" if removed else "Subscription not found"}


@router.post("/notifications/test", response_model=schemas.SendResultOut)
async def post_test_notification():
    result = await push.send_test_notification()
    return result.as_dict()


@router.get("/notifications/scheduler", response_model=schemas.SchedulerStatusOut)
async def get_scheduler_status():
    scheduler = get_scheduler()
    return {
        "running": bool(scheduler and scheduler.running),
        "interval_minutes": scheduler.interval_minutes if scheduler else get_settings().scheduler_interval_minutes,
        "last_daily_digest_date": scheduler.state.last_daily_digest_date if scheduler else None,
    }
