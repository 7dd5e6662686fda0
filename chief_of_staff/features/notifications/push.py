"""
Web push dispatcher: fan-out to every registered browser subscription.
"""
import asyncio
import json
import logging
from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

from pywebpush import WebPushException, webpush

from chief_of_staff import crud
from chief_of_staff.config import get_settings
from chief_of_staff.services.common import plural, to_utc, truncate

logger = logging.getLogger("push")

# Push services answer 404/410 for subscriptions that will never work again
GONE_STATUSES = (404, 410)

ICON = "/icon-192.png"
REMINDER_BODY_LIMIT = 100
DIGEST_BODY_LIMIT = 110


@dataclass
class SendResult:
    sent: int = 0
    failed: int = 0

    def as_dict(self) -> Dict[str, int]:
        return asdict(self)


def is_configured() -> bool:
    settings = get_settings()
    return bool(settings.vapid_public_key and settings.vapid_private_key)


def get_public_key() -> str:
    return get_settings().vapid_public_key or ""


def log_configuration() -> None:
    if is_configured():
        logger.info("Push notifications configured")
    else:
        logger.warning("VAPID keys not configured - push deliveries will be rejected by push services")
        logger.warning("Generate keys with: vapid --gen")


async def subscribe(subscription: Dict[str, Any], user_id: str = "default"):
    return await crud.upsert_subscription(
        subscription["endpoint"],
        json.dumps(subscription.get("keys") or {}),
        user_id=user_id,
    )


async def unsubscribe(endpoint: str) -> bool:
    return await crud.delete_subscription(endpoint)


def _webpush_kwargs() -> Dict[str, Any]:
    settings = get_settings()
    kwargs: Dict[str, Any] = {"ttl": settings.push_ttl_seconds}
    if settings.vapid_private_key:
        kwargs["vapid_private_key"] = settings.vapid_private_key
        # pywebpush fills in aud/exp on this dict, so build a fresh one per call
        kwargs["vapid_claims"] = {"sub": settings.vapid_subject}
    return kwargs


async def _deliver(subscription, body: str) -> bool:
    try:
        subscription_info = {"endpoint": subscription.endpoint, "keys": json.loads(subscription.keys)}
        await asyncio.to_thread(webpush, subscription_info=subscription_info, data=body, **_webpush_kwargs())
        return True
    except WebPushException as e:
        status = e.response.status_code if e.response is not None else None
        logger.warning("Failed to send to %s (status=%s): %s", subscription.endpoint, status, e)
        if status in GONE_STATUSES:
            try:
                await unsubscribe(subscription.endpoint)
            except Exception as prune_error:
                logger.error("Could not remove dead subscription %s: %s", subscription.endpoint, prune_error)
        return False
    except Exception as e:
        logger.warning("Failed to send to %s: %s", subscription.endpoint, e)
        return False


async def send_to_all(payload: Dict[str, Any]) -> SendResult:
    """Deliver `payload` to every subscription; a failed device never aborts the batch.

    Raises only when the subscription list itself cannot be loaded.
    """
    subscriptions = await crud.list_subscriptions()
    if not subscriptions:
        logger.info("No push subscriptions found")
        return SendResult()

    logger.info("Sending push notification to %d devices", len(subscriptions))
    body = json.dumps(payload)
    results = await asyncio.gather(
        *(_deliver(sub, body) for sub in subscriptions),
        return_exceptions=True,
    )

    sent = sum(1 for r in results if r is True)
    result = SendResult(sent=sent, failed=len(results) - sent)
    logger.info("Push notifications sent: %d succeeded, %d failed", result.sent, result.failed)
    return result


# --- Payload builders --------------------------------------------------------

def build_task_reminder_payload(task) -> Dict[str, Any]:
    deadline = to_utc(task.deadline).isoformat() if task.deadline else None
    return {
        "title": f"📋 Task Reminder: {task.task_type or 'Task'}",
        "body": truncate(task.description, REMINDER_BODY_LIMIT),
        "icon": ICON,
        "badge": ICON,
        "tag": f"task-{task.id}",
        "data": {
            "taskId": task.id,
            "deadline": deadline,
            "url": "/#commitments",
        },
        "actions": [
            {"action": "view", "title": "View Task"},
            {"action": "complete", "title": "Mark Complete"},
        ],
    }


def build_overdue_payload(count: int) -> Dict[str, Any]:
    return {
        "title": "⚠️ Overdue Tasks",
        "body": f"You have {plural(count, 'overdue task')}",
        "icon": ICON,
        "badge": ICON,
        "tag": "overdue-tasks",
        "data": {"url": "/#commitments"},
        "actions": [{"action": "view", "title": "View Tasks"}],
    }


def build_digest_body(due_today: int, overdue: int, pending: int) -> str:
    parts = []
    if due_today > 0:
        parts.append(f"📅 {plural(due_today, 'task')} due today")
    if overdue > 0:
        parts.append(f"⚠️ {overdue} overdue")
    body = " • ".join(parts)
    if not body and pending > 0:
        body = f"📋 {plural(pending, 'pending task')}"
    if not body:
        body = "✨ No tasks for today!"
    return truncate(body, DIGEST_BODY_LIMIT)


def build_digest_payload(due_today: int, overdue: int, pending: int) -> Dict[str, Any]:
    return {
        "title": "📰 Daily Digest",
        "body": build_digest_body(due_today, overdue, pending),
        "icon": ICON,
        "badge": ICON,
        "tag": "daily-digest",
        "data": {"url": "/#tasks", "notificationTag": "daily-digest"},
    }


def build_test_payload(message: Optional[str] = None) -> Dict[str, Any]:
    return {
        "title": "🔔 Test Notification",
        "body": truncate(message or "Push notifications are working!", REMINDER_BODY_LIMIT),
        "icon": ICON,
        "badge": ICON,
        "tag": "test-notification",
        "data": {"url": "/"},
    }


async def send_task_reminder(task) -> SendResult:
    return await send_to_all(build_task_reminder_payload(task))


async def send_overdue_notification(count: int) -> SendResult:
    return await send_to_all(build_overdue_payload(count))


async def send_daily_digest(due_today: int, overdue: int, pending: int) -> SendResult:
    return await send_to_all(build_digest_payload(due_today, overdue, pending))


async def send_test_notification(message: Optional[str] = None) -> SendResult:
    return await send_to_all(build_test_payload(message))
