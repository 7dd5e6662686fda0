from pydantic import BaseModel, Field
from typing import Any, Dict, Optional, List
from datetime import date, datetime
from enum import Enum


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class CommitmentStatus(str, Enum):
    pending = "pending"
    completed = "completed"


# ---------------------------------------------------------------------------
# Commitment Schemas
# ---------------------------------------------------------------------------
class CommitmentCreate(BaseModel):
    description: str = Field(..., min_length=1, description="What was committed to")
    deadline: Optional[str] = Field(
        None, description="Deadline as ISO timestamp or natural language (e.g. 'next friday 5pm')"
    )
    assignee: Optional[str] = Field(None, description="Who owns the commitment")
    task_type: Optional[str] = Field(None, description="Label shown in reminders (e.g. 'commitment', 'action')")
    transcript_id: Optional[int] = Field(None, description="Transcript the commitment was extracted from")


class CommitmentComplete(BaseModel):
    completion_note: Optional[str] = Field(None, description="Optional closing note")


class CommitmentOut(BaseModel):
    id: int = Field(..., description="Unique identifier for the commitment")
    description: str = Field(..., description="What was committed to")
    deadline: Optional[datetime] = Field(None, description="Deadline in UTC")
    assignee: Optional[str] = Field(None, description="Who owns the commitment")
    task_type: Optional[str] = Field(None, description="Task-type label")
    status: CommitmentStatus = Field(..., description="Current status")
    transcript_id: Optional[int] = Field(None, description="Source transcript")
    created_date: datetime = Field(..., description="When the commitment was recorded")
    completed_date: Optional[datetime] = Field(None, description="When it was marked complete")
    completion_note: Optional[str] = Field(None, description="Closing note")

    model_config = {"from_attributes": True}


# ---------------------------------------------------------------------------
# Configuration Schemas
# ---------------------------------------------------------------------------
class ConfigUpdate(BaseModel):
    key: str = Field(..., min_length=1, description="Configuration key")
    value: Any = Field(..., description="Value; non-strings are stored JSON-encoded")


class ConfigValue(BaseModel):
    key: str
    value: Any


class NotificationSettingsOut(BaseModel):
    task_reminders_enabled: bool
    overdue_alerts_enabled: bool
    daily_digest_enabled: bool
    reminder_timing_hours: int
    quiet_hours_enabled: bool
    quiet_hours_start: str
    quiet_hours_end: str
    daily_digest_time: str


# ---------------------------------------------------------------------------
# Push Schemas
# ---------------------------------------------------------------------------
class PushKeys(BaseModel):
    p256dh: str = Field(..., description="Client public key (base64url)")
    auth: str = Field(..., description="Client auth secret (base64url)")


class PushSubscriptionIn(BaseModel):
    endpoint: str = Field(..., min_length=1, description="Push service endpoint URL")
    keys: PushKeys
    user_id: str = Field("default", description="Owner of the subscription")


class UnsubscribeIn(BaseModel):
    endpoint: str = Field(..., min_length=1)


class SendResultOut(BaseModel):
    sent: int = Field(..., description="Deliveries accepted by the push service")
    failed: int = Field(..., description="Deliveries that failed")


class SchedulerStatusOut(BaseModel):
    running: bool
    interval_minutes: int
    last_daily_digest_date: Optional[date] = None


class MessageOut(BaseModel):
    message: str
    details: Optional[Dict[str, Any]] = None


class CommitmentList(BaseModel):
    count: int = Field(..., description="Total number of commitments returned")
    commitments: List[CommitmentOut] = Field(..., description="List of commitments")
