from __future__ import annotations

from sqlalchemy import Integer, String, Text, DateTime
from sqlalchemy.orm import declarative_base
from sqlalchemy.types import TypeDecorator
from datetime import datetime, timezone
from sqlalchemy.orm import Mapped, mapped_column

from chief_of_staff.services.common import to_utc

Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UTCDateTime(TypeDecorator):
    """DateTime that is written and read back as aware UTC.

    SQLite drops the offset on storage, so values loaded from it come back naive.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        return to_utc(value)

    def process_result_value(self, value, dialect):
        return to_utc(value)


class Commitment(Base):
    __tablename__ = "commitments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    transcript_id: Mapped[int] = mapped_column(Integer, nullable=True, index=True)
    description: Mapped[str] = mapped_column(Text)
    # Deadlines are stored in UTC
    deadline: Mapped[datetime] = mapped_column(UTCDateTime, nullable=True, index=True)
    assignee: Mapped[str] = mapped_column(String(255), nullable=True)
    task_type: Mapped[str] = mapped_column(String(50), nullable=True)
    status: Mapped[str] = mapped_column(String(50), default="pending", index=True)
    created_date: Mapped[datetime] = mapped_column(UTCDateTime, default=_utcnow)
    completed_date: Mapped[datetime] = mapped_column(UTCDateTime, nullable=True)
    completion_note: Mapped[str] = mapped_column(Text, nullable=True)


class ConfigEntry(Base):
    __tablename__ = "config"

    key: Mapped[str] = mapped_column(String(255), primary_key=True)
    value: Mapped[str] = mapped_column(Text)
    updated_date: Mapped[datetime] = mapped_column(UTCDateTime, default=_utcnow, onupdate=_utcnow)


class PushSubscription(Base):
    __tablename__ = "push_subscriptions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_id: Mapped[str] = mapped_column(String(255), default="default", index=True)
    endpoint: Mapped[str] = mapped_column(Text, unique=True)
    # JSON-encoded {"p256dh": ..., "auth": ...}
    keys: Mapped[str] = mapped_column(Text)
    created_date: Mapped[datetime] = mapped_column(UTCDateTime, default=_utcnow)
