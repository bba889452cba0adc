"""Outbox rows for source-record synchronisation."""
from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from ..storage.database import Base
from .submission import utcnow


class SyncEventStatus(str, Enum):
    PENDING = "pending"
    DONE = "done"
    FAILED = "failed"


class SyncEvent(Base):
    """Pending write of a pipeline status onto its source record.

    Written in the same transaction as the submission update it belongs to.
    """

    __tablename__ = "sync_events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    submission_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    submission_type: Mapped[str] = mapped_column(String(50), nullable=False)
    reference_id: Mapped[str] = mapped_column(String(36), nullable=False)
    pipeline_status: Mapped[str] = mapped_column(String(50), nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=SyncEventStatus.PENDING.value, index=True
    )
    attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_error: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )
    processed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    def __repr__(self) -> str:
        return (
            f"<SyncEvent(id={self.id}, submission_id={self.submission_id}, "
            f"pipeline_status='{self.pipeline_status}', status='{self.status}')>"
        )
