"""Unified submission model shared by every pipeline type."""
from datetime import datetime, timezone
from enum import Enum
from typing import Optional
from uuid import uuid4

from sqlalchemy import DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from ..storage.database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive datetimes read back from SQLite."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def new_id() -> str:
    return str(uuid4())


class SubmissionType(str, Enum):
    """Kind of source record a submission wraps."""
    CONTENT = "content"
    EXPERT_APPLICATION = "expert_application"
    BUSINESS_APPLICATION = "business_application"
    DIRECTORY_LISTING = "directory_listing"
    TRAVEL_BUSINESS = "travel_business"


class SubmissionStatus(str, Enum):
    """Review lifecycle state."""
    SUBMITTED = "submitted"
    IN_REVIEW = "in_review"
    NEEDS_CHANGES = "needs_changes"
    APPROVED = "approved"
    REJECTED = "rejected"
    PUBLISHED = "published"

    @classmethod
    def values(cls) -> list[str]:
        return [status.value for status in cls]


class Submission(Base):
    """A review-workflow record pointing at a type-specific source record."""

    __tablename__ = "unified_submissions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    submitter_id: Mapped[str] = mapped_column("user_id", String(255), nullable=False, index=True)
    submission_type: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    reference_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(
        String(50), nullable=False, default=SubmissionStatus.SUBMITTED.value, index=True
    )
    assigned_to: Mapped[Optional[str]] = mapped_column(String(255), nullable=True, index=True)
    reviewer_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Timestamps
    submitted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )
    reviewed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    published_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )

    def __repr__(self) -> str:
        return (
            f"<Submission(id={self.id}, submission_type='{self.submission_type}', "
            f"status='{self.status}')>"
        )
