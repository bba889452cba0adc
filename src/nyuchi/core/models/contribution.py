"""Ubuntu contribution ledger model."""
from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import JSON, DateTime, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from ..storage.database import Base
from .submission import new_id, utcnow


class ContributionType(str, Enum):
    """Kinds of point-earning activity."""
    CONTENT_PUBLISHED = "content_published"
    LISTING_CREATED = "listing_created"
    LISTING_VERIFIED = "listing_verified"
    COMMUNITY_HELP = "community_help"
    REVIEW_COMPLETED = "review_completed"
    COLLABORATION = "collaboration"
    KNOWLEDGE_SHARING = "knowledge_sharing"


class Contribution(Base):
    """Immutable point-earning event.

    ``submission_id`` is only set for awards tied to a pipeline submission;
    the unique constraint keeps those awards idempotent per type.
    """

    __tablename__ = "ubuntu_contributions"
    __table_args__ = (
        UniqueConstraint("submission_id", "contribution_type", name="uq_contribution_submission_type"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    contribution_type: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    points: Mapped[int] = mapped_column("ubuntu_points_earned", Integer, nullable=False)
    details: Mapped[Optional[str]] = mapped_column("contribution_details", Text, nullable=True)
    meta_data: Mapped[Optional[dict]] = mapped_column("metadata", JSON, nullable=True)
    submission_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True, index=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False, index=True
    )

    def __repr__(self) -> str:
        return (
            f"<Contribution(id={self.id}, user_id='{self.user_id}', "
            f"contribution_type='{self.contribution_type}', points={self.points})>"
        )
