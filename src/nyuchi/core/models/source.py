"""Type-specific source records mirrored from the pipeline.

Only the columns the pipeline reads or writes are modelled here; the
creation flows that own these tables are separate applications.
"""
from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from ..storage.database import Base
from .submission import SubmissionType, new_id, utcnow


class SourceRecordMixin:
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    user_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True, index=True)
    title: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    status: Mapped[str] = mapped_column(String(50), nullable=False, default="submitted")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )

    def __repr__(self) -> str:
        return f"<{type(self).__name__}(id={self.id}, status='{self.status}')>"


class ContentSubmission(SourceRecordMixin, Base):
    __tablename__ = "content_submissions"


class Expert(SourceRecordMixin, Base):
    __tablename__ = "experts"


class Business(SourceRecordMixin, Base):
    __tablename__ = "businesses"


class DirectoryListing(SourceRecordMixin, Base):
    __tablename__ = "directory_listings"


class TravelBusiness(SourceRecordMixin, Base):
    __tablename__ = "travel_businesses"


SOURCE_MODELS: dict[SubmissionType, type[SourceRecordMixin]] = {
    SubmissionType.CONTENT: ContentSubmission,
    SubmissionType.EXPERT_APPLICATION: Expert,
    SubmissionType.BUSINESS_APPLICATION: Business,
    SubmissionType.DIRECTORY_LISTING: DirectoryListing,
    SubmissionType.TRAVEL_BUSINESS: TravelBusiness,
}
