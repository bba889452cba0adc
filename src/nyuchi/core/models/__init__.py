"""Core data models for submissions, contributions and source records."""
# Import all models so they register with the metadata
from .submission import Submission, SubmissionStatus, SubmissionType
from .contribution import Contribution, ContributionType
from .source import (
    Business,
    ContentSubmission,
    DirectoryListing,
    Expert,
    SOURCE_MODELS,
    SourceRecordMixin,
    TravelBusiness,
)
from .sync_event import SyncEvent, SyncEventStatus

__all__ = [
    # Submission models
    "Submission",
    "SubmissionStatus",
    "SubmissionType",
    # Contribution models
    "Contribution",
    "ContributionType",
    # Source records
    "SOURCE_MODELS",
    "SourceRecordMixin",
    "ContentSubmission",
    "Expert",
    "Business",
    "DirectoryListing",
    "TravelBusiness",
    # Outbox
    "SyncEvent",
    "SyncEventStatus",
]
