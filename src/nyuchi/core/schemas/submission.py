"""Submission schemas."""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from .contribution import ContributionResponse


class SubmissionResponse(BaseModel):
    """Schema for submission response."""
    id: str
    submitter_id: str
    submission_type: str
    reference_id: str
    title: str
    description: Optional[str]
    status: str
    assigned_to: Optional[str]
    reviewer_notes: Optional[str]
    submitted_at: datetime
    reviewed_at: Optional[datetime]
    published_at: Optional[datetime]
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class SubmissionList(BaseModel):
    """Submissions across every pipeline the caller can access."""
    submissions: list[SubmissionResponse]
    pipelines: list[str]


class SubmissionPage(BaseModel):
    """Schema for one page of a single pipeline."""
    submissions: list[SubmissionResponse]
    total: int
    limit: int
    offset: int


class MySubmissions(BaseModel):
    submissions: list[SubmissionResponse]


class SubmissionStatusUpdate(BaseModel):
    """Schema for a status change request.

    ``status`` is checked against the pipeline states by the state machine
    so near-misses such as ``"approved "`` get a precise error.
    """
    status: str = Field(..., description="Target pipeline status")
    reviewer_notes: Optional[str] = Field(None, description="Replaces stored notes when present")
    assigned_to: Optional[str] = Field(None, max_length=255, description="Explicit reviewer to assign")
    expected_updated_at: Optional[datetime] = Field(
        None, description="Reject the change if the submission was updated since this time"
    )


class SubmissionUpdateResponse(BaseModel):
    success: bool = True
    submission: SubmissionResponse
    sync_pending: bool = Field(False, description="Source record not yet mirrored")
    award: Optional[ContributionResponse] = None


class PipelineStats(BaseModel):
    """Per-type counts by status."""
    stats: dict[str, dict[str, int]]
    pipelines: list[str]
