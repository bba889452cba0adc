"""Pydantic schemas for API validation and serialization."""
from .contribution import (
    AwardRequest,
    AwardResponse,
    ContributionCreate,
    ContributionPage,
    ContributionRecordResponse,
    ContributionResponse,
    Leaderboard,
    LeaderboardEntryResponse,
    LevelChangeResponse,
    Pagination,
    StandingResponse,
)
from .submission import (
    MySubmissions,
    PipelineStats,
    SubmissionList,
    SubmissionPage,
    SubmissionResponse,
    SubmissionStatusUpdate,
    SubmissionUpdateResponse,
)

__all__ = [
    # Submission schemas
    "SubmissionResponse",
    "SubmissionList",
    "SubmissionPage",
    "MySubmissions",
    "SubmissionStatusUpdate",
    "SubmissionUpdateResponse",
    "PipelineStats",
    # Contribution schemas
    "ContributionCreate",
    "ContributionResponse",
    "ContributionPage",
    "ContributionRecordResponse",
    "AwardRequest",
    "AwardResponse",
    "LevelChangeResponse",
    "StandingResponse",
    "Leaderboard",
    "LeaderboardEntryResponse",
    "Pagination",
]
