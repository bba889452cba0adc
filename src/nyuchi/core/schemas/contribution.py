"""Contribution and standing schemas."""
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..models.contribution import ContributionType


class ContributionCreate(BaseModel):
    """Schema for a manual contribution record."""
    user_id: str = Field(..., min_length=1, max_length=255, description="User credited")
    contribution_type: ContributionType = Field(..., description="Type of contribution")
    points: Optional[int] = Field(None, ge=0, description="Override the default points")
    details: Optional[str] = Field(None, description="Free-text details")
    metadata: Optional[dict[str, Any]] = Field(None, description="Structured payload")

    model_config = ConfigDict(use_enum_values=True)


class ContributionResponse(BaseModel):
    """Schema for contribution response."""
    id: str
    user_id: str
    contribution_type: str
    points: int
    details: Optional[str]
    metadata: Optional[dict[str, Any]] = Field(None, validation_alias="meta_data")
    submission_id: Optional[str]
    created_at: datetime

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)


class AwardRequest(BaseModel):
    """Schema for awarding points for a submission."""
    contribution_type: Optional[ContributionType] = Field(
        None, description="Defaults to the submission type's award"
    )
    points: Optional[int] = Field(None, ge=0, description="Admin-only override")

    model_config = ConfigDict(use_enum_values=True)


class AwardResponse(BaseModel):
    created: bool
    contribution: ContributionResponse


class LevelChangeResponse(BaseModel):
    leveled_up: bool
    previous_level: str
    new_level: str

    model_config = ConfigDict(from_attributes=True)


class ContributionRecordResponse(BaseModel):
    message: str = "Ubuntu contribution recorded"
    contribution: ContributionResponse
    level_change: LevelChangeResponse


class StandingResponse(BaseModel):
    """A user's total points, level and streak."""
    user_id: str
    total_points: int
    level: str
    next_level: Optional[str]
    points_to_next_level: int
    streak_days: int
    contribution_count: int
    contributions_by_type: dict[str, int]
    weekly_velocity: int
    recent_contributions: list[ContributionResponse]


class LeaderboardEntryResponse(BaseModel):
    rank: int
    user_id: str
    total_points: int
    level: str
    contribution_count: int

    model_config = ConfigDict(from_attributes=True)


class Leaderboard(BaseModel):
    data: list[LeaderboardEntryResponse]


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int


class ContributionPage(BaseModel):
    data: list[ContributionResponse]
    pagination: Pagination
