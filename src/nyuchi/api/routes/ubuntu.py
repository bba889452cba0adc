"""Ubuntu scoring endpoints"""
import logging
import math
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ...core.config.settings import NyuchiConfig
from ...core.errors import PipelineError, StoreFailure
from ...core.scoring.aggregator import check_level_up, compute_leaderboard, compute_standing
from ...core.scoring.constants import (
    CONTRIBUTION_DESCRIPTIONS,
    LEVEL_DESCRIPTIONS,
    UBUNTU_PRINCIPLE,
    UbuntuLevel,
)
from ...core.scoring.ledger import ContributionLedger
from ...core.schemas.contribution import (
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
from ...core.security.identity import CallerIdentity
from ...core.storage.repositories import ContributionRepository
from ..dependencies import get_caller, get_config, get_session

logger = logging.getLogger(__name__)

router = APIRouter()

RECENT_CONTRIBUTIONS = 10
MAX_CONTRIBUTIONS_PAGE = 100


@router.get("/leaderboard", response_model=Leaderboard)
async def get_leaderboard(
    limit: Optional[int] = Query(None, ge=1, description="Number of users to rank"),
    session: AsyncSession = Depends(get_session),
    config: NyuchiConfig = Depends(get_config),
):
    """Public ranking of users by total Ubuntu points."""
    try:
        limit = limit or config.leaderboard_default_limit
        totals = await ContributionRepository(session).top_contributors(limit)
        entries = compute_leaderboard(totals, limit, config.level_thresholds)
        return Leaderboard(
            data=[
                LeaderboardEntryResponse(
                    rank=entry.rank,
                    user_id=entry.user_id,
                    total_points=entry.total_points,
                    level=entry.level.value,
                    contribution_count=entry.contribution_count,
                )
                for entry in entries
            ]
        )

    except PipelineError:
        raise
    except Exception as e:
        logger.error(f"Ubuntu leaderboard error: {e}")
        raise StoreFailure() from e


@router.get("/my-score", response_model=StandingResponse)
async def get_my_score(
    caller: CallerIdentity = Depends(get_caller),
    session: AsyncSession = Depends(get_session),
    config: NyuchiConfig = Depends(get_config),
):
    """The caller's points, level, streak and latest contributions."""
    try:
        contributions = await ContributionRepository(session).list_for_user(caller.user_id)
        standing = compute_standing(caller.user_id, contributions, config.level_thresholds)
        return StandingResponse(
            user_id=standing.user_id,
            total_points=standing.total_points,
            level=standing.level.value,
            next_level=standing.next_level.value if standing.next_level else None,
            points_to_next_level=standing.points_to_next_level,
            streak_days=standing.streak_days,
            contribution_count=standing.contribution_count,
            contributions_by_type=standing.contributions_by_type,
            weekly_velocity=standing.weekly_velocity,
            recent_contributions=[
                ContributionResponse.model_validate(c)
                for c in contributions[:RECENT_CONTRIBUTIONS]
            ],
        )

    except PipelineError:
        raise
    except Exception as e:
        logger.error(f"Ubuntu score error: {e}")
        raise StoreFailure() from e


@router.get("/my-contributions", response_model=ContributionPage)
async def get_my_contributions(
    page: int = Query(1, ge=1, description="Page number"),
    limit: int = Query(25, ge=1, le=MAX_CONTRIBUTIONS_PAGE, description="Items per page"),
    caller: CallerIdentity = Depends(get_caller),
    session: AsyncSession = Depends(get_session),
):
    """The caller's contribution history, newest first."""
    try:
        repository = ContributionRepository(session)
        total = await repository.count_for_user(caller.user_id)
        contributions = await repository.list_for_user(
            caller.user_id, limit=limit, offset=(page - 1) * limit
        )
        return ContributionPage(
            data=[ContributionResponse.model_validate(c) for c in contributions],
            pagination=Pagination(
                page=page,
                limit=limit,
                total=total,
                pages=math.ceil(total / limit),
            ),
        )

    except PipelineError:
        raise
    except Exception as e:
        logger.error(f"Ubuntu contributions error: {e}")
        raise StoreFailure() from e


@router.post("/record", response_model=ContributionRecordResponse, status_code=201)
async def record_contribution(
    contribution_data: ContributionCreate,
    caller: CallerIdentity = Depends(get_caller),
    session: AsyncSession = Depends(get_session),
    config: NyuchiConfig = Depends(get_config),
):
    """Record a contribution on behalf of a user (admin only).

    Used for manual adjustments and contributions that do not come from a
    submission. The response reports whether the user crossed a level.
    """
    caller.require_admin()
    try:
        repository = ContributionRepository(session)
        previous_points = await repository.total_points(contribution_data.user_id)

        ledger = ContributionLedger(session, config.contribution_points)
        contribution = await ledger.record_contribution(
            contribution_data.user_id,
            contribution_data.contribution_type,
            points=contribution_data.points,
            details=contribution_data.details,
            metadata=contribution_data.metadata,
        )
        await session.commit()
        await session.refresh(contribution)

        change = check_level_up(
            previous_points, previous_points + contribution.points, config.level_thresholds
        )
        if change.leveled_up:
            logger.info(
                "%s reached %s (was %s)",
                contribution.user_id, change.new_level.value, change.previous_level.value,
            )

        return ContributionRecordResponse(
            contribution=ContributionResponse.model_validate(contribution),
            level_change=LevelChangeResponse(
                leveled_up=change.leveled_up,
                previous_level=change.previous_level.value,
                new_level=change.new_level.value,
            ),
        )

    except PipelineError:
        raise
    except Exception as e:
        await session.rollback()
        logger.error(f"Ubuntu record error: {e}")
        raise StoreFailure() from e


@router.get("/points-guide")
async def get_points_guide(config: NyuchiConfig = Depends(get_config)):
    """How points are earned and what each level takes."""
    tiers = sorted(config.level_thresholds.items(), key=lambda item: item[1])
    levels = []
    for position, (level, lower_bound) in enumerate(tiers):
        upper_bound = tiers[position + 1][1] - 1 if position + 1 < len(tiers) else None
        levels.append({
            "level": level.value,
            "min_points": lower_bound,
            "max_points": upper_bound,
            "description": LEVEL_DESCRIPTIONS[UbuntuLevel(level)],
        })

    return {
        "points": {kind.value: points for kind, points in config.contribution_points.items()},
        "descriptions": {kind.value: text for kind, text in CONTRIBUTION_DESCRIPTIONS.items()},
        "levels": levels,
        "principle": UBUNTU_PRINCIPLE,
    }
