"""Pipeline endpoints"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.exc import SQLAlchemyError

from ...core.errors import PipelineError, StoreFailure
from ...core.pipeline.service import PipelineService
from ...core.pipeline.state_machine import UNSET
from ...core.pipeline.sync import SourceSynchronizer
from ...core.schemas.contribution import AwardRequest, AwardResponse, ContributionResponse
from ...core.schemas.submission import (
    MySubmissions,
    PipelineStats,
    SubmissionList,
    SubmissionPage,
    SubmissionResponse,
    SubmissionStatusUpdate,
    SubmissionUpdateResponse,
)
from ...core.security.identity import CallerIdentity
from ..dependencies import get_caller, get_pipeline_service, get_synchronizer

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/submissions", response_model=SubmissionList)
async def list_submissions(
    caller: CallerIdentity = Depends(get_caller),
    service: PipelineService = Depends(get_pipeline_service),
):
    """List submissions from every pipeline the caller can access."""
    try:
        submissions, pipelines = await service.list_accessible(caller)
        return SubmissionList(
            submissions=[SubmissionResponse.model_validate(s) for s in submissions],
            pipelines=[p.value for p in pipelines],
        )

    except PipelineError:
        raise
    except Exception as e:
        logger.error(f"Pipeline submissions error: {e}")
        raise StoreFailure() from e


@router.get("/submissions/{submission_type}", response_model=SubmissionPage)
async def list_submissions_by_type(
    submission_type: str,
    status: Optional[str] = Query(None, description="Filter by status"),
    limit: int = Query(50, ge=1, description="Items per page"),
    offset: int = Query(0, ge=0, description="Items to skip"),
    caller: CallerIdentity = Depends(get_caller),
    service: PipelineService = Depends(get_pipeline_service),
):
    """List one pipeline's submissions with optional status filter."""
    try:
        submissions, total = await service.list_by_type(
            caller, submission_type, status=status, limit=limit, offset=offset
        )
        return SubmissionPage(
            submissions=[SubmissionResponse.model_validate(s) for s in submissions],
            total=total,
            limit=min(limit, service.config.max_page_size),
            offset=offset,
        )

    except PipelineError:
        raise
    except Exception as e:
        logger.error(f"Pipeline submissions by type error: {e}")
        raise StoreFailure() from e


@router.patch("/submissions/{submission_id}", response_model=SubmissionUpdateResponse)
async def update_submission(
    submission_id: str,
    update: SubmissionStatusUpdate,
    caller: CallerIdentity = Depends(get_caller),
    service: PipelineService = Depends(get_pipeline_service),
    synchronizer: SourceSynchronizer = Depends(get_synchronizer),
):
    """Move a submission through the review pipeline.

    Approved, rejected and published submissions are mirrored onto their
    source record. A failed mirror is logged and retried later; the
    status change itself stands.
    """
    try:
        notes = update.reviewer_notes if "reviewer_notes" in update.model_fields_set else UNSET
        result = await service.update_status(
            caller,
            submission_id,
            update.status,
            notes=notes,
            assignee=update.assigned_to,
            expected_updated_at=update.expected_updated_at,
        )

        sync_pending = False
        if result.sync_event_id is not None:
            try:
                sync_pending = not await synchronizer.dispatch(result.sync_event_id)
            except SQLAlchemyError as e:
                logger.warning(f"Sync event {result.sync_event_id} left pending: {e}")
                sync_pending = True

        await service.session.refresh(result.submission)
        return SubmissionUpdateResponse(
            submission=SubmissionResponse.model_validate(result.submission),
            sync_pending=sync_pending,
            award=ContributionResponse.model_validate(result.award) if result.award else None,
        )

    except PipelineError:
        raise
    except Exception as e:
        await service.session.rollback()
        logger.error(f"Pipeline update error: {e}")
        raise StoreFailure() from e


@router.post("/submissions/{submission_id}/award", response_model=AwardResponse)
async def award_submission(
    submission_id: str,
    award: AwardRequest,
    caller: CallerIdentity = Depends(get_caller),
    service: PipelineService = Depends(get_pipeline_service),
):
    """Credit the submitter of an approved or published submission.

    Repeating the call for the same contribution type returns the original
    award instead of adding points again.
    """
    try:
        contribution, created = await service.award(
            caller,
            submission_id,
            contribution_type=award.contribution_type,
            points=award.points,
        )
        return AwardResponse(
            created=created,
            contribution=ContributionResponse.model_validate(contribution),
        )

    except PipelineError:
        raise
    except Exception as e:
        await service.session.rollback()
        logger.error(f"Pipeline award error: {e}")
        raise StoreFailure() from e


@router.get("/stats", response_model=PipelineStats)
async def get_pipeline_stats(
    caller: CallerIdentity = Depends(get_caller),
    service: PipelineService = Depends(get_pipeline_service),
):
    """Counts by status for each pipeline the caller can access."""
    try:
        stats, pipelines = await service.stats(caller)
        return PipelineStats(stats=stats, pipelines=[p.value for p in pipelines])

    except PipelineError:
        raise
    except Exception as e:
        logger.error(f"Pipeline stats error: {e}")
        raise StoreFailure() from e


@router.get("/my-submissions", response_model=MySubmissions)
async def my_submissions(
    caller: CallerIdentity = Depends(get_caller),
    service: PipelineService = Depends(get_pipeline_service),
):
    """The caller's own submissions across all pipelines."""
    try:
        submissions = await service.my_submissions(caller)
        return MySubmissions(
            submissions=[SubmissionResponse.model_validate(s) for s in submissions]
        )

    except PipelineError:
        raise
    except Exception as e:
        logger.error(f"My submissions error: {e}")
        raise StoreFailure() from e
