"""Reviewer-facing pipeline operations.

Each method is one unit of work on the session it was given: load, check
the caller, mutate, commit.
"""
import logging
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..config.settings import NyuchiConfig, get_config
from ..errors import Forbidden, InvalidInput, NotFound
from ..models import Contribution, Submission, SubmissionStatus, SubmissionType
from ..scoring.ledger import ContributionLedger
from ..security.access import STATS_CAPABILITIES, AccessPolicy
from ..security.identity import CallerIdentity
from ..storage.repositories import SubmissionRepository, SyncEventRepository
from .state_machine import UNSET, PipelineStateMachine, TransitionResult, parse_status

logger = logging.getLogger(__name__)

SUBMISSION_ID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.IGNORECASE
)


def validate_submission_id(submission_id: str) -> str:
    if not SUBMISSION_ID_PATTERN.match(submission_id or ""):
        raise InvalidInput("Invalid ID format")
    return submission_id


@dataclass
class StatusUpdate:
    """Outcome of an update: the transition plus follow-up work."""
    transition: TransitionResult
    sync_event_id: Optional[int] = None
    award: Optional[Contribution] = None

    @property
    def submission(self) -> Submission:
        return self.transition.submission


class PipelineService:
    """Authorized queries and transitions over unified submissions."""

    def __init__(
        self,
        session: AsyncSession,
        policy: AccessPolicy,
        config: Optional[NyuchiConfig] = None,
    ):
        self.session = session
        self.policy = policy
        self.config = config or get_config()
        self.submissions = SubmissionRepository(session)
        self.state_machine = PipelineStateMachine(policy)

    async def get_submission(self, submission_id: str) -> Submission:
        """Load a submission by id.

        Raises:
            InvalidInput: Malformed id, checked before touching the store
            NotFound: No such submission
        """
        validate_submission_id(submission_id)
        submission = await self.submissions.get(submission_id)
        if submission is None:
            raise NotFound("Submission not found")
        return submission

    async def list_accessible(self, caller: CallerIdentity) -> tuple[list[Submission], list[SubmissionType]]:
        """Submissions from every pipeline the caller can see."""
        types = self.policy.accessible_types(caller.role, caller.capabilities)
        if not types:
            return [], []
        if caller.is_admin:
            return await self.submissions.list_by_types(), types
        return await self.submissions.list_by_types(types), types

    async def list_by_type(
        self,
        caller: CallerIdentity,
        submission_type: str,
        status: Optional[str] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[Submission], int]:
        """One page of a single pipeline, optionally filtered by status."""
        caller.require_pipeline_access(self.policy, submission_type)
        if status is not None:
            parse_status(status)
        if offset < 0 or limit < 1:
            raise InvalidInput("limit must be positive and offset non-negative")
        limit = min(limit, self.config.max_page_size)
        return await self.submissions.list_by_type(submission_type, status, limit, offset)

    async def my_submissions(self, caller: CallerIdentity) -> list[Submission]:
        return await self.submissions.list_by_submitter(caller.user_id)

    async def stats(self, caller: CallerIdentity) -> tuple[dict[str, dict[str, int]], list[SubmissionType]]:
        """Per-type status counts for the pipelines the caller can see.

        Raises:
            Forbidden: Caller is neither moderator, reviewer nor admin
        """
        if not self.policy.can_view_stats(caller.role, caller.capabilities):
            raise Forbidden("Access denied", required_capabilities=STATS_CAPABILITIES)
        types = self.policy.accessible_types(caller.role, caller.capabilities)
        return await self.submissions.status_counts(types), types

    async def update_status(
        self,
        caller: CallerIdentity,
        submission_id: str,
        status: Any,
        notes: Any = UNSET,
        assignee: Optional[str] = None,
        expected_updated_at: Optional[datetime] = None,
    ) -> StatusUpdate:
        """Transition a submission and stage its source sync.

        The submission update and its sync event commit together; the
        source record itself is written afterwards by the synchroniser.
        """
        submission = await self.get_submission(submission_id)
        transition = self.state_machine.apply_transition(
            submission,
            caller,
            status,
            notes=notes,
            assignee=assignee,
            expected_updated_at=expected_updated_at,
        )

        event = None
        if transition.requires_sync:
            event = SyncEventRepository(self.session).enqueue(submission)

        await self.session.commit()
        result = StatusUpdate(transition=transition, sync_event_id=event.id if event else None)

        if self.config.auto_award_on_publish and transition.status == SubmissionStatus.PUBLISHED:
            result.award = await self._auto_award(submission)
        return result

    async def _auto_award(self, submission: Submission) -> Optional[Contribution]:
        """Credit a published submission; failures leave it for a manual award."""
        submission_id = submission.id
        ledger = ContributionLedger(self.session, self.config.contribution_points)
        try:
            contribution, _ = await ledger.award_submission(submission)
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error("Automatic award for submission %s failed: %s", submission_id, e)
            return None
        return contribution

    async def award(
        self,
        caller: CallerIdentity,
        submission_id: str,
        contribution_type: Optional[str] = None,
        points: Optional[int] = None,
    ) -> tuple[Contribution, bool]:
        """Credit the submitter for an approved or published submission.

        Idempotent per ``(submission_id, contribution_type)``. Only admins
        may override the default points.
        """
        submission = await self.get_submission(submission_id)
        caller.require_pipeline_access(self.policy, submission.submission_type)
        if points is not None:
            caller.require_admin()

        ledger = ContributionLedger(self.session, self.config.contribution_points)
        contribution, created = await ledger.award_submission(
            submission, contribution_type=contribution_type, points=points
        )
        await self.session.commit()
        if created:
            logger.info(
                "Awarded %d points to %s for submission %s",
                contribution.points, contribution.user_id, submission_id,
            )
        return contribution, created
