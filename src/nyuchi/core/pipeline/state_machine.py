"""Review lifecycle transitions for unified submissions."""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

from ..errors import Conflict, InvalidInput, InvalidStatus
from ..models import Submission, SubmissionStatus
from ..models.submission import as_utc, utcnow
from ..security.access import AccessPolicy
from ..security.identity import CallerIdentity

logger = logging.getLogger(__name__)

# Statuses mirrored onto the source record
SYNC_STATUSES = frozenset(
    {SubmissionStatus.APPROVED, SubmissionStatus.REJECTED, SubmissionStatus.PUBLISHED}
)


class _Unset:
    def __repr__(self) -> str:
        return "UNSET"


UNSET: Any = _Unset()


def parse_status(value: Any) -> SubmissionStatus:
    """Exact match against the pipeline states; no trimming or case folding."""
    if isinstance(value, SubmissionStatus):
        return value
    if isinstance(value, str) and value in SubmissionStatus.values():
        return SubmissionStatus(value)
    raise InvalidStatus(value, SubmissionStatus.values())


@dataclass
class TransitionResult:
    submission: Submission
    previous_status: str
    status: SubmissionStatus

    @property
    def requires_sync(self) -> bool:
        return self.status in SYNC_STATUSES


class PipelineStateMachine:
    """Validates and applies status changes on a submission.

    Any state may move to any other state; reviewers are trusted to walk a
    submission backwards. Side effects depend only on the target state.
    """

    def __init__(self, policy: AccessPolicy):
        self.policy = policy

    def apply_transition(
        self,
        submission: Submission,
        caller: CallerIdentity,
        requested_status: Any,
        notes: Any = UNSET,
        assignee: Optional[str] = None,
        expected_updated_at: Optional[datetime] = None,
        now: Optional[datetime] = None,
    ) -> TransitionResult:
        """Apply ``requested_status`` to ``submission`` in place.

        Args:
            submission: Submission to mutate
            caller: Identity performing the transition
            requested_status: Target pipeline status
            notes: Reviewer notes; overwrite the stored notes whenever given,
                including None
            assignee: Explicit reviewer to assign
            expected_updated_at: ``updated_at`` the caller last saw; a
                mismatch means someone else changed the submission
            now: Timestamp to stamp, defaults to the current UTC time

        Raises:
            Forbidden: Caller may not act on this pipeline type
            InvalidStatus: Target is not a pipeline status
            Conflict: ``expected_updated_at`` is stale
            InvalidInput: Assignee given for a submission moving to submitted
        """
        caller.require_pipeline_access(self.policy, submission.submission_type)
        status = parse_status(requested_status)

        if expected_updated_at is not None and as_utc(expected_updated_at) != as_utc(submission.updated_at):
            raise Conflict(
                "Submission was modified by another reviewer",
                updated_at=as_utc(submission.updated_at).isoformat(),
            )

        if assignee is not None and status == SubmissionStatus.SUBMITTED:
            raise InvalidInput("Submissions can only be assigned once they enter review")

        now = now or utcnow()
        previous_status = submission.status
        submission.status = status.value

        if status == SubmissionStatus.IN_REVIEW:
            if assignee:
                submission.assigned_to = assignee
            elif submission.assigned_to is None:
                submission.assigned_to = caller.user_id
        elif status == SubmissionStatus.SUBMITTED:
            submission.assigned_to = None
        elif assignee is not None:
            submission.assigned_to = assignee

        if status in (SubmissionStatus.APPROVED, SubmissionStatus.REJECTED):
            submission.reviewed_at = now
        if status == SubmissionStatus.PUBLISHED:
            submission.published_at = now

        if notes is not UNSET:
            submission.reviewer_notes = notes

        submission.updated_at = now

        logger.info(
            "Submission %s moved %s -> %s by %s",
            submission.id, previous_status, status.value, caller.user_id,
        )
        return TransitionResult(
            submission=submission, previous_status=previous_status, status=status
        )
