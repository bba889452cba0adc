"""Append-only Ubuntu contribution ledger."""
import logging
from typing import Any, Mapping, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..errors import InvalidInput
from ..models import Contribution, ContributionType, Submission, SubmissionStatus, SubmissionType
from ..storage.repositories import ContributionRepository
from .constants import SUBMISSION_AWARD_TYPES, UBUNTU_POINTS

logger = logging.getLogger(__name__)

AWARDABLE_STATUSES = (SubmissionStatus.APPROVED.value, SubmissionStatus.PUBLISHED.value)


def parse_contribution_type(value: Any) -> ContributionType:
    try:
        return ContributionType(value)
    except ValueError:
        raise InvalidInput(
            f"Unknown contribution type: {value!r}",
            allowed_types=[t.value for t in ContributionType],
        )


class ContributionLedger:
    """Writes point-earning events.

    The ledger never checks permissions; callers authorize before writing.
    Entries are only ever inserted.
    """

    def __init__(
        self,
        session: AsyncSession,
        points_table: Optional[Mapping[ContributionType, int]] = None,
    ):
        self.session = session
        self.repository = ContributionRepository(session)
        self.points_table = dict(points_table or UBUNTU_POINTS)

    def default_points(self, contribution_type: ContributionType) -> int:
        return self.points_table.get(contribution_type, 0)

    async def record_contribution(
        self,
        user_id: str,
        contribution_type: Any,
        points: Optional[int] = None,
        details: Optional[str] = None,
        metadata: Optional[dict[str, Any]] = None,
        submission_id: Optional[str] = None,
    ) -> Contribution:
        """Append a contribution for ``user_id``.

        Args:
            user_id: User credited with the points
            contribution_type: One of ContributionType
            points: Override for the type's default points (admin adjustments)
            details: Free-text description
            metadata: Structured payload stored alongside the entry
            submission_id: Submission the award belongs to, if any

        Returns:
            The flushed Contribution

        Raises:
            InvalidInput: On a missing user, unknown type or negative points
        """
        if not user_id:
            raise InvalidInput("user_id and contribution_type required")
        kind = parse_contribution_type(contribution_type)

        if points is None:
            points = self.default_points(kind)
        if points < 0:
            raise InvalidInput("points must be a non-negative integer")

        contribution = Contribution(
            user_id=user_id,
            contribution_type=kind.value,
            points=points,
            details=details,
            meta_data=metadata,
            submission_id=submission_id,
        )
        await self.repository.add(contribution)
        logger.info(
            "Recorded %s contribution of %d points for %s", kind.value, points, user_id
        )
        return contribution

    async def award_submission(
        self,
        submission: Submission,
        contribution_type: Optional[Any] = None,
        points: Optional[int] = None,
    ) -> tuple[Contribution, bool]:
        """Credit the submitter for an approved or published submission.

        Keyed by ``(submission.id, contribution_type)``: a second call for
        the same pair returns the existing entry instead of writing again.
        Losing an insert race rolls back the session before the existing
        entry is returned.

        Returns:
            Tuple of (contribution, created)

        Raises:
            InvalidInput: If the submission is not approved or published
        """
        if submission.status not in AWARDABLE_STATUSES:
            raise InvalidInput(
                f"Only approved or published submissions earn points (status is {submission.status})"
            )

        if contribution_type is None:
            kind = SUBMISSION_AWARD_TYPES[SubmissionType(submission.submission_type)]
        else:
            kind = parse_contribution_type(contribution_type)

        submission_id = submission.id
        existing = await self.repository.find_for_submission(submission_id, kind.value)
        if existing is not None:
            return existing, False

        try:
            contribution = await self.record_contribution(
                submission.submitter_id,
                kind,
                points=points,
                details=f"Submission {submission.status}: {submission.title}",
                metadata={
                    "submission_id": submission_id,
                    "submission_type": submission.submission_type,
                },
                submission_id=submission_id,
            )
        except IntegrityError:
            # Lost a race with a concurrent award for the same pair
            await self.session.rollback()
            existing = await self.repository.find_for_submission(submission_id, kind.value)
            if existing is None:
                raise
            return existing, False

        return contribution, True
