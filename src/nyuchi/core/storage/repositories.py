"""Data-access helpers for submissions, contributions and outbox events."""
from typing import Iterable, Optional

from sqlalchemy import Row, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..errors import InvalidInput
from ..models import (
    SOURCE_MODELS,
    Contribution,
    Submission,
    SubmissionStatus,
    SubmissionType,
    SyncEvent,
    SyncEventStatus,
)


def _type_value(submission_type) -> str:
    if isinstance(submission_type, SubmissionType):
        return submission_type.value
    return str(submission_type)


class SubmissionRepository:
    """Queries over the unified submissions table."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, submission_id: str) -> Optional[Submission]:
        return await self.session.get(Submission, submission_id)

    async def register(
        self,
        submitter_id: str,
        submission_type: str,
        reference_id: str,
        title: str,
        description: Optional[str] = None,
    ) -> Submission:
        """Create a submission in ``submitted`` for an existing source record.

        Used by the creation flows after they have written the
        type-specific record.

        Raises:
            InvalidInput: If the type is unknown or the reference does not
                resolve to a record of that type
        """
        try:
            kind = SubmissionType(submission_type)
        except ValueError:
            raise InvalidInput(f"Unknown submission type: {submission_type!r}")

        source = await self.session.get(SOURCE_MODELS[kind], reference_id)
        if source is None:
            raise InvalidInput(
                f"Reference {reference_id} does not resolve to a {kind.value} record"
            )

        submission = Submission(
            submitter_id=submitter_id,
            submission_type=kind.value,
            reference_id=reference_id,
            title=title,
            description=description,
            status=SubmissionStatus.SUBMITTED.value,
        )
        self.session.add(submission)
        await self.session.flush()
        return submission

    async def list_by_types(self, submission_types: Optional[Iterable[str]] = None) -> list[Submission]:
        """Newest-first submissions, optionally restricted to some types."""
        query = select(Submission).order_by(Submission.created_at.desc())
        if submission_types is not None:
            query = query.where(Submission.submission_type.in_([_type_value(t) for t in submission_types]))
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def list_by_type(
        self,
        submission_type: str,
        status: Optional[str] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[Submission], int]:
        """One page of a pipeline plus the total matching count."""
        query = select(Submission).where(Submission.submission_type == submission_type)
        if status:
            query = query.where(Submission.status == status)

        count_query = select(func.count()).select_from(query.subquery())
        total = (await self.session.execute(count_query)).scalar_one()

        query = query.order_by(Submission.created_at.desc()).offset(offset).limit(limit)
        result = await self.session.execute(query)
        return list(result.scalars().all()), total

    async def list_by_submitter(self, submitter_id: str) -> list[Submission]:
        query = (
            select(Submission)
            .where(Submission.submitter_id == submitter_id)
            .order_by(Submission.created_at.desc())
        )
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def status_counts(self, submission_types: Iterable[str]) -> dict[str, dict[str, int]]:
        """Per-type counts for every pipeline status, zero-filled."""
        types = [_type_value(t) for t in submission_types]
        stats = {kind: {status: 0 for status in SubmissionStatus.values()} for kind in types}
        if not types:
            return stats

        query = (
            select(Submission.submission_type, Submission.status, func.count())
            .where(Submission.submission_type.in_(types))
            .group_by(Submission.submission_type, Submission.status)
        )
        for kind, status, count in (await self.session.execute(query)).all():
            if status in stats[kind]:
                stats[kind][status] = count
        return stats


class ContributionRepository:
    """Append-only access to the Ubuntu contribution ledger."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def add(self, contribution: Contribution) -> Contribution:
        self.session.add(contribution)
        await self.session.flush()
        return contribution

    async def list_for_user(
        self, user_id: str, limit: Optional[int] = None, offset: int = 0
    ) -> list[Contribution]:
        query = (
            select(Contribution)
            .where(Contribution.user_id == user_id)
            .order_by(Contribution.created_at.desc(), Contribution.id)
            .offset(offset)
        )
        if limit is not None:
            query = query.limit(limit)
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def count_for_user(self, user_id: str) -> int:
        query = select(func.count(Contribution.id)).where(Contribution.user_id == user_id)
        return (await self.session.execute(query)).scalar_one()

    async def total_points(self, user_id: str) -> int:
        query = select(func.coalesce(func.sum(Contribution.points), 0)).where(
            Contribution.user_id == user_id
        )
        return (await self.session.execute(query)).scalar_one()

    async def find_for_submission(
        self, submission_id: str, contribution_type: str
    ) -> Optional[Contribution]:
        query = select(Contribution).where(
            Contribution.submission_id == submission_id,
            Contribution.contribution_type == contribution_type,
        )
        result = await self.session.execute(query)
        return result.scalars().first()

    async def top_contributors(self, limit: int) -> list[Row]:
        """Per-user point totals, highest first, summed by the store.

        Rows carry ``user_id``, ``total_points`` and ``contribution_count``.
        Ties go to whoever contributed first.
        """
        total_points = func.sum(Contribution.points).label("total_points")
        query = (
            select(
                Contribution.user_id,
                total_points,
                func.count(Contribution.id).label("contribution_count"),
            )
            .group_by(Contribution.user_id)
            .order_by(
                total_points.desc(),
                func.min(Contribution.created_at),
                Contribution.user_id,
            )
            .limit(limit)
        )
        result = await self.session.execute(query)
        return list(result.all())


class SyncEventRepository:
    """Outbox of pending source-record writes."""

    def __init__(self, session: AsyncSession):
        self.session = session

    def enqueue(self, submission: Submission) -> SyncEvent:
        """Stage a sync event in the current transaction."""
        event = SyncEvent(
            submission_id=submission.id,
            submission_type=submission.submission_type,
            reference_id=submission.reference_id,
            pipeline_status=submission.status,
            status=SyncEventStatus.PENDING.value,
            attempts=0,
        )
        self.session.add(event)
        return event

    async def get(self, event_id: int) -> Optional[SyncEvent]:
        return await self.session.get(SyncEvent, event_id)

    async def list_pending(self, limit: int = 100) -> list[SyncEvent]:
        query = (
            select(SyncEvent)
            .where(SyncEvent.status == SyncEventStatus.PENDING.value)
            .order_by(SyncEvent.id)
            .limit(limit)
        )
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def count_by_status(self) -> dict[str, int]:
        query = select(SyncEvent.status, func.count()).group_by(SyncEvent.status)
        return {status: count for status, count in (await self.session.execute(query)).all()}
