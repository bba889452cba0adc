"""Mirror pipeline status onto type-specific source records.

Sync events are written to the ``sync_events`` outbox in the same
transaction as the submission update. The request that made the change
dispatches its event straight away; anything that fails stays pending
and is retried by ``process_pending`` until ``max_attempts`` is reached.
A failed sync never undoes the submission update.
"""
import logging
from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass
from typing import Callable, Optional

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..errors import SyncFailure
from ..models import (
    Business,
    ContentSubmission,
    DirectoryListing,
    Expert,
    SubmissionStatus,
    SubmissionType,
    SyncEvent,
    SyncEventStatus,
    TravelBusiness,
)
from ..models.source import SourceRecordMixin
from ..models.submission import utcnow
from ..storage.repositories import SyncEventRepository

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], AbstractAsyncContextManager[AsyncSession]]


@dataclass(frozen=True)
class SourceMapping:
    """Where a pipeline type keeps its status and what "published" means there."""
    model: type[SourceRecordMixin]
    status_field: str
    published_value: str

    @property
    def table(self) -> str:
        return self.model.__tablename__


SOURCE_MAPPINGS: dict[SubmissionType, SourceMapping] = {
    SubmissionType.CONTENT: SourceMapping(ContentSubmission, "status", "published"),
    SubmissionType.EXPERT_APPLICATION: SourceMapping(Expert, "status", "approved"),
    SubmissionType.BUSINESS_APPLICATION: SourceMapping(Business, "status", "approved"),
    SubmissionType.DIRECTORY_LISTING: SourceMapping(DirectoryListing, "status", "published"),
    SubmissionType.TRAVEL_BUSINESS: SourceMapping(TravelBusiness, "status", "published"),
}


def source_status_for(mapping: SourceMapping, pipeline_status: str) -> str:
    """Value written to the source record for a pipeline status."""
    if pipeline_status == SubmissionStatus.PUBLISHED.value:
        return mapping.published_value
    return pipeline_status


@dataclass
class SyncReport:
    processed: int = 0
    succeeded: int = 0
    failed: int = 0


class SourceSynchronizer:
    """Applies outbox events to source records with bounded retries."""

    def __init__(self, session_factory: SessionFactory, max_attempts: int = 5):
        self.session_factory = session_factory
        self.max_attempts = max_attempts

    async def sync_source_record(
        self,
        session: AsyncSession,
        submission_type: str,
        reference_id: str,
        pipeline_status: str,
    ) -> str:
        """Write the mirrored status onto the source record.

        Returns:
            The status value written

        Raises:
            SyncFailure: Unknown type, missing record or store error
        """
        try:
            mapping = SOURCE_MAPPINGS[SubmissionType(submission_type)]
        except ValueError:
            raise SyncFailure(submission_type, reference_id, "no source table for type")

        value = source_status_for(mapping, pipeline_status)
        statement = (
            update(mapping.model)
            .where(mapping.model.id == reference_id)
            .values({mapping.status_field: value, "updated_at": utcnow()})
        )
        try:
            result = await session.execute(statement)
        except SQLAlchemyError as e:
            raise SyncFailure(submission_type, reference_id, str(e)) from e

        if result.rowcount == 0:
            raise SyncFailure(
                submission_type, reference_id, f"no row in {mapping.table}"
            )
        return value

    async def _apply(self, event: SyncEvent) -> Optional[str]:
        """Run one source write in its own transaction.

        Returns:
            None on success, otherwise the failure reason
        """
        async with self.session_factory() as session:
            try:
                await self.sync_source_record(
                    session, event.submission_type, event.reference_id, event.pipeline_status
                )
                await session.commit()
            except SyncFailure as e:
                await session.rollback()
                return e.reason
            except SQLAlchemyError as e:
                await session.rollback()
                return str(e)
        return None

    async def _process(self, event: SyncEvent) -> bool:
        """Attempt an event and record the outcome on it (caller commits)."""
        event.attempts += 1
        reason = await self._apply(event)

        if reason is None:
            event.status = SyncEventStatus.DONE.value
            event.last_error = None
            event.processed_at = utcnow()
            logger.debug(
                "Synced %s %s to %s", event.submission_type, event.reference_id, event.pipeline_status
            )
            return True

        event.last_error = reason
        logger.warning(
            "Source sync failed for submission %s (attempt %d/%d): %s",
            event.submission_id, event.attempts, self.max_attempts, reason,
        )
        if event.attempts >= self.max_attempts:
            event.status = SyncEventStatus.FAILED.value
            event.processed_at = utcnow()
            logger.error(
                "Giving up source sync for submission %s after %d attempts",
                event.submission_id, event.attempts,
            )
        return False

    async def dispatch(self, event_id: int) -> bool:
        """Process a single event right after the transition committed.

        Returns:
            True if the source record now mirrors the pipeline status
        """
        async with self.session_factory() as session:
            event = await SyncEventRepository(session).get(event_id)
            if event is None:
                logger.warning("Sync event %s not found", event_id)
                return False
            if event.status != SyncEventStatus.PENDING.value:
                return event.status == SyncEventStatus.DONE.value

            ok = await self._process(event)
            await session.commit()
            return ok

    async def process_pending(self, limit: int = 100) -> SyncReport:
        """Retry pending events, oldest first."""
        report = SyncReport()
        async with self.session_factory() as session:
            events = await SyncEventRepository(session).list_pending(limit=limit)
            for event in events:
                report.processed += 1
                if await self._process(event):
                    report.succeeded += 1
                else:
                    report.failed += 1
            await session.commit()

        if report.processed:
            logger.info(
                "Processed %d sync events: %d succeeded, %d failed",
                report.processed, report.succeeded, report.failed,
            )
        return report
