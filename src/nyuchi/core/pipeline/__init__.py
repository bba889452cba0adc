"""Unified submission pipeline: transitions, source sync and reviewer operations."""
from .service import PipelineService, StatusUpdate, validate_submission_id
from .state_machine import (
    SYNC_STATUSES,
    UNSET,
    PipelineStateMachine,
    TransitionResult,
    parse_status,
)
from .sync import SOURCE_MAPPINGS, SourceMapping, SourceSynchronizer, SyncReport, source_status_for

__all__ = [
    "PipelineService",
    "StatusUpdate",
    "validate_submission_id",
    "SYNC_STATUSES",
    "UNSET",
    "PipelineStateMachine",
    "TransitionResult",
    "parse_status",
    "SOURCE_MAPPINGS",
    "SourceMapping",
    "SourceSynchronizer",
    "SyncReport",
    "source_status_for",
]
