"""Nyuchi - unified community submission pipeline with Ubuntu scoring.

Reviewers move submissions from every community pipeline through one
review lifecycle; contributors earn Ubuntu points for the work that
gets approved.
"""
__version__ = "0.1.0"

from .core.config.settings import NyuchiConfig, get_config, init_config
from .core.storage.database import Database, get_db, init_db
from .core.errors import (
    Conflict,
    Forbidden,
    InvalidInput,
    InvalidStatus,
    NotFound,
    PipelineError,
    StoreFailure,
    SyncFailure,
    Unauthenticated,
)
from .core.models import (
    Contribution,
    ContributionType,
    Submission,
    SubmissionStatus,
    SubmissionType,
    SyncEvent,
    SyncEventStatus,
)
from .core.pipeline import PipelineService, PipelineStateMachine, SourceSynchronizer
from .core.scoring import ContributionLedger, UbuntuLevel, compute_leaderboard, compute_standing
from .core.security import AccessPolicy, CallerIdentity, Capability, Role

from . import core

__all__ = [
    # Version
    "__version__",
    # Config
    "NyuchiConfig",
    "init_config",
    "get_config",
    # Database
    "Database",
    "init_db",
    "get_db",
    # Errors
    "PipelineError",
    "Unauthenticated",
    "Forbidden",
    "NotFound",
    "InvalidInput",
    "InvalidStatus",
    "Conflict",
    "StoreFailure",
    "SyncFailure",
    # Models
    "Submission",
    "SubmissionStatus",
    "SubmissionType",
    "Contribution",
    "ContributionType",
    "SyncEvent",
    "SyncEventStatus",
    # Pipeline
    "PipelineService",
    "PipelineStateMachine",
    "SourceSynchronizer",
    # Scoring
    "ContributionLedger",
    "UbuntuLevel",
    "compute_leaderboard",
    "compute_standing",
    # Security
    "AccessPolicy",
    "CallerIdentity",
    "Capability",
    "Role",
    # Core module
    "core",
]
