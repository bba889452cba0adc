"""Ubuntu contribution scoring: ledger writes and derived standing."""
from .aggregator import (
    ContributorTotal,
    LeaderboardEntry,
    LevelChange,
    UserStanding,
    calculate_streak,
    check_level_up,
    compute_leaderboard,
    compute_standing,
    contribution_velocity,
    level_for,
    next_level,
)
from .constants import (
    LEVEL_THRESHOLDS,
    SUBMISSION_AWARD_TYPES,
    UBUNTU_POINTS,
    UBUNTU_PRINCIPLE,
    UbuntuLevel,
)
from .ledger import ContributionLedger

__all__ = [
    "ContributorTotal",
    "LeaderboardEntry",
    "LevelChange",
    "UserStanding",
    "calculate_streak",
    "check_level_up",
    "compute_leaderboard",
    "compute_standing",
    "contribution_velocity",
    "level_for",
    "next_level",
    "LEVEL_THRESHOLDS",
    "SUBMISSION_AWARD_TYPES",
    "UBUNTU_POINTS",
    "UBUNTU_PRINCIPLE",
    "UbuntuLevel",
    "ContributionLedger",
]
