"""Derive standing, streaks and leaderboards from ledger entries.

All functions here are pure: they take contributions or per-user totals
already loaded from the ledger and never touch the database.
"""
from collections import Counter
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from typing import Iterable, Mapping, Optional, Sequence

from ..models.contribution import Contribution
from ..models.submission import as_utc
from .constants import LEVEL_THRESHOLDS, UbuntuLevel

VELOCITY_WINDOW_DAYS = 30


@dataclass
class UserStanding:
    """A user's derived total points, level and streak."""
    user_id: str
    total_points: int
    level: UbuntuLevel
    streak_days: int
    next_level: Optional[UbuntuLevel]
    points_to_next_level: int
    contribution_count: int
    contributions_by_type: dict[str, int] = field(default_factory=dict)
    weekly_velocity: int = 0


@dataclass(frozen=True)
class ContributorTotal:
    """Summed ledger entries for one user."""
    user_id: str
    total_points: int
    contribution_count: int


@dataclass
class LeaderboardEntry:
    rank: int
    user_id: str
    total_points: int
    level: UbuntuLevel
    contribution_count: int


@dataclass
class LevelChange:
    leveled_up: bool
    previous_level: UbuntuLevel
    new_level: UbuntuLevel


def _ordered_tiers(thresholds: Mapping[UbuntuLevel, int]) -> list[tuple[UbuntuLevel, int]]:
    return sorted(thresholds.items(), key=lambda item: item[1])


def level_for(points: int, thresholds: Mapping[UbuntuLevel, int] = LEVEL_THRESHOLDS) -> UbuntuLevel:
    """Highest tier whose lower bound ``points`` reaches."""
    tiers = _ordered_tiers(thresholds)
    level = tiers[0][0]
    for tier, lower_bound in tiers:
        if points >= lower_bound:
            level = tier
    return level


def next_level(
    points: int, thresholds: Mapping[UbuntuLevel, int] = LEVEL_THRESHOLDS
) -> tuple[Optional[UbuntuLevel], int]:
    """Next tier above ``points`` and how many points it takes to reach it.

    Returns ``(None, 0)`` at the top tier.
    """
    for tier, lower_bound in _ordered_tiers(thresholds):
        if points < lower_bound:
            return tier, lower_bound - points
    return None, 0


def check_level_up(
    previous_points: int,
    new_points: int,
    thresholds: Mapping[UbuntuLevel, int] = LEVEL_THRESHOLDS,
) -> LevelChange:
    previous = level_for(previous_points, thresholds)
    new = level_for(new_points, thresholds)
    return LevelChange(leveled_up=previous != new, previous_level=previous, new_level=new)


def _contribution_day(created_at: datetime) -> date:
    return as_utc(created_at).astimezone(timezone.utc).date()


def calculate_streak(contributions: Iterable[Contribution], today: Optional[date] = None) -> int:
    """Consecutive calendar days with at least one contribution.

    Counts backward from the most recent contribution day. The streak is
    zero unless that day is today or yesterday (UTC).
    """
    days = sorted({_contribution_day(c.created_at) for c in contributions}, reverse=True)
    if not days:
        return 0

    today = today or datetime.now(timezone.utc).date()
    if days[0] not in (today, today - timedelta(days=1)):
        return 0

    streak = 1
    for previous, current in zip(days, days[1:]):
        if previous - current != timedelta(days=1):
            break
        streak += 1
    return streak


def contribution_velocity(
    contributions: Iterable[Contribution], now: Optional[datetime] = None
) -> int:
    """Points per week averaged over the last 30 days."""
    now = now or datetime.now(timezone.utc)
    window_start = now - timedelta(days=VELOCITY_WINDOW_DAYS)
    recent = sum(c.points for c in contributions if as_utc(c.created_at) >= window_start)
    return round(recent / VELOCITY_WINDOW_DAYS * 7)


def compute_standing(
    user_id: str,
    contributions: Sequence[Contribution],
    thresholds: Mapping[UbuntuLevel, int] = LEVEL_THRESHOLDS,
    now: Optional[datetime] = None,
) -> UserStanding:
    """Total points, level and streak for one user's contributions."""
    now = now or datetime.now(timezone.utc)
    total = sum(c.points for c in contributions)
    upcoming, needed = next_level(total, thresholds)
    return UserStanding(
        user_id=user_id,
        total_points=total,
        level=level_for(total, thresholds),
        streak_days=calculate_streak(contributions, today=now.date()),
        next_level=upcoming,
        points_to_next_level=needed,
        contribution_count=len(contributions),
        contributions_by_type=dict(Counter(c.contribution_type for c in contributions)),
        weekly_velocity=contribution_velocity(contributions, now=now),
    )


def compute_leaderboard(
    totals: Iterable[ContributorTotal],
    limit: int,
    thresholds: Mapping[UbuntuLevel, int] = LEVEL_THRESHOLDS,
) -> list[LeaderboardEntry]:
    """Rank per-user totals, highest first.

    ``totals`` is usually already ordered and limited by
    ``ContributionRepository.top_contributors``. Ties keep their input order.
    """
    ranked = sorted(totals, key=lambda total: total.total_points, reverse=True)[: max(limit, 0)]
    return [
        LeaderboardEntry(
            rank=position,
            user_id=total.user_id,
            total_points=total.total_points,
            level=level_for(total.total_points, thresholds),
            contribution_count=total.contribution_count,
        )
        for position, total in enumerate(ranked, start=1)
    ]
