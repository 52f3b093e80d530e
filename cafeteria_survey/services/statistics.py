"""Vote aggregation: filtering, rating counts and the satisfaction index."""
from __future__ import annotations

import math
from datetime import datetime

from dateutil.relativedelta import relativedelta
from sqlalchemy import Select, func, select
from sqlalchemy.orm import Session

from cafeteria_survey.core.timezone import civil_now, end_of_day, start_of_day, to_civil
from cafeteria_survey.models import RATING_WEIGHTS, BadReason, Rating, Vote
from cafeteria_survey.schemas.stats import ALL_LOCATIONS, RatingCounts, ReasonCounts, VoteFilters, VoteStats

_PERIOD_OFFSETS = {
    "week": relativedelta(days=7),
    "month": relativedelta(months=1),
    "quarter": relativedelta(months=3),
    "year": relativedelta(years=1),
}


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def resolve_date_range(filters: VoteFilters, now: datetime) -> tuple[datetime | None, datetime | None]:
    """Translate ``filters`` into an inclusive civil-time window.

    Explicit dates win over ``period``; either bound may be ``None``.
    """

    if filters.has_explicit_range:
        start = start_of_day(filters.date_from) if filters.date_from else None
        end = end_of_day(filters.date_to) if filters.date_to else None
        return start, end
    if filters.period == "day":
        return start_of_day(now.date()), None
    if filters.period in _PERIOD_OFFSETS:
        return now - _PERIOD_OFFSETS[filters.period], None
    return None, None


def apply_vote_filters(statement: Select, filters: VoteFilters, now: datetime) -> Select:
    start, end = resolve_date_range(filters, now)
    if start is not None:
        statement = statement.where(Vote.created_at >= start)
    if end is not None:
        statement = statement.where(Vote.created_at <= end)
    if filters.location != ALL_LOCATIONS:
        statement = statement.where(Vote.location == filters.location)
    if filters.ratings:
        statement = statement.where(Vote.rating.in_(filters.ratings))
    return statement


def satisfaction_index(counts: RatingCounts) -> int:
    """Weighted satisfaction percentage: good 100, neutral 50, bad 0."""
    total = counts.total
    if total == 0:
        return 0
    weighted = (
        counts.good * RATING_WEIGHTS[Rating.GOOD]
        + counts.neutral * RATING_WEIGHTS[Rating.NEUTRAL]
        + counts.bad * RATING_WEIGHTS[Rating.BAD]
    )
    return max(0, min(100, round_half_up(weighted / (total * 100) * 100)))


def compute_statistics(session: Session, filters: VoteFilters, *, now: datetime | None = None) -> VoteStats:
    now = to_civil(now) if now is not None else civil_now()

    rating_stmt = apply_vote_filters(
        select(Vote.rating, func.count(Vote.id)).group_by(Vote.rating), filters, now
    )
    counts = RatingCounts()
    for rating, count in session.execute(rating_stmt):
        setattr(counts, Rating(rating).value, int(count))

    reason_stmt = apply_vote_filters(
        select(Vote.reason, func.count(Vote.id))
        .where(Vote.rating == Rating.BAD, Vote.reason.is_not(None))
        .group_by(Vote.reason),
        filters,
        now,
    )
    reasons = ReasonCounts()
    for reason, count in session.execute(reason_stmt):
        setattr(reasons, BadReason(reason).value, int(count))

    total = counts.total
    return VoteStats(
        total_votes=total,
        rating_counts=counts,
        bad_reasons=reasons,
        satisfaction_index=satisfaction_index(counts),
        min_votes=filters.min_votes,
        below_threshold=total < filters.min_votes,
    )


__all__ = [
    "apply_vote_filters",
    "compute_statistics",
    "resolve_date_range",
    "round_half_up",
    "satisfaction_index",
]
