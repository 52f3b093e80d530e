"""Aggregated statistics and forecast endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.orm import Session

from cafeteria_survey.api.deps import get_db_session, get_vote_filters
from cafeteria_survey.api.routes.auth import require_viewer
from cafeteria_survey.core.timezone import civil_now
from cafeteria_survey.models import Vote
from cafeteria_survey.schemas import Forecast, SessionUser, VoteFilters, VoteStats
from cafeteria_survey.schemas.stats import ALL_LOCATIONS, ForecastPeriod
from cafeteria_survey.services.forecast import calculate_forecast
from cafeteria_survey.services.statistics import compute_statistics

router = APIRouter()


@router.get("/stats", response_model=VoteStats)
def read_stats(
    filters: VoteFilters = Depends(get_vote_filters),
    session: Session = Depends(get_db_session),
    _: SessionUser = Depends(require_viewer),
) -> VoteStats:
    return compute_statistics(session, filters)


@router.get("/forecast", response_model=Forecast)
def read_forecast(
    period: ForecastPeriod = Query(default="week"),
    location: str = Query(default=ALL_LOCATIONS),
    session: Session = Depends(get_db_session),
    _: SessionUser = Depends(require_viewer),
) -> Forecast:
    """Forecast over the full vote history of ``location``."""

    statement = select(Vote).order_by(Vote.created_at)
    if location != ALL_LOCATIONS:
        statement = statement.where(Vote.location == location)
    votes = list(session.scalars(statement))
    return calculate_forecast(votes, period, civil_now())
