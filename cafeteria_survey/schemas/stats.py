"""Schemas for statistics filters, aggregates and forecasts."""
from __future__ import annotations

from datetime import date
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from cafeteria_survey.models.vote import Rating

StatsPeriod = Literal["day", "week", "month", "quarter", "year"]
ForecastPeriod = Literal["day", "week", "month", "year"]

ALL_LOCATIONS = "all"


class VoteFilters(BaseModel):
    """Closed filter set shared by the aggregator, vote listing and exports.

    An explicit ``date_from``/``date_to`` range takes precedence over ``period``.
    An empty ``ratings`` list means every rating.
    """

    model_config = ConfigDict(extra="forbid")

    period: StatsPeriod | None = None
    date_from: date | None = None
    date_to: date | None = None
    location: str = Field(default=ALL_LOCATIONS, min_length=1, max_length=64)
    ratings: list[Rating] = Field(default_factory=list)
    min_votes: int = Field(default=0, ge=0)

    @model_validator(mode="after")
    def _check_range(self) -> "VoteFilters":
        if self.date_from and self.date_to and self.date_from > self.date_to:
            raise ValueError("date_from must not be after date_to")
        return self

    @property
    def has_explicit_range(self) -> bool:
        return self.date_from is not None or self.date_to is not None


class RatingCounts(BaseModel):
    good: int = 0
    neutral: int = 0
    bad: int = 0

    @property
    def total(self) -> int:
        return self.good + self.neutral + self.bad


class ReasonCounts(BaseModel):
    food: int = 0
    service: int = 0
    other: int = 0


class VoteStats(BaseModel):
    total_votes: int
    rating_counts: RatingCounts
    bad_reasons: ReasonCounts
    satisfaction_index: int = Field(..., ge=0, le=100)
    min_votes: int = 0
    below_threshold: bool = False


class ForecastPoint(BaseModel):
    name: str
    actual: int | None = None
    prediction: float | None = None


class Forecast(BaseModel):
    period: ForecastPeriod
    chart_data: list[ForecastPoint]
    trend: float
    end_prediction: int
    confidence: int
    simulated: bool = False


__all__ = [
    "ALL_LOCATIONS",
    "Forecast",
    "ForecastPeriod",
    "ForecastPoint",
    "RatingCounts",
    "ReasonCounts",
    "StatsPeriod",
    "VoteFilters",
    "VoteStats",
]
