"""Satisfaction forecasting over day, week, month and year horizons.

The horizon is split into fixed buckets (2-hour slots, weekdays, 7-day windows
or months). Each bucket gets a satisfaction index, a recency-weighted trend is
derived from the non-empty buckets, and that trend is projected forward from
the current bucket to the end of the horizon.
"""
from __future__ import annotations

import math
from calendar import monthrange
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Protocol

from cafeteria_survey.core.timezone import end_of_day, start_of_day, to_civil
from cafeteria_survey.models import Rating
from cafeteria_survey.schemas.stats import Forecast, ForecastPeriod, ForecastPoint, RatingCounts
from cafeteria_survey.services.statistics import round_half_up, satisfaction_index

MIN_VOTES_FOR_FORECAST = 5
CONFIDENCE_THRESHOLDS: dict[str, int] = {"day": 50, "week": 200, "month": 800, "year": 5000}
NO_DATA_PREDICTION = 75
MIN_CONFIDENCE = 40

WEEKDAY_LABELS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")
MONTH_LABELS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


class RatedVote(Protocol):
    rating: Rating
    created_at: datetime


@dataclass(slots=True, frozen=True)
class Bucket:
    label: str
    start: datetime
    end: datetime

    def contains(self, value: datetime) -> bool:
        return self.start <= value <= self.end


def build_buckets(period: ForecastPeriod, now: datetime) -> list[Bucket]:
    today = now.date()
    if period == "day":
        buckets = []
        for index in range(12):
            start = start_of_day(today) + timedelta(hours=index * 2)
            end = start + timedelta(hours=2) - timedelta(milliseconds=1)
            buckets.append(Bucket(f"{index * 2:02d}:00", start, end))
        return buckets
    if period == "week":
        monday = today - timedelta(days=today.weekday())
        days = [monday + timedelta(days=offset) for offset in range(7)]
        return [Bucket(WEEKDAY_LABELS[day.weekday()], start_of_day(day), end_of_day(day)) for day in days]
    if period == "month":
        last_day = monthrange(today.year, today.month)[1]
        buckets = []
        for index in range(5):
            first = 1 + index * 7
            if first > last_day:
                break
            last = min(first + 6, last_day)
            buckets.append(
                Bucket(
                    f"Week {index + 1}",
                    start_of_day(date(today.year, today.month, first)),
                    end_of_day(date(today.year, today.month, last)),
                )
            )
        return buckets
    if period == "year":
        buckets = []
        for month in range(1, 13):
            last_day = monthrange(today.year, month)[1]
            buckets.append(
                Bucket(
                    MONTH_LABELS[month - 1],
                    start_of_day(date(today.year, month, 1)),
                    end_of_day(date(today.year, month, last_day)),
                )
            )
        return buckets
    raise ValueError(f"Unsupported forecast period '{period}'")


def bucket_indices(votes: Iterable[RatedVote], buckets: Sequence[Bucket]) -> list[int]:
    """Satisfaction index per bucket; a vote lands in the first bucket containing it."""

    counts = [RatingCounts() for _ in buckets]
    for vote in votes:
        created_at = to_civil(vote.created_at)
        for position, bucket in enumerate(buckets):
            if bucket.contains(created_at):
                field = Rating(vote.rating).value
                setattr(counts[position], field, getattr(counts[position], field) + 1)
                break
    return [satisfaction_index(item) for item in counts]


def calculate_trend(values: Sequence[int]) -> float:
    """Recency-weighted mean of successive differences between non-zero values."""

    data = [value for value in values if value > 0]
    if len(data) < 2:
        return 0.0
    weighted = 0.0
    total_weight = 0
    for position in range(1, len(data)):
        weighted += (data[position] - data[position - 1]) * position
        total_weight += position
    return weighted / total_weight


def cutoff_index(period: ForecastPeriod, now: datetime) -> int:
    if period == "day":
        return now.hour // 2 + 1
    if period == "week":
        weekday = now.isoweekday()
        return 6 if weekday == 7 else weekday
    if period == "month":
        return math.ceil(now.day / 7)
    return now.month


def calculate_end_prediction(values: Sequence[int], trend: float) -> int:
    known = [value for value in values if value > 0]
    if not known:
        return NO_DATA_PREDICTION
    remaining = len(values) - len(known)
    damping = min(1.0, 0.8 + len(known) / 20)
    prediction = known[-1] + trend * remaining * damping
    return max(0, min(100, round_half_up(prediction)))


def calculate_confidence(vote_count: int, period: ForecastPeriod) -> int:
    raw = min(100, round_half_up(vote_count / CONFIDENCE_THRESHOLDS[period] * 100))
    return max(MIN_CONFIDENCE, raw)


def _points(rows: Sequence[tuple[str, int | None, float | None]]) -> list[ForecastPoint]:
    return [ForecastPoint(name=name, actual=actual, prediction=prediction) for name, actual, prediction in rows]


_SIMULATED: dict[str, Forecast] = {
    "day": Forecast(
        period="day",
        chart_data=_points(
            [
                ("08:00", 85, None),
                ("10:00", 78, None),
                ("12:00", 82, None),
                ("14:00", 75, None),
                ("16:00", None, 80),
                ("18:00", None, 83),
                ("20:00", None, 85),
            ]
        ),
        trend=3.5,
        end_prediction=83,
        confidence=92,
        simulated=True,
    ),
    "week": Forecast(
        period="week",
        chart_data=_points(
            [
                ("Monday", 82, None),
                ("Tuesday", 78, None),
                ("Wednesday", 80, None),
                ("Thursday", None, 81),
                ("Friday", None, 83),
                ("Saturday", None, 75),
                ("Sunday", None, 70),
            ]
        ),
        trend=1.2,
        end_prediction=81,
        confidence=85,
        simulated=True,
    ),
    "month": Forecast(
        period="month",
        chart_data=_points(
            [("Week 1", 79, None), ("Week 2", 81, None), ("Week 3", None, 82), ("Week 4", None, 84)]
        ),
        trend=2.8,
        end_prediction=84,
        confidence=78,
        simulated=True,
    ),
    "year": Forecast(
        period="year",
        chart_data=_points(
            [
                ("Jan", 75, None),
                ("Feb", 78, None),
                ("Mar", 80, None),
                ("Apr", 82, None),
                ("May", 79, None),
                ("Jun", 81, None),
                ("Jul", None, 83),
                ("Aug", None, 84),
                ("Sep", None, 85),
                ("Oct", None, 83),
                ("Nov", None, 82),
                ("Dec", None, 86),
            ]
        ),
        trend=0.9,
        end_prediction=86,
        confidence=65,
        simulated=True,
    ),
}


def simulated_forecast(period: ForecastPeriod) -> Forecast:
    return _SIMULATED[period].model_copy(deep=True)


def calculate_forecast(votes: Sequence[RatedVote], period: ForecastPeriod, now: datetime) -> Forecast:
    """Project the satisfaction index to the end of ``period``.

    With fewer than five votes a fixed illustrative dataset is returned and
    flagged with ``simulated=True``.
    """

    if period not in CONFIDENCE_THRESHOLDS:
        raise ValueError(f"Unsupported forecast period '{period}'")
    if len(votes) < MIN_VOTES_FOR_FORECAST:
        return simulated_forecast(period)

    now = to_civil(now)
    buckets = build_buckets(period, now)
    values = bucket_indices(votes, buckets)
    trend = calculate_trend(values)
    cutoff = cutoff_index(period, now)
    anchor = values[min(max(0, cutoff - 1), len(values) - 1)]

    chart_data = []
    for position, bucket in enumerate(buckets):
        prediction = None
        if position >= cutoff - 1:
            prediction = min(100.0, max(0.0, anchor + trend * (position - (cutoff - 1))))
        chart_data.append(
            ForecastPoint(
                name=bucket.label,
                actual=values[position] if position < cutoff else None,
                prediction=prediction,
            )
        )

    return Forecast(
        period=period,
        chart_data=chart_data,
        trend=trend,
        end_prediction=calculate_end_prediction(values, trend),
        confidence=calculate_confidence(len(votes), period),
        simulated=False,
    )


__all__ = [
    "Bucket",
    "CONFIDENCE_THRESHOLDS",
    "MIN_VOTES_FOR_FORECAST",
    "bucket_indices",
    "build_buckets",
    "calculate_confidence",
    "calculate_end_prediction",
    "calculate_forecast",
    "calculate_trend",
    "cutoff_index",
    "simulated_forecast",
]
