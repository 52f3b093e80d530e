"""Civil timezone helpers.

Vote timestamps are stored as naive wall-clock values in the configured civil
timezone (``Settings.timezone``). Every comparison against stored timestamps
must therefore use naive civil datetimes produced by these helpers.
"""
from __future__ import annotations

from datetime import date, datetime, time
from zoneinfo import ZoneInfo

from cafeteria_survey.core.config import Settings, get_settings

END_OF_DAY = time(23, 59, 59, 999000)


def civil_zone(settings: Settings | None = None) -> ZoneInfo:
    settings = settings or get_settings()
    return ZoneInfo(settings.timezone)


def to_civil(value: datetime, settings: Settings | None = None) -> datetime:
    """Convert ``value`` to a naive civil datetime.

    Naive inputs are assumed to already be civil wall-clock time.
    """
    if value.tzinfo is None:
        return value
    return value.astimezone(civil_zone(settings)).replace(tzinfo=None)


def civil_now(settings: Settings | None = None) -> datetime:
    """Return the current naive wall-clock time in the civil timezone."""
    return datetime.now(civil_zone(settings)).replace(tzinfo=None)


def start_of_day(day: date) -> datetime:
    return datetime.combine(day, time.min)


def end_of_day(day: date) -> datetime:
    return datetime.combine(day, END_OF_DAY)


def format_civil(value: datetime) -> str:
    return value.strftime("%d/%m/%Y %H:%M")


__all__ = [
    "END_OF_DAY",
    "civil_now",
    "civil_zone",
    "end_of_day",
    "format_civil",
    "start_of_day",
    "to_civil",
]
