from __future__ import annotations

from datetime import datetime

import pytest
from pydantic import ValidationError
from sqlalchemy.orm import Session

from cafeteria_survey.models import ReportFrequency, ReportSchedule
from cafeteria_survey.schemas.report import ScheduleCreate, ScheduleUpdate
from cafeteria_survey.services.schedules import (
    civil_day_of_week,
    create_schedule,
    find_due_schedules,
    is_schedule_due,
    mark_sent,
    update_schedule,
)

SUNDAY_0800 = datetime(2025, 6, 1, 8, 0)


def _schedule(frequency: ReportFrequency, **overrides) -> ReportSchedule:
    values = {
        "name": "Digest",
        "frequency": frequency,
        "hour": 8,
        "minute": 0,
        "recipients": "ops@example.com",
        "formats": "csv",
        "active": True,
    }
    values.update(overrides)
    return ReportSchedule(**values)


def test_sunday_is_day_zero() -> None:
    assert civil_day_of_week(SUNDAY_0800) == 0
    assert civil_day_of_week(datetime(2025, 6, 7, 8, 0)) == 6


def test_monthly_schedule_fires_on_matching_day_and_minute() -> None:
    schedule = _schedule(ReportFrequency.MONTHLY, day_of_month=1)

    assert is_schedule_due(schedule, SUNDAY_0800) is True
    assert is_schedule_due(schedule, datetime(2025, 6, 1, 8, 1)) is False
    assert is_schedule_due(schedule, datetime(2025, 6, 2, 8, 0)) is False


def test_weekly_schedule_requires_matching_weekday() -> None:
    assert is_schedule_due(_schedule(ReportFrequency.WEEKLY, day_of_week=0), SUNDAY_0800) is True
    assert is_schedule_due(_schedule(ReportFrequency.WEEKLY, day_of_week=1), SUNDAY_0800) is False


def test_daily_custom_and_inactive_schedules() -> None:
    assert is_schedule_due(_schedule(ReportFrequency.DAILY), SUNDAY_0800) is True
    assert is_schedule_due(_schedule(ReportFrequency.CUSTOM), SUNDAY_0800) is False
    assert is_schedule_due(_schedule(ReportFrequency.DAILY, active=False), SUNDAY_0800) is False


def test_find_due_schedules_and_mark_sent(db_session: Session) -> None:
    due = _schedule(ReportFrequency.DAILY, name="due")
    other_minute = _schedule(ReportFrequency.DAILY, name="later", minute=30)
    custom = _schedule(ReportFrequency.CUSTOM, name="manual")
    db_session.add_all([due, other_minute, custom])
    db_session.commit()

    found = find_due_schedules(db_session, SUNDAY_0800)
    assert [item.name for item in found] == ["due"]

    mark_sent(db_session, due, SUNDAY_0800)
    db_session.refresh(due)
    assert due.last_sent == SUNDAY_0800


def test_schedule_sent_this_minute_is_not_due_again(db_session: Session) -> None:
    schedule = _schedule(ReportFrequency.DAILY)
    db_session.add(schedule)
    db_session.commit()

    mark_sent(db_session, schedule, datetime(2025, 6, 1, 8, 0, 12))

    assert find_due_schedules(db_session, datetime(2025, 6, 1, 8, 0, 59, 999999)) == []
    assert find_due_schedules(db_session, datetime(2025, 6, 2, 8, 0)) == [schedule]


def _payload(**overrides) -> dict:
    values = {
        "name": "Weekly digest",
        "frequency": "weekly",
        "day_of_week": 1,
        "hour": 7,
        "minute": 30,
        "recipients": ["ops@example.com"],
        "formats": ["csv", "xlsx"],
    }
    values.update(overrides)
    return values


def test_schedule_create_validation_rules() -> None:
    with pytest.raises(ValidationError):
        ScheduleCreate.model_validate(_payload(day_of_week=None))
    with pytest.raises(ValidationError):
        ScheduleCreate.model_validate(_payload(frequency="monthly", day_of_month=None))
    with pytest.raises(ValidationError):
        ScheduleCreate.model_validate(_payload(recipients=["not-an-email"]))
    with pytest.raises(ValidationError):
        ScheduleCreate.model_validate(_payload(formats=[]))
    with pytest.raises(ValidationError):
        ScheduleCreate.model_validate(_payload(hour=24))

    daily = ScheduleCreate.model_validate(_payload(frequency="daily", day_of_week=3, day_of_month=9))
    assert daily.day_of_week is None
    assert daily.day_of_month is None

    split = ScheduleCreate.model_validate(_payload(recipients="a@example.com, b@example.org", formats="png"))
    assert split.recipients == ["a@example.com", "b@example.org"]
    assert [item.value for item in split.formats] == ["png"]


def test_update_merges_and_revalidates(db_session: Session) -> None:
    schedule = create_schedule(db_session, ScheduleCreate.model_validate(_payload()))
    assert schedule.recipients == "ops@example.com"
    assert schedule.formats == "csv,xlsx"
    assert schedule.filters["period"] == "month"

    updated = update_schedule(db_session, schedule.id, ScheduleUpdate(frequency="monthly", day_of_month=15))
    assert updated.frequency is ReportFrequency.MONTHLY
    assert updated.day_of_month == 15
    assert updated.day_of_week is None

    with pytest.raises(ValidationError):
        update_schedule(db_session, schedule.id, ScheduleUpdate(frequency="weekly"))
