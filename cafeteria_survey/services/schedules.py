"""Report schedule persistence and due-time evaluation."""
from __future__ import annotations

from datetime import datetime

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from cafeteria_survey.core.timezone import to_civil
from cafeteria_survey.models import ReportFrequency, ReportSchedule
from cafeteria_survey.schemas.report import ScheduleCreate, ScheduleRead, ScheduleUpdate


class ScheduleError(RuntimeError):
    """Base exception for schedule errors."""


class ScheduleNotFoundError(ScheduleError):
    pass


def civil_day_of_week(value: datetime) -> int:
    """Day of week with 0 = Sunday through 6 = Saturday."""
    return value.isoweekday() % 7


def is_schedule_due(schedule: ReportSchedule, now: datetime) -> bool:
    """Whether ``schedule`` should fire in the minute containing ``now``.

    Custom schedules are only ever sent manually.
    """

    if not schedule.active:
        return False
    if schedule.hour != now.hour or schedule.minute != now.minute:
        return False
    if schedule.frequency == ReportFrequency.DAILY:
        return True
    if schedule.frequency == ReportFrequency.WEEKLY:
        return schedule.day_of_week == civil_day_of_week(now)
    if schedule.frequency == ReportFrequency.MONTHLY:
        return schedule.day_of_month == now.day
    return False


def find_due_schedules(session: Session, now: datetime) -> list[ReportSchedule]:
    """Schedules due at ``now`` that have not already been sent in that minute."""

    now = to_civil(now)
    minute_start = now.replace(second=0, microsecond=0)
    candidates = session.scalars(
        select(ReportSchedule)
        .where(
            ReportSchedule.active.is_(True),
            ReportSchedule.hour == now.hour,
            ReportSchedule.minute == now.minute,
            or_(ReportSchedule.last_sent.is_(None), ReportSchedule.last_sent < minute_start),
        )
        .order_by(ReportSchedule.id)
    )
    return [schedule for schedule in candidates if is_schedule_due(schedule, now)]


def mark_sent(session: Session, schedule: ReportSchedule, now: datetime) -> None:
    schedule.last_sent = to_civil(now)
    session.commit()


def _apply(schedule: ReportSchedule, payload: ScheduleCreate) -> None:
    schedule.name = payload.name
    schedule.frequency = payload.frequency
    schedule.day_of_week = payload.day_of_week
    schedule.day_of_month = payload.day_of_month
    schedule.hour = payload.hour
    schedule.minute = payload.minute
    schedule.recipients = ",".join(payload.recipients)
    schedule.formats = ",".join(item.value for item in payload.formats)
    schedule.filters = payload.filters.model_dump(mode="json")
    schedule.include_dashboard_image = payload.include_dashboard_image
    schedule.active = payload.active


def list_schedules(session: Session) -> list[ReportSchedule]:
    return list(session.scalars(select(ReportSchedule).order_by(ReportSchedule.id)))


def get_schedule(session: Session, schedule_id: int) -> ReportSchedule:
    schedule = session.get(ReportSchedule, schedule_id)
    if schedule is None:
        raise ScheduleNotFoundError(f"Schedule {schedule_id} was not found")
    return schedule


def create_schedule(session: Session, payload: ScheduleCreate) -> ReportSchedule:
    schedule = ReportSchedule()
    _apply(schedule, payload)
    session.add(schedule)
    session.commit()
    session.refresh(schedule)
    return schedule


def update_schedule(session: Session, schedule_id: int, payload: ScheduleUpdate) -> ReportSchedule:
    """Merge ``payload`` into the stored schedule and re-validate the result.

    Raises ``pydantic.ValidationError`` when the merged schedule is invalid.
    """

    schedule = get_schedule(session, schedule_id)
    current = ScheduleRead.model_validate(schedule).model_dump(
        exclude={"id", "last_sent", "created_at"}
    )
    current.update(payload.model_dump(exclude_unset=True))
    _apply(schedule, ScheduleCreate.model_validate(current))
    session.commit()
    session.refresh(schedule)
    return schedule


def delete_schedule(session: Session, schedule_id: int) -> None:
    session.delete(get_schedule(session, schedule_id))
    session.commit()


__all__ = [
    "ScheduleError",
    "ScheduleNotFoundError",
    "civil_day_of_week",
    "create_schedule",
    "delete_schedule",
    "find_due_schedules",
    "get_schedule",
    "is_schedule_due",
    "list_schedules",
    "mark_sent",
    "update_schedule",
]
