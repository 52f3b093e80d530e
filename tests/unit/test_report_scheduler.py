from __future__ import annotations

import asyncio
from datetime import datetime

from sqlalchemy.orm import Session

from cafeteria_survey.models import ReportFrequency, ReportSchedule
from workers.report_scheduler.main import run_once, seconds_until_next_minute
from workers.report_scheduler.main import run as run_report_scheduler


def test_seconds_until_next_minute() -> None:
    assert seconds_until_next_minute(datetime(2025, 6, 2, 7, 59, 30)) == 30.0
    assert seconds_until_next_minute(datetime(2025, 6, 2, 8, 0, 0)) == 60.0


def test_worker_dispatches_schedules_due_at_the_boundary(db_session: Session, session_factory, transport) -> None:
    schedule = ReportSchedule(
        name="Morning digest",
        frequency=ReportFrequency.DAILY,
        hour=8,
        minute=0,
        recipients="ops@example.com",
        formats="csv",
        active=True,
    )
    db_session.add(schedule)
    db_session.commit()

    clock = iter([datetime(2025, 6, 2, 7, 59, 30), datetime(2025, 6, 2, 8, 0, 0, 200000)])
    delays: list[float] = []

    async def fake_sleep(seconds: float) -> None:
        delays.append(seconds)

    asyncio.run(
        run_report_scheduler(
            session_factory=session_factory,
            transport=transport,
            now_fn=lambda: next(clock),
            sleep_fn=fake_sleep,
            iterations=1,
        )
    )

    assert delays == [30.0]
    assert len(transport.sent) == 1
    assert transport.sent[0][1].subject == "Report: Morning digest - 02/06/2025 08:00"
    db_session.refresh(schedule)
    assert schedule.last_sent == datetime(2025, 6, 2, 8, 0)


def test_worker_sends_once_when_woken_early_in_the_same_minute(
    db_session: Session, session_factory, transport
) -> None:
    db_session.add(
        ReportSchedule(
            name="Morning digest",
            frequency=ReportFrequency.DAILY,
            hour=8,
            minute=0,
            recipients="ops@example.com",
            formats="csv",
            active=True,
        )
    )
    db_session.commit()

    clock = iter(
        [
            datetime(2025, 6, 2, 7, 59, 30),
            datetime(2025, 6, 2, 8, 0, 0, 100),
            datetime(2025, 6, 2, 8, 0, 0, 200),
            datetime(2025, 6, 2, 8, 0, 59, 999999),
        ]
    )

    async def fake_sleep(seconds: float) -> None:
        return None

    asyncio.run(
        run_report_scheduler(
            session_factory=session_factory,
            transport=transport,
            now_fn=lambda: next(clock),
            sleep_fn=fake_sleep,
            iterations=2,
        )
    )

    assert len(transport.sent) == 1


def test_run_once_skips_schedules_already_sent_this_minute(db_session: Session, session_factory, transport) -> None:
    db_session.add(
        ReportSchedule(
            name="Morning digest",
            frequency=ReportFrequency.DAILY,
            hour=8,
            minute=0,
            recipients="ops@example.com",
            formats="csv",
            active=True,
            last_sent=datetime(2025, 6, 2, 8, 0, 5),
        )
    )
    db_session.commit()

    summary = run_once(session_factory, transport, now=datetime(2025, 6, 2, 8, 0))

    assert summary.processed == 0
    assert transport.sent == []
