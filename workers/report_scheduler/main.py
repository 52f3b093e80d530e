"""Worker sending due report schedules at every minute boundary."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from datetime import datetime, timedelta

from sqlalchemy.orm import Session

from cafeteria_survey.core.config import Settings, get_settings
from cafeteria_survey.core.logging import configure_logging
from cafeteria_survey.core.timezone import civil_now
from cafeteria_survey.db.session import SessionLocal, engine
from cafeteria_survey.models import Base
from cafeteria_survey.schemas.report import DispatchSummary
from cafeteria_survey.services.email_service import MailTransport, SmtpMailTransport
from cafeteria_survey.services.report_dispatcher import ReportDispatcher
from cafeteria_survey.workers.observability import configure_worker, cycle_span, record_cycle

LOGGER = logging.getLogger(__name__)


def seconds_until_next_minute(now: datetime) -> float:
    """Delay until the start of the next wall-clock minute."""

    boundary = now.replace(second=0, microsecond=0) + timedelta(minutes=1)
    return max((boundary - now).total_seconds(), 0.0)


def run_once(
    session_factory: Callable[[], Session],
    transport: MailTransport,
    *,
    now: datetime,
    settings: Settings | None = None,
) -> DispatchSummary:
    """Evaluate and send the schedules due at ``now``."""

    with session_factory() as session, cycle_span("report_scheduler", now) as span:
        summary = ReportDispatcher(session, transport, settings).dispatch_due(now)
        record_cycle(span, summary)
    if summary.processed:
        LOGGER.info(
            "report schedule cycle complete",
            extra={
                "processed": summary.processed,
                "successful": summary.successful,
                "failed": summary.failed,
            },
        )
    return summary


async def run(
    *,
    session_factory: Callable[[], Session] = SessionLocal,
    transport: MailTransport | None = None,
    now_fn: Callable[[], datetime] | None = None,
    sleep_fn: Callable[[float], Awaitable[None]] = asyncio.sleep,
    iterations: int | None = None,
) -> None:
    """Sleep to each minute boundary, then dispatch due schedules off the event loop."""

    settings = get_settings()
    configure_worker("report-scheduler-worker")
    transport = transport or SmtpMailTransport(timeout=settings.smtp_timeout_seconds)
    now_provider = now_fn or (lambda: civil_now(settings))
    LOGGER.info("starting report scheduler worker", extra={"timezone": settings.timezone})

    executed = 0
    last_minute: datetime | None = None
    while iterations is None or executed < iterations:
        await sleep_fn(seconds_until_next_minute(now_provider()))
        now = now_provider().replace(second=0, microsecond=0)
        executed += 1
        if now == last_minute:
            LOGGER.debug("minute already evaluated, skipping", extra={"minute": now.isoformat()})
            continue
        await asyncio.to_thread(run_once, session_factory, transport, now=now, settings=settings)
        last_minute = now


def main() -> None:
    configure_logging()
    Base.metadata.create_all(bind=engine)
    try:
        asyncio.run(run())
    except KeyboardInterrupt:  # pragma: no cover - manual shutdown
        LOGGER.info("report scheduler worker stopped")


if __name__ == "__main__":
    main()
