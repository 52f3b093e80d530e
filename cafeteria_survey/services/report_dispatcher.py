"""Report delivery: builds each schedule's report and mails it to recipients."""
from __future__ import annotations

import html
import logging
from datetime import datetime

from sqlalchemy.orm import Session

from cafeteria_survey.core.config import Settings, get_settings
from cafeteria_survey.core.timezone import civil_now, format_civil, to_civil
from cafeteria_survey.models import ReportSchedule
from cafeteria_survey.obs import record_dispatch_metric, start_span
from cafeteria_survey.schemas.report import DispatchResult, DispatchSummary
from cafeteria_survey.services.email_service import MailMessage, MailTransport
from cafeteria_survey.services.email_settings import get_email_settings, to_smtp_config
from cafeteria_survey.services.report_generator import GeneratedReport, ReportGenerator
from cafeteria_survey.services.schedules import find_due_schedules, mark_sent

logger = logging.getLogger(__name__)


def build_report_message(schedule: ReportSchedule, report: GeneratedReport, now: datetime) -> MailMessage:
    stamp = format_civil(now)
    name = html.escape(schedule.name)
    summary = report.summary
    body = (
        f"<h2>Report: {name}</h2>"
        f"<p>Generated at: {stamp}</p>"
        f"<p>Period: {html.escape(summary.period)}</p>"
        f"<p>Total ratings: {summary.total_votes}</p>"
        f"<p>Satisfaction index: {summary.satisfaction_index}%</p>"
        "<hr><p>This is an automated message. Please do not reply.</p>"
    )
    return MailMessage(
        subject=f"Report: {schedule.name} - {stamp}",
        recipients=schedule.recipient_list,
        html_body=body,
        attachments=list(report.attachments),
    )


class ReportDispatcher:
    """Sends scheduled reports; one schedule's failure never affects another."""

    def __init__(self, session: Session, transport: MailTransport, settings: Settings | None = None) -> None:
        self._session = session
        self._transport = transport
        self._settings = settings or get_settings()
        self._generator = ReportGenerator(session, self._settings)

    def send_schedule(self, schedule: ReportSchedule, now: datetime | None = None) -> DispatchResult:
        """Generate and mail ``schedule``'s report, then record ``last_sent``.

        Raises ``MailDeliveryError`` when the mail server rejects the message.
        """

        now = to_civil(now) if now is not None else civil_now(self._settings)
        with start_span("reports.send_schedule", schedule_id=schedule.id, frequency=schedule.frequency.value):
            config = to_smtp_config(get_email_settings(self._session))
            report = self._generator.generate(schedule, now)
            message = build_report_message(schedule, report, now)
            self._transport.send(config, message)
            mark_sent(self._session, schedule, now)

        logger.info(
            "report sent",
            extra={
                "schedule_id": schedule.id,
                "recipients": len(message.recipients),
                "attachments": [item.filename for item in report.attachments],
            },
        )
        return DispatchResult(
            schedule_id=schedule.id,
            name=schedule.name,
            success=True,
            attachments=[item.filename for item in report.attachments],
        )

    def dispatch_due(self, now: datetime | None = None) -> DispatchSummary:
        """Send every schedule due at ``now``, collecting per-schedule outcomes."""

        now = to_civil(now) if now is not None else civil_now(self._settings)
        summary = DispatchSummary()
        for schedule in find_due_schedules(self._session, now):
            schedule_id, name = schedule.id, schedule.name
            try:
                result = self.send_schedule(schedule, now)
            except Exception as exc:  # noqa: BLE001
                self._session.rollback()
                logger.exception("scheduled report failed", extra={"schedule_id": schedule_id})
                result = DispatchResult(schedule_id=schedule_id, name=name, success=False, error=str(exc))
            record_dispatch_metric("success" if result.success else "failure")
            summary.add(result)
        return summary


__all__ = ["ReportDispatcher", "build_report_message"]
