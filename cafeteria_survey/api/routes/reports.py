"""Report schedule management, delivery and export endpoints."""
from __future__ import annotations

import secrets

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from pydantic import ValidationError
from sqlalchemy.orm import Session

from cafeteria_survey.api.deps import get_db_session, get_mail_transport, get_vote_filters, validation_http_error
from cafeteria_survey.api.routes.auth import require_admin, require_viewer
from cafeteria_survey.core.config import get_settings
from cafeteria_survey.core.timezone import civil_now, format_civil
from cafeteria_survey.models import ReportFormat
from cafeteria_survey.obs import record_dispatch_metric
from cafeteria_survey.schemas import (
    DispatchResult,
    DispatchSummary,
    EmailSettingsRead,
    EmailSettingsUpdate,
    ScheduleCreate,
    ScheduleRead,
    ScheduleUpdate,
    SendReportRequest,
    SessionUser,
    TestEmailRequest,
    TestEmailResponse,
    VoteFilters,
)
from cafeteria_survey.services.email_service import MailDeliveryError, MailTransport, send_test_email
from cafeteria_survey.services.email_settings import get_email_settings, to_smtp_config, update_email_settings
from cafeteria_survey.services.report_dispatcher import ReportDispatcher
from cafeteria_survey.services.report_generator import ReportGenerator
from cafeteria_survey.services.schedules import (
    ScheduleNotFoundError,
    create_schedule,
    delete_schedule,
    get_schedule,
    list_schedules,
    update_schedule,
)

router = APIRouter(prefix="/reports")


def _not_found(exc: ScheduleNotFoundError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))


@router.get("/schedules", response_model=list[ScheduleRead])
def read_schedules(
    session: Session = Depends(get_db_session),
    _: SessionUser = Depends(require_admin),
) -> list[ScheduleRead]:
    return [ScheduleRead.model_validate(item) for item in list_schedules(session)]


@router.post("/schedules", response_model=ScheduleRead, status_code=status.HTTP_201_CREATED)
def add_schedule(
    payload: ScheduleCreate,
    session: Session = Depends(get_db_session),
    _: SessionUser = Depends(require_admin),
) -> ScheduleRead:
    return ScheduleRead.model_validate(create_schedule(session, payload))


@router.get("/schedules/{schedule_id}", response_model=ScheduleRead)
def read_schedule(
    schedule_id: int,
    session: Session = Depends(get_db_session),
    _: SessionUser = Depends(require_admin),
) -> ScheduleRead:
    try:
        return ScheduleRead.model_validate(get_schedule(session, schedule_id))
    except ScheduleNotFoundError as exc:
        raise _not_found(exc) from exc


@router.put("/schedules/{schedule_id}", response_model=ScheduleRead)
def edit_schedule(
    schedule_id: int,
    payload: ScheduleUpdate,
    session: Session = Depends(get_db_session),
    _: SessionUser = Depends(require_admin),
) -> ScheduleRead:
    try:
        schedule = update_schedule(session, schedule_id, payload)
    except ScheduleNotFoundError as exc:
        raise _not_found(exc) from exc
    except ValidationError as exc:
        raise validation_http_error(exc) from exc
    return ScheduleRead.model_validate(schedule)


@router.delete("/schedules/{schedule_id}")
def remove_schedule(
    schedule_id: int,
    session: Session = Depends(get_db_session),
    _: SessionUser = Depends(require_admin),
) -> dict[str, bool]:
    try:
        delete_schedule(session, schedule_id)
    except ScheduleNotFoundError as exc:
        raise _not_found(exc) from exc
    return {"success": True}


@router.post("/send", response_model=DispatchResult)
def send_report(
    payload: SendReportRequest,
    session: Session = Depends(get_db_session),
    transport: MailTransport = Depends(get_mail_transport),
    _: SessionUser = Depends(require_admin),
) -> DispatchResult:
    """Send a schedule's report immediately, regardless of its frequency."""

    try:
        schedule = get_schedule(session, payload.schedule_id)
    except ScheduleNotFoundError as exc:
        raise _not_found(exc) from exc

    dispatcher = ReportDispatcher(session, transport, get_settings())
    try:
        result = dispatcher.send_schedule(schedule)
    except MailDeliveryError as exc:
        record_dispatch_metric("failure")
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    record_dispatch_metric("success")
    return result


@router.get("/check-schedules", response_model=DispatchSummary)
def check_schedules(
    token: str | None = Query(default=None),
    session: Session = Depends(get_db_session),
    transport: MailTransport = Depends(get_mail_transport),
) -> DispatchSummary:
    """Cron hook: send every schedule due this minute."""

    settings = get_settings()
    if settings.cron_secret and not secrets.compare_digest(token or "", settings.cron_secret):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
    return ReportDispatcher(session, transport, settings).dispatch_due()


@router.get("/email-settings", response_model=EmailSettingsRead)
def read_email_settings(
    session: Session = Depends(get_db_session),
    _: SessionUser = Depends(require_admin),
) -> EmailSettingsRead:
    return EmailSettingsRead.model_validate(get_email_settings(session))


@router.put("/email-settings", response_model=EmailSettingsRead)
def edit_email_settings(
    payload: EmailSettingsUpdate,
    session: Session = Depends(get_db_session),
    _: SessionUser = Depends(require_admin),
) -> EmailSettingsRead:
    return EmailSettingsRead.model_validate(update_email_settings(session, payload))


@router.post("/test-email", response_model=TestEmailResponse)
def test_email(
    payload: TestEmailRequest,
    transport: MailTransport = Depends(get_mail_transport),
    _: SessionUser = Depends(require_admin),
) -> TestEmailResponse:
    """Check connectivity with the supplied settings, optionally sending a test message."""

    settings = get_settings()
    config = to_smtp_config(payload)
    try:
        transport.verify(config)
        if payload.test_email:
            send_test_email(
                transport,
                config,
                payload.test_email,
                sent_at=format_civil(civil_now(settings)),
                timezone_name=settings.timezone,
            )
    except MailDeliveryError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc

    if payload.test_email:
        return TestEmailResponse(success=True, message=f"Connection verified and test email sent to {payload.test_email}")
    return TestEmailResponse(success=True, message="Connection verified")


@router.get("/export/{report_format}")
def export_report(
    report_format: ReportFormat,
    filters: VoteFilters = Depends(get_vote_filters),
    session: Session = Depends(get_db_session),
    _: SessionUser = Depends(require_viewer),
) -> Response:
    report = ReportGenerator(session, get_settings()).build(filters, [report_format])
    if not report.attachments:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to generate {report_format.value} report",
        )
    attachment = report.attachments[0]
    return Response(
        content=attachment.content,
        media_type=attachment.mime_type,
        headers={"Content-Disposition": f'attachment; filename="{attachment.filename}"'},
    )
