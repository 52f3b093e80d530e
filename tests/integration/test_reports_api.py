from __future__ import annotations

from datetime import datetime
from io import BytesIO

from openpyxl import load_workbook
from sqlalchemy.orm import Session

from cafeteria_survey.models import BadReason, Cafeteria, Rating, ReportSchedule, Vote

SCHEDULE_PAYLOAD = {
    "name": "Weekly digest",
    "frequency": "weekly",
    "day_of_week": 1,
    "hour": 9,
    "minute": 30,
    "recipients": "ops@example.com, chef@example.com",
    "formats": ["xlsx", "csv", "xlsx"],
    "filters": {"period": "week", "location": "all", "ratings": {"good": True, "neutral": True, "bad": True}},
}


def test_schedule_crud(client, admin_headers) -> None:
    created = client.post("/api/reports/schedules", json=SCHEDULE_PAYLOAD, headers=admin_headers)
    assert created.status_code == 201
    schedule = created.json()
    assert schedule["recipients"] == ["ops@example.com", "chef@example.com"]
    assert schedule["formats"] == ["xlsx", "csv"]
    assert schedule["day_of_month"] is None
    assert schedule["last_sent"] is None
    assert schedule["filters"]["version"] == 1

    listed = client.get("/api/reports/schedules", headers=admin_headers).json()
    assert [item["id"] for item in listed] == [schedule["id"]]

    updated = client.put(
        f"/api/reports/schedules/{schedule['id']}",
        json={"frequency": "monthly", "day_of_month": 1, "active": False},
        headers=admin_headers,
    )
    assert updated.status_code == 200
    assert updated.json()["day_of_week"] is None
    assert updated.json()["day_of_month"] == 1
    assert updated.json()["active"] is False

    invalid = client.put(
        f"/api/reports/schedules/{schedule['id']}",
        json={"frequency": "weekly"},
        headers=admin_headers,
    )
    assert invalid.status_code == 422

    removed = client.delete(f"/api/reports/schedules/{schedule['id']}", headers=admin_headers)
    assert removed.json() == {"success": True}
    assert client.get(f"/api/reports/schedules/{schedule['id']}", headers=admin_headers).status_code == 404


def test_schedule_validation(client, admin_headers) -> None:
    missing_day = dict(SCHEDULE_PAYLOAD, day_of_week=None)
    bad_recipient = dict(SCHEDULE_PAYLOAD, recipients="ops@example.com, nobody")
    no_ratings = dict(
        SCHEDULE_PAYLOAD,
        filters={"ratings": {"good": False, "neutral": False, "bad": False}},
    )
    bad_hour = dict(SCHEDULE_PAYLOAD, hour=24)

    for payload in (missing_day, bad_recipient, no_ratings, bad_hour):
        response = client.post("/api/reports/schedules", json=payload, headers=admin_headers)
        assert response.status_code == 422, payload


def test_send_report_now(client, db_session: Session, admin_headers, transport) -> None:
    created = client.post(
        "/api/reports/schedules",
        json=dict(SCHEDULE_PAYLOAD, frequency="custom", formats="csv"),
        headers=admin_headers,
    ).json()

    response = client.post("/api/reports/send", json={"schedule_id": created["id"]}, headers=admin_headers)

    assert response.status_code == 200
    assert response.json()["success"] is True
    assert len(response.json()["attachments"]) == 1
    config, message = transport.sent[0]
    assert config.from_email == "noreply@example.com"
    assert message.recipients == ["ops@example.com", "chef@example.com"]
    assert message.subject.startswith("Report: Weekly digest - ")
    schedule = db_session.get(ReportSchedule, created["id"])
    db_session.refresh(schedule)
    assert schedule.last_sent is not None


def test_send_report_errors(client, admin_headers, transport) -> None:
    assert client.post("/api/reports/send", json={"schedule_id": 999}, headers=admin_headers).status_code == 404

    created = client.post("/api/reports/schedules", json=SCHEDULE_PAYLOAD, headers=admin_headers).json()
    transport.fail_all = True
    response = client.post("/api/reports/send", json={"schedule_id": created["id"]}, headers=admin_headers)
    assert response.status_code == 503


def test_check_schedules_requires_cron_token(client) -> None:
    assert client.get("/api/reports/check-schedules").status_code == 401
    assert client.get("/api/reports/check-schedules", params={"token": "wrong"}).status_code == 401

    response = client.get("/api/reports/check-schedules", params={"token": "cron-token"})
    assert response.status_code == 200
    assert response.json() == {"processed": 0, "successful": 0, "failed": 0, "results": []}


def test_email_settings_round_trip(client, admin_headers) -> None:
    defaults = client.get("/api/reports/email-settings", headers=admin_headers)
    assert defaults.status_code == 200
    assert defaults.json()["smtp_host"] == "smtp.example.com"
    assert defaults.json()["smtp_port"] == 25
    assert defaults.json()["from_name"] == "Cafeteria Survey Reports"

    updated = client.put(
        "/api/reports/email-settings",
        json={
            "smtp_host": " mail.corp.example ",
            "smtp_port": 465,
            "smtp_secure": True,
            "from_email": "survey@corp.example",
            "from_name": "Survey",
        },
        headers=admin_headers,
    )
    assert updated.status_code == 200
    assert updated.json()["smtp_host"] == "mail.corp.example"
    assert client.get("/api/reports/email-settings", headers=admin_headers).json()["smtp_port"] == 465

    invalid = client.put(
        "/api/reports/email-settings",
        json={"smtp_host": "", "from_email": "survey@corp.example"},
        headers=admin_headers,
    )
    assert invalid.status_code == 422


def test_test_email(client, admin_headers, transport) -> None:
    settings = {"smtp_host": "mail.corp.example", "smtp_port": 25, "from_email": "survey@corp.example"}

    verified = client.post("/api/reports/test-email", json=settings, headers=admin_headers)
    assert verified.status_code == 200
    assert verified.json()["message"] == "Connection verified"
    assert transport.verified[0].host == "mail.corp.example"
    assert transport.sent == []

    sent = client.post(
        "/api/reports/test-email",
        json=dict(settings, test_email="ops@example.com"),
        headers=admin_headers,
    )
    assert sent.status_code == 200
    assert transport.sent[0][1].recipients == ["ops@example.com"]

    transport.fail_all = True
    assert client.post("/api/reports/test-email", json=settings, headers=admin_headers).status_code == 503


def test_exports(client, db_session: Session, cafeteria: Cafeteria, readonly_headers) -> None:
    db_session.add_all(
        [
            Vote(rating=Rating.GOOD, location="main", created_at=datetime(2025, 5, 10, 12, 0)),
            Vote(
                rating=Rating.BAD,
                reason=BadReason.OTHER,
                comment='Cold "soup"',
                location="main",
                created_at=datetime(2025, 5, 11, 12, 0),
            ),
        ]
    )
    db_session.commit()
    params = {"from": "2025-05-01", "to": "2025-05-31"}

    csv_response = client.get("/api/reports/export/csv", params=params, headers=readonly_headers)
    assert csv_response.status_code == 200
    assert csv_response.headers["content-type"].startswith("text/csv")
    assert "survey-report-" in csv_response.headers["content-disposition"]
    text = csv_response.content.decode("utf-8-sig")
    lines = text.split("\n")
    assert lines[0] == '"ID","Date","Rating","Reason","Comment","Location"'
    assert '"Cold ""soup"""' in lines[1]

    xlsx_response = client.get("/api/reports/export/xlsx", params=params, headers=readonly_headers)
    workbook = load_workbook(BytesIO(xlsx_response.content))
    assert workbook.sheetnames == ["Votes", "Statistics"]
    assert workbook["Votes"].max_row == 3

    png_response = client.get("/api/reports/export/png", params=params, headers=readonly_headers)
    assert png_response.headers["content-type"] == "image/png"
    assert png_response.content.startswith(b"\x89PNG")

    assert client.get("/api/reports/export/pdf", headers=readonly_headers).status_code == 422
    assert client.get("/api/reports/export/csv", params={"limit": 5}, headers=readonly_headers).status_code == 422


def test_report_administration_requires_admin(client, readonly_headers) -> None:
    assert client.get("/api/reports/schedules", headers=readonly_headers).status_code == 403
    assert client.get("/api/reports/email-settings", headers=readonly_headers).status_code == 403
    assert client.post("/api/reports/send", json={"schedule_id": 1}, headers=readonly_headers).status_code == 403
    assert client.get("/api/reports/export/csv").status_code == 401
