from __future__ import annotations

import json
import logging

from fastapi import FastAPI
from fastapi.testclient import TestClient
from pydantic import BaseModel

from cafeteria_survey.obs import (
    HTTP_RESPONSES,
    VOTES_RECORDED_COUNTER,
    AuditMiddleware,
    PrometheusMiddleware,
    metrics_router,
    record_vote_metric,
    scrub,
)


class _ListHandler(logging.Handler):
    def __init__(self) -> None:
        super().__init__()
        self.records: list[str] = []

    def emit(self, record: logging.LogRecord) -> None:
        self.records.append(record.getMessage())


class _Login(BaseModel):
    username: str
    password: str


def test_metrics_endpoint_exposes_survey_counters() -> None:
    app = FastAPI()
    app.add_middleware(PrometheusMiddleware)
    app.include_router(metrics_router)
    record_vote_metric("good")

    response = TestClient(app).get("/metrics")

    assert response.status_code == 200
    assert "survey_http_responses_total" in response.text
    assert 'survey_votes_recorded_total{rating="good"}' in response.text


def test_record_vote_metric_increments_rating_label() -> None:
    before = VOTES_RECORDED_COUNTER.labels(rating="neutral")._value.get()
    record_vote_metric("neutral")
    assert VOTES_RECORDED_COUNTER.labels(rating="neutral")._value.get() == before + 1


def test_audit_middleware_masks_credentials_and_emails() -> None:
    audit_logger = logging.getLogger("audit.test")
    audit_logger.setLevel(logging.INFO)
    handler = _ListHandler()
    audit_logger.addHandler(handler)

    app = FastAPI()
    app.add_middleware(AuditMiddleware, logger=audit_logger)

    @app.post("/login")
    def login(payload: _Login) -> dict[str, str]:
        return {"username": payload.username}

    try:
        response = TestClient(app).post(
            "/login?token=abc",
            json={"username": "jdoe@example.com", "password": "hunter2"},
            headers={"X-Request-ID": "req-1"},
        )
    finally:
        audit_logger.removeHandler(handler)

    assert response.status_code == 200
    assert response.json() == {"username": "jdoe@example.com"}
    assert response.headers["X-Request-ID"] == "req-1"
    entry = json.loads(handler.records[-1])
    assert entry["request_id"] == "req-1"
    assert entry["path"] == "/login"
    assert entry["status"] == 200
    assert entry["body"] == {"username": "j***@example.com", "password": "***"}
    assert entry["query"] == {"token": "***"}


def test_http_metrics_use_route_templates() -> None:
    app = FastAPI()
    app.add_middleware(PrometheusMiddleware)

    @app.get("/items/{item_id}")
    def read_item(item_id: int) -> dict[str, int]:
        return {"id": item_id}

    client = TestClient(app)
    client.get("/items/1")
    client.get("/items/2")

    sample = HTTP_RESPONSES.labels(method="GET", route="/items/{item_id}", status_class="2xx")
    assert sample._value.get() >= 2


def test_scrub_redacts_survey_payloads() -> None:
    payload = {
        "rating": "bad",
        "reason": "other",
        "comment": "Cold soup",
        "recipients": "ops@example.com, chef@example.org",
        "filters": {"location": "main"},
    }

    assert scrub(payload) == {
        "rating": "bad",
        "reason": "other",
        "comment": "<9 chars>",
        "recipients": "o***@example.com, c***@example.org",
        "filters": {"location": "main"},
    }
    assert scrub(["admin@example.com"]) == ["a***@example.com"]
