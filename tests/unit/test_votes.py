from __future__ import annotations

from datetime import UTC, datetime

import pytest
from pydantic import ValidationError
from sqlalchemy.orm import Session

from cafeteria_survey.models import BadReason, Cafeteria, Rating
from cafeteria_survey.schemas.stats import VoteFilters
from cafeteria_survey.schemas.vote import VoteCreate
from cafeteria_survey.services.votes import (
    InactiveLocationError,
    SourceNotAllowedError,
    UnknownLocationError,
    list_votes,
    record_vote,
    resolve_client_ip,
)


@pytest.mark.parametrize(
    "payload",
    [
        {"rating": "bad", "location": "main"},
        {"rating": "good", "location": "main", "reason": "food"},
        {"rating": "bad", "location": "main", "reason": "other"},
        {"rating": "bad", "location": "main", "reason": "other", "comment": "   "},
        {"rating": "bad", "location": "main", "reason": "food", "comment": "x" * 101},
        {"rating": "great", "location": "main"},
        {"rating": "good", "location": "main", "timestamp": "2025-01-01T00:00:00"},
    ],
)
def test_vote_payload_rules(payload: dict) -> None:
    with pytest.raises(ValidationError):
        VoteCreate.model_validate(payload)


def test_valid_vote_payloads() -> None:
    assert VoteCreate(rating=Rating.NEUTRAL, location="main").reason is None
    other = VoteCreate.model_validate({"rating": "bad", "location": "main", "reason": "other", "comment": "Too salty"})
    assert other.comment == "Too salty"


def test_record_vote_checks_cafeteria(db_session: Session) -> None:
    db_session.add_all(
        [
            Cafeteria(code="main", name="Main", active=True, authorized_ip="192.168.1.100"),
            Cafeteria(code="closed", name="Closed", active=False),
        ]
    )
    db_session.commit()

    with pytest.raises(UnknownLocationError):
        record_vote(db_session, VoteCreate(rating=Rating.GOOD, location="nowhere"), client_ip="192.168.1.100")
    with pytest.raises(InactiveLocationError):
        record_vote(db_session, VoteCreate(rating=Rating.GOOD, location="closed"), client_ip="192.168.1.100")
    with pytest.raises(SourceNotAllowedError):
        record_vote(db_session, VoteCreate(rating=Rating.GOOD, location="main"), client_ip="10.0.0.5")

    vote = record_vote(
        db_session,
        VoteCreate(rating=Rating.BAD, location="main", reason=BadReason.SERVICE),
        client_ip="192.168.1.100",
    )
    assert vote.id is not None
    assert vote.reason is BadReason.SERVICE


def test_record_vote_stores_civil_time(db_session: Session, cafeteria: Cafeteria) -> None:
    vote = record_vote(
        db_session,
        VoteCreate(rating=Rating.GOOD, location="main"),
        client_ip=None,
        now=datetime(2025, 5, 10, 15, 0, tzinfo=UTC),
    )

    assert vote.created_at == datetime(2025, 5, 10, 12, 0)


def test_list_votes_newest_first_with_location_name(db_session: Session, cafeteria: Cafeteria) -> None:
    for hour in (9, 11, 10):
        record_vote(
            db_session,
            VoteCreate(rating=Rating.GOOD, location="main"),
            client_ip=None,
            now=datetime(2025, 5, 10, hour, 0),
        )

    votes = list_votes(db_session, VoteFilters(), now=datetime(2025, 5, 11), limit=2)

    assert [vote.created_at.hour for vote in votes] == [11, 10]
    assert votes[0].location_name == "Main Cafeteria"


def test_resolve_client_ip_precedence() -> None:
    assert resolve_client_ip({"x-forwarded-for": "192.168.1.100, 10.0.0.1", "x-real-ip": "10.9.9.9"}, "1.1.1.1") == (
        "192.168.1.100"
    )
    assert resolve_client_ip({"x-real-ip": "10.9.9.9"}, "1.1.1.1") == "10.9.9.9"
    assert resolve_client_ip({}, "1.1.1.1") == "1.1.1.1"
