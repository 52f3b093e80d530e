"""Vote submission and listing endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.orm import Session

from cafeteria_survey.api.deps import get_db_session, get_listing_filters
from cafeteria_survey.api.routes.auth import require_viewer
from cafeteria_survey.schemas import SessionUser, VoteAccepted, VoteCreate, VoteFilters, VoteRead
from cafeteria_survey.services.votes import (
    InactiveLocationError,
    SourceNotAllowedError,
    UnknownLocationError,
    list_votes,
    record_vote,
    resolve_client_ip,
)

router = APIRouter(prefix="/votes")


@router.post("", response_model=VoteAccepted, status_code=status.HTTP_201_CREATED)
def submit_vote(
    payload: VoteCreate,
    request: Request,
    session: Session = Depends(get_db_session),
) -> VoteAccepted:
    """Record a rating from the public survey page."""

    client_ip = resolve_client_ip(request.headers, request.client.host if request.client else None)
    try:
        vote = record_vote(session, payload, client_ip=client_ip)
    except UnknownLocationError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except (InactiveLocationError, SourceNotAllowedError) as exc:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc)) from exc

    return VoteAccepted(vote=VoteRead.model_validate(vote))


@router.get("", response_model=list[VoteRead])
def read_votes(
    filters: VoteFilters = Depends(get_listing_filters),
    limit: int | None = Query(default=None, ge=1, le=10000),
    session: Session = Depends(get_db_session),
    _: SessionUser = Depends(require_viewer),
) -> list[VoteRead]:
    return list_votes(session, filters, limit=limit)
