"""Cafeteria registry endpoints."""
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from cafeteria_survey.api.deps import get_db_session
from cafeteria_survey.api.routes.auth import require_admin, require_viewer
from cafeteria_survey.schemas import (
    CafeteriaCreate,
    CafeteriaDeleteResult,
    CafeteriaPublic,
    CafeteriaRead,
    CafeteriaUpdate,
    SessionUser,
)
from cafeteria_survey.services.cafeterias import (
    CafeteriaInactiveError,
    CafeteriaNotFoundError,
    DuplicateCafeteriaError,
    create_cafeteria,
    delete_cafeteria,
    get_active_cafeteria_by_code,
    get_cafeteria,
    list_cafeterias,
    update_cafeteria,
)

router = APIRouter(prefix="/cafeterias")


@router.get("", response_model=list[CafeteriaRead])
def read_cafeterias(
    include_all: bool = Query(default=False, alias="all"),
    session: Session = Depends(get_db_session),
    _: SessionUser = Depends(require_viewer),
) -> list[CafeteriaRead]:
    return [CafeteriaRead.model_validate(item) for item in list_cafeterias(session, include_inactive=include_all)]


@router.get("/by-code/{code}", response_model=CafeteriaPublic)
def read_cafeteria_by_code(code: str, session: Session = Depends(get_db_session)) -> CafeteriaPublic:
    """Public lookup used by the survey page before it accepts votes."""

    try:
        cafeteria = get_active_cafeteria_by_code(session, code)
    except CafeteriaNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except CafeteriaInactiveError as exc:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc)) from exc
    return CafeteriaPublic.model_validate(cafeteria)


@router.get("/{cafeteria_id}", response_model=CafeteriaRead)
def read_cafeteria(
    cafeteria_id: int,
    session: Session = Depends(get_db_session),
    _: SessionUser = Depends(require_viewer),
) -> CafeteriaRead:
    try:
        cafeteria = get_cafeteria(session, cafeteria_id)
    except CafeteriaNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return CafeteriaRead.model_validate(cafeteria)


@router.post("", response_model=CafeteriaRead, status_code=status.HTTP_201_CREATED)
def add_cafeteria(
    payload: CafeteriaCreate,
    session: Session = Depends(get_db_session),
    _: SessionUser = Depends(require_admin),
) -> CafeteriaRead:
    try:
        cafeteria = create_cafeteria(session, payload)
    except DuplicateCafeteriaError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    return CafeteriaRead.model_validate(cafeteria)


@router.put("/{cafeteria_id}", response_model=CafeteriaRead)
def edit_cafeteria(
    cafeteria_id: int,
    payload: CafeteriaUpdate,
    session: Session = Depends(get_db_session),
    _: SessionUser = Depends(require_admin),
) -> CafeteriaRead:
    try:
        cafeteria = update_cafeteria(session, cafeteria_id, payload)
    except CafeteriaNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return CafeteriaRead.model_validate(cafeteria)


@router.delete("/{cafeteria_id}", response_model=CafeteriaDeleteResult)
def remove_cafeteria(
    cafeteria_id: int,
    session: Session = Depends(get_db_session),
    _: SessionUser = Depends(require_admin),
) -> CafeteriaDeleteResult:
    """Delete a cafeteria; one with recorded votes is deactivated instead."""

    try:
        outcome = delete_cafeteria(session, cafeteria_id)
    except CafeteriaNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return CafeteriaDeleteResult(removed=outcome.removed, deactivated=outcome.deactivated, message=outcome.message)
