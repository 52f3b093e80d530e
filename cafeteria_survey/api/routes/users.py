"""Authorized-user management endpoints (admin only)."""
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from cafeteria_survey.api.deps import get_db_session
from cafeteria_survey.api.routes.auth import require_admin
from cafeteria_survey.schemas import AuthorizedUserCreate, AuthorizedUserRead, AuthorizedUserRoleUpdate
from cafeteria_survey.services.users import (
    DuplicateUserError,
    UserNotFoundError,
    create_user,
    delete_user,
    list_users,
    update_user_role,
)

router = APIRouter(prefix="/users", dependencies=[Depends(require_admin)])


@router.get("", response_model=list[AuthorizedUserRead])
def read_users(session: Session = Depends(get_db_session)) -> list[AuthorizedUserRead]:
    return [AuthorizedUserRead.model_validate(user) for user in list_users(session)]


@router.post("", response_model=AuthorizedUserRead, status_code=status.HTTP_201_CREATED)
def add_user(payload: AuthorizedUserCreate, session: Session = Depends(get_db_session)) -> AuthorizedUserRead:
    try:
        user = create_user(session, payload)
    except DuplicateUserError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    return AuthorizedUserRead.model_validate(user)


@router.put("/{user_id}/role", response_model=AuthorizedUserRead)
def change_role(
    user_id: int,
    payload: AuthorizedUserRoleUpdate,
    session: Session = Depends(get_db_session),
) -> AuthorizedUserRead:
    try:
        user = update_user_role(session, user_id, payload.role)
    except UserNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return AuthorizedUserRead.model_validate(user)


@router.delete("/{user_id}")
def remove_user(user_id: int, session: Session = Depends(get_db_session)) -> dict[str, bool]:
    try:
        delete_user(session, user_id)
    except UserNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return {"success": True}
