"""Authentication endpoints and session-token dependencies."""
from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime, timedelta

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt  # type: ignore[import-untyped]
from pydantic import BaseModel, ValidationError
from sqlalchemy.orm import Session

from cafeteria_survey.api.deps import get_db_session, get_directory_authenticator
from cafeteria_survey.core.config import Settings, get_settings
from cafeteria_survey.models import UserRole
from cafeteria_survey.schemas.user import LoginRequest, LoginResponse, SessionUser
from cafeteria_survey.services.auth import InvalidCredentialsError, UserNotAuthorizedError, authenticate_user
from cafeteria_survey.services.directory import DirectoryAuthenticator, DirectoryUnavailableError

router = APIRouter()
security_scheme = HTTPBearer(auto_error=False)


class TokenPayload(BaseModel):
    sub: str
    username: str
    role: UserRole
    iat: datetime
    exp: datetime


def create_session_token(user: SessionUser, settings: Settings, now: datetime | None = None) -> str:
    issued = now or datetime.now(UTC)
    payload = {
        "sub": user.email,
        "username": user.username,
        "role": user.role.value,
        "iat": int(issued.timestamp()),
        "exp": int((issued + timedelta(hours=settings.session_expire_hours)).timestamp()),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_session_token(token: str, settings: Settings) -> SessionUser:
    try:
        payload = TokenPayload(**jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm]))
    except (JWTError, ValidationError) as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token") from exc
    return SessionUser(email=payload.sub, username=payload.username, role=payload.role)


def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(security_scheme),
) -> SessionUser:
    """Resolve the caller from a Bearer header, falling back to the session cookie."""

    settings = get_settings()
    token = credentials.credentials if credentials else request.cookies.get(settings.session_cookie_name)
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    user = decode_session_token(token, settings)
    request.state.actor_email = user.email
    return user


def require_role(*roles: UserRole) -> Callable[..., SessionUser]:
    allowed_roles: set[UserRole] = set(roles)

    def dependency(user: SessionUser = Depends(get_current_user)) -> SessionUser:
        if user.role not in allowed_roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions",
            )
        return user

    return dependency


require_admin = require_role(UserRole.ADMIN)
require_viewer = require_role(UserRole.ADMIN, UserRole.READONLY)


@router.post("/login", response_model=LoginResponse, summary="Sign in with directory credentials")
def login(
    payload: LoginRequest,
    response: Response,
    session: Session = Depends(get_db_session),
    directory: DirectoryAuthenticator = Depends(get_directory_authenticator),
) -> LoginResponse:
    settings = get_settings()
    try:
        user = authenticate_user(session, directory, payload.username, payload.password, settings)
    except UserNotAuthorizedError as exc:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc)) from exc
    except InvalidCredentialsError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc)) from exc
    except DirectoryUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc

    token = create_session_token(user, settings)
    response.set_cookie(
        key=settings.session_cookie_name,
        value=token,
        max_age=settings.session_expire_hours * 3600,
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite="lax",
        path="/",
    )
    return LoginResponse(token=token, user=user)


@router.post("/logout", summary="Clear the session cookie")
def logout(response: Response) -> dict[str, bool]:
    response.delete_cookie(get_settings().session_cookie_name, path="/")
    return {"success": True}


@router.get("/me", response_model=SessionUser, summary="Current session user")
def me(user: SessionUser = Depends(get_current_user)) -> SessionUser:
    return user


__all__ = [
    "TokenPayload",
    "create_session_token",
    "decode_session_token",
    "get_current_user",
    "require_admin",
    "require_role",
    "require_viewer",
    "router",
]
