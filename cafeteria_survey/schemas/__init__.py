"""Pydantic schemas package."""

from .cafeteria import (
    CafeteriaCreate,
    CafeteriaDeleteResult,
    CafeteriaPublic,
    CafeteriaRead,
    CafeteriaUpdate,
)
from .report import (
    DispatchResult,
    DispatchSummary,
    EmailSettingsRead,
    EmailSettingsUpdate,
    ReportFilters,
    ScheduleCreate,
    ScheduleRead,
    ScheduleUpdate,
    SendReportRequest,
    TestEmailRequest,
    TestEmailResponse,
)
from .stats import Forecast, ForecastPoint, RatingCounts, ReasonCounts, VoteFilters, VoteStats
from .user import (
    AuthorizedUserCreate,
    AuthorizedUserRead,
    AuthorizedUserRoleUpdate,
    LoginRequest,
    LoginResponse,
    SessionUser,
)
from .vote import VoteAccepted, VoteCreate, VoteRead

__all__ = [
    "AuthorizedUserCreate",
    "AuthorizedUserRead",
    "AuthorizedUserRoleUpdate",
    "CafeteriaCreate",
    "CafeteriaDeleteResult",
    "CafeteriaPublic",
    "CafeteriaRead",
    "CafeteriaUpdate",
    "DispatchResult",
    "DispatchSummary",
    "EmailSettingsRead",
    "EmailSettingsUpdate",
    "Forecast",
    "ForecastPoint",
    "LoginRequest",
    "LoginResponse",
    "RatingCounts",
    "ReasonCounts",
    "ReportFilters",
    "ScheduleCreate",
    "ScheduleRead",
    "ScheduleUpdate",
    "SendReportRequest",
    "SessionUser",
    "TestEmailRequest",
    "TestEmailResponse",
    "VoteAccepted",
    "VoteCreate",
    "VoteFilters",
    "VoteRead",
    "VoteStats",
]
