"""ORM models package."""
from .authorized_user import AuthorizedUser, UserRole
from .base import Base, CreatedAtMixin
from .cafeteria import Cafeteria
from .email_settings import EmailSettings
from .report_schedule import ReportFormat, ReportFrequency, ReportSchedule
from .vote import RATING_WEIGHTS, BadReason, Rating, Vote

__all__ = [
    "AuthorizedUser",
    "BadReason",
    "Base",
    "Cafeteria",
    "CreatedAtMixin",
    "EmailSettings",
    "RATING_WEIGHTS",
    "Rating",
    "ReportFormat",
    "ReportFrequency",
    "ReportSchedule",
    "UserRole",
    "Vote",
]
