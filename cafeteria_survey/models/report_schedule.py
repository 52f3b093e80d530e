"""Report schedule ORM model."""
from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import JSON, Boolean, DateTime, Enum, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from cafeteria_survey.models.base import Base, CreatedAtMixin


class ReportFrequency(str, enum.Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    CUSTOM = "custom"


class ReportFormat(str, enum.Enum):
    XLSX = "xlsx"
    CSV = "csv"
    PNG = "png"


class ReportSchedule(CreatedAtMixin, Base):
    """Recurring (or manually triggered) emailed report configuration.

    ``day_of_week`` uses 0 for Sunday through 6 for Saturday.
    """

    __tablename__ = "report_schedules"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    frequency: Mapped[ReportFrequency] = mapped_column(
        Enum(
            ReportFrequency,
            name="report_frequency",
            values_callable=lambda enum_cls: [item.value for item in enum_cls],
        ),
        nullable=False,
    )
    day_of_week: Mapped[int | None] = mapped_column(Integer)
    day_of_month: Mapped[int | None] = mapped_column(Integer)
    hour: Mapped[int] = mapped_column(Integer, nullable=False)
    minute: Mapped[int] = mapped_column(Integer, nullable=False)
    recipients: Mapped[str] = mapped_column(Text, nullable=False)
    formats: Mapped[str] = mapped_column(String(64), nullable=False)
    filters: Mapped[dict | None] = mapped_column(JSON)
    include_dashboard_image: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    last_sent: Mapped[datetime | None] = mapped_column(DateTime())

    @property
    def recipient_list(self) -> list[str]:
        return [item.strip() for item in self.recipients.split(",") if item.strip()]

    @property
    def format_list(self) -> list[ReportFormat]:
        return [ReportFormat(item.strip()) for item in self.formats.split(",") if item.strip()]


__all__ = ["ReportFormat", "ReportFrequency", "ReportSchedule"]
