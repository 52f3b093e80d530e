"""Schemas for report schedules, email settings and dispatch results."""
from __future__ import annotations

from datetime import date, datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from cafeteria_survey.models.report_schedule import ReportFormat, ReportFrequency
from cafeteria_survey.models.vote import Rating
from cafeteria_survey.schemas.stats import ALL_LOCATIONS, StatsPeriod, VoteFilters
from cafeteria_survey.schemas.validators import validate_email


class RatingSelection(BaseModel):
    model_config = ConfigDict(extra="forbid")

    good: bool = True
    neutral: bool = True
    bad: bool = True


class ReportFilters(BaseModel):
    """Versioned filter record stored on each schedule."""

    model_config = ConfigDict(extra="forbid")

    version: Literal[1] = 1
    period: StatsPeriod | None = "month"
    location: str = Field(default=ALL_LOCATIONS, min_length=1, max_length=64)
    ratings: RatingSelection = Field(default_factory=RatingSelection)
    min_votes: int = Field(default=0, ge=0)
    date_from: date | None = None
    date_to: date | None = None

    @model_validator(mode="after")
    def _check_ratings(self) -> "ReportFilters":
        if not (self.ratings.good or self.ratings.neutral or self.ratings.bad):
            raise ValueError("at least one rating must be selected")
        return self

    @classmethod
    def from_stored(cls, data: dict[str, Any] | None) -> "ReportFilters":
        return cls.model_validate(data or {})

    def to_vote_filters(self) -> VoteFilters:
        selected = [rating for rating in Rating if getattr(self.ratings, rating.value)]
        return VoteFilters(
            period=self.period,
            date_from=self.date_from,
            date_to=self.date_to,
            location=self.location,
            ratings=[] if len(selected) == len(Rating) else selected,
            min_votes=self.min_votes,
        )


def _split_csv(value: Any) -> Any:
    if isinstance(value, str):
        return [item.strip() for item in value.split(",") if item.strip()]
    return value


class ScheduleBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    frequency: ReportFrequency
    day_of_week: int | None = Field(default=None, ge=0, le=6, description="0 = Sunday")
    day_of_month: int | None = Field(default=None, ge=1, le=31)
    hour: int = Field(..., ge=0, le=23)
    minute: int = Field(..., ge=0, le=59)
    recipients: list[str] = Field(..., min_length=1)
    formats: list[ReportFormat] = Field(..., min_length=1)
    filters: ReportFilters = Field(default_factory=ReportFilters)
    include_dashboard_image: bool = False
    active: bool = True

    @field_validator("recipients", "formats", mode="before")
    @classmethod
    def _split(cls, value: Any) -> Any:
        return _split_csv(value)

    @field_validator("recipients")
    @classmethod
    def _check_recipients(cls, value: list[str]) -> list[str]:
        return [validate_email(item) for item in value]

    @field_validator("formats")
    @classmethod
    def _dedupe_formats(cls, value: list[ReportFormat]) -> list[ReportFormat]:
        return list(dict.fromkeys(value))

    @field_validator("filters", mode="before")
    @classmethod
    def _default_filters(cls, value: Any) -> Any:
        return {} if value is None else value


class ScheduleCreate(ScheduleBase):
    model_config = ConfigDict(extra="forbid")

    @model_validator(mode="after")
    def _check_calendar_fields(self) -> "ScheduleCreate":
        if self.frequency is ReportFrequency.WEEKLY:
            if self.day_of_week is None:
                raise ValueError("day_of_week is required for weekly schedules")
        else:
            self.day_of_week = None
        if self.frequency is ReportFrequency.MONTHLY:
            if self.day_of_month is None:
                raise ValueError("day_of_month is required for monthly schedules")
        else:
            self.day_of_month = None
        return self


class ScheduleUpdate(BaseModel):
    """Partial update; merged with the stored schedule and re-validated."""

    model_config = ConfigDict(extra="forbid")

    name: str | None = None
    frequency: ReportFrequency | None = None
    day_of_week: int | None = None
    day_of_month: int | None = None
    hour: int | None = None
    minute: int | None = None
    recipients: list[str] | str | None = None
    formats: list[ReportFormat] | str | None = None
    filters: ReportFilters | None = None
    include_dashboard_image: bool | None = None
    active: bool | None = None


class ScheduleRead(ScheduleBase):
    model_config = ConfigDict(from_attributes=True)

    id: int
    last_sent: datetime | None
    created_at: datetime


class EmailSettingsBase(BaseModel):
    smtp_host: str = Field(..., min_length=1, max_length=255)
    smtp_port: int = Field(default=25, ge=1, le=65535)
    smtp_secure: bool = False
    from_email: str = Field(..., max_length=320)
    from_name: str | None = Field(default=None, max_length=255)

    @field_validator("smtp_host")
    @classmethod
    def _strip_host(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("smtp_host is required")
        return value

    @field_validator("from_email")
    @classmethod
    def _check_from(cls, value: str) -> str:
        return validate_email(value)


class EmailSettingsUpdate(EmailSettingsBase):
    model_config = ConfigDict(extra="forbid")


class EmailSettingsRead(EmailSettingsBase):
    model_config = ConfigDict(from_attributes=True)

    id: int
    updated_at: datetime


class TestEmailRequest(EmailSettingsBase):
    test_email: str | None = None

    @field_validator("test_email")
    @classmethod
    def _check_test_email(cls, value: str | None) -> str | None:
        if value is None or not value.strip():
            return None
        return validate_email(value)


class TestEmailResponse(BaseModel):
    success: bool
    message: str


class SendReportRequest(BaseModel):
    schedule_id: int


class DispatchResult(BaseModel):
    schedule_id: int
    name: str
    success: bool
    error: str | None = None
    attachments: list[str] = Field(default_factory=list)


class DispatchSummary(BaseModel):
    processed: int = 0
    successful: int = 0
    failed: int = 0
    results: list[DispatchResult] = Field(default_factory=list)

    def add(self, result: DispatchResult) -> None:
        self.results.append(result)
        self.processed += 1
        if result.success:
            self.successful += 1
        else:
            self.failed += 1


__all__ = [
    "DispatchResult",
    "DispatchSummary",
    "EmailSettingsBase",
    "EmailSettingsRead",
    "EmailSettingsUpdate",
    "RatingSelection",
    "ReportFilters",
    "ScheduleBase",
    "ScheduleCreate",
    "ScheduleRead",
    "ScheduleUpdate",
    "SendReportRequest",
    "TestEmailRequest",
    "TestEmailResponse",
]
