"""Report rendering: spreadsheet, delimited text and chart images."""
from __future__ import annotations

import csv
import io
import logging
import math
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime

from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill
from PIL import Image, ImageDraw, ImageFont
from sqlalchemy import select
from sqlalchemy.orm import Session

from cafeteria_survey.core.config import Settings, get_settings
from cafeteria_survey.core.timezone import civil_now, format_civil, to_civil
from cafeteria_survey.models import Cafeteria, ReportFormat, ReportSchedule
from cafeteria_survey.schemas.report import ReportFilters
from cafeteria_survey.schemas.stats import ALL_LOCATIONS, VoteFilters, VoteStats
from cafeteria_survey.schemas.vote import VoteRead
from cafeteria_survey.services.email_service import Attachment
from cafeteria_survey.services.statistics import compute_statistics
from cafeteria_survey.services.votes import list_votes

logger = logging.getLogger(__name__)

XLSX_MIME_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
CSV_MIME_TYPE = "text/csv"
PNG_MIME_TYPE = "image/png"

RATING_LABELS = {"good": "Good", "neutral": "Neutral", "bad": "Bad"}
REASON_LABELS = {"food": "Food", "service": "Service", "other": "Other"}
RATING_COLORS = {"good": "#4ade80", "neutral": "#facc15", "bad": "#f87171"}
PERIOD_LABELS = {
    "day": "Today",
    "week": "Last 7 days",
    "month": "Last month",
    "quarter": "Last 3 months",
    "year": "Last year",
}
LISTING_HEADERS = ["ID", "Date", "Rating", "Reason", "Comment", "Location"]
FONT_PATH = "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf"
BOLD_FONT_PATH = "/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf"


@dataclass(slots=True, frozen=True)
class ReportSummary:
    period: str
    total_votes: int
    satisfaction_index: int


@dataclass(slots=True)
class GeneratedReport:
    attachments: list[Attachment]
    summary: ReportSummary
    failed_formats: list[str] = field(default_factory=list)


def period_text(filters: VoteFilters) -> str:
    if filters.date_from and filters.date_to:
        return f"{filters.date_from:%d/%m/%Y} to {filters.date_to:%d/%m/%Y}"
    return PERIOD_LABELS.get(filters.period or "", "Selected period")


def _listing_rows(votes: Sequence[VoteRead]) -> list[list[object]]:
    return [
        [
            vote.id,
            vote.created_at.strftime("%d/%m/%Y %H:%M:%S"),
            RATING_LABELS[vote.rating.value],
            REASON_LABELS[vote.reason.value] if vote.reason else "-",
            vote.comment or "",
            vote.location_name or vote.location,
        ]
        for vote in votes
    ]


def render_xlsx(votes: Sequence[VoteRead], stats: VoteStats) -> bytes:
    """Workbook with a "Votes" listing sheet and a "Statistics" sheet."""

    workbook = Workbook()
    header_font = Font(bold=True, color="FFFFFF")
    header_fill = PatternFill(start_color="4472C4", end_color="4472C4", fill_type="solid")

    votes_sheet = workbook.active
    votes_sheet.title = "Votes"
    votes_sheet.append(LISTING_HEADERS)
    for row in _listing_rows(votes):
        votes_sheet.append(row)
        # vote comments are written as text, never as formulas
        for cell in votes_sheet[votes_sheet.max_row]:
            if cell.data_type == "f":
                cell.data_type = "s"

    stats_sheet = workbook.create_sheet("Statistics")
    stats_sheet.append(["Metric", "Value"])
    stats_sheet.append(["Total votes", stats.total_votes])
    stats_sheet.append(["Good ratings", stats.rating_counts.good])
    stats_sheet.append(["Neutral ratings", stats.rating_counts.neutral])
    stats_sheet.append(["Bad ratings", stats.rating_counts.bad])
    stats_sheet.append(["Satisfaction index", f"{stats.satisfaction_index}%"])

    for sheet in (votes_sheet, stats_sheet):
        for cell in sheet[1]:
            cell.font = header_font
            cell.fill = header_fill

    votes_sheet.column_dimensions["B"].width = 20
    votes_sheet.column_dimensions["E"].width = 40
    votes_sheet.column_dimensions["F"].width = 25
    stats_sheet.column_dimensions["A"].width = 22

    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


def render_csv(votes: Sequence[VoteRead]) -> bytes:
    """UTF-8 with BOM, every field quoted, ``\\n`` line endings."""

    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(LISTING_HEADERS)
    writer.writerows(_listing_rows(votes))
    return buffer.getvalue().rstrip("\n").encode("utf-8-sig")


def _font(size: int, *, bold: bool = False) -> ImageFont.ImageFont | ImageFont.FreeTypeFont:
    try:
        return ImageFont.truetype(BOLD_FONT_PATH if bold else FONT_PATH, size)
    except (IOError, OSError):
        return ImageFont.load_default()


def _centered_text(draw: ImageDraw.ImageDraw, center: tuple[float, float], text: str, font, fill: str) -> None:
    left, top, right, bottom = draw.textbbox((0, 0), text, font=font)
    draw.text((center[0] - (right - left) / 2, center[1] - (bottom - top) / 2), text, fill=fill, font=font)


def _to_png(image: Image.Image) -> bytes:
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


def render_chart_png(stats: VoteStats) -> bytes:
    width, height = 800, 400
    image = Image.new("RGB", (width, height), color="white")
    draw = ImageDraw.Draw(image)

    draw.text((20, 20), "Satisfaction Report", fill="black", font=_font(24, bold=True))
    body_font = _font(18)
    draw.text((20, 70), f"Total ratings: {stats.total_votes}", fill="black", font=body_font)
    draw.text((20, 100), f"Satisfaction index: {stats.satisfaction_index}%", fill="black", font=body_font)

    if stats.total_votes == 0:
        draw.text((400, 190), "No data to display", fill="black", font=body_font)
        return _to_png(image)

    center_x, center_y, radius = 560, 170, 130
    counts = stats.rating_counts.model_dump()
    label_font = _font(16, bold=True)
    start = -90.0
    for rating, color in RATING_COLORS.items():
        count = counts[rating]
        if not count:
            continue
        sweep = count / stats.total_votes * 360
        draw.pieslice(
            [center_x - radius, center_y - radius, center_x + radius, center_y + radius],
            start,
            start + sweep,
            fill=color,
        )
        middle = math.radians(start + sweep / 2)
        _centered_text(
            draw,
            (center_x + math.cos(middle) * radius * 0.7, center_y + math.sin(middle) * radius * 0.7),
            f"{round(count / stats.total_votes * 100)}%",
            label_font,
            "white",
        )
        start += sweep

    legend_font = _font(14)
    legend_y = 150
    for rating, color in RATING_COLORS.items():
        if not counts[rating]:
            continue
        draw.rectangle([20, legend_y, 40, legend_y + 20], fill=color)
        draw.text((50, legend_y + 2), f"{RATING_LABELS[rating]}: {counts[rating]}", fill="black", font=legend_font)
        legend_y += 30

    return _to_png(image)


def render_dashboard_png(period: str, location: str, generated_at: datetime) -> bytes:
    """Dashboard-context image summarising the filters the report was built with."""

    image = Image.new("RGB", (1200, 800), color="white")
    draw = ImageDraw.Draw(image)
    draw.text((20, 20), "Survey Dashboard", fill="black", font=_font(32, bold=True))
    body_font = _font(18)
    draw.text((20, 90), f"Period: {period}", fill="black", font=body_font)
    draw.text((20, 120), f"Location: {location}", fill="black", font=body_font)
    draw.text((20, 150), f"Generated at: {format_civil(generated_at)}", fill="black", font=body_font)
    draw.text(
        (20, 200),
        "This is a summary of the dashboard. Open the system for the full view.",
        fill="#666666",
        font=_font(16),
    )
    return _to_png(image)


class ReportGenerator:
    """Builds report attachments for a schedule or an ad-hoc filter set."""

    def __init__(self, session: Session, settings: Settings | None = None) -> None:
        self._session = session
        self._settings = settings or get_settings()

    def generate(self, schedule: ReportSchedule, now: datetime | None = None) -> GeneratedReport:
        filters = ReportFilters.from_stored(schedule.filters).to_vote_filters()
        return self.build(
            filters,
            schedule.format_list,
            now=now,
            include_dashboard_image=schedule.include_dashboard_image,
        )

    def build(
        self,
        filters: VoteFilters,
        formats: Sequence[ReportFormat],
        *,
        now: datetime | None = None,
        include_dashboard_image: bool = False,
    ) -> GeneratedReport:
        now = to_civil(now) if now is not None else civil_now(self._settings)
        votes = list_votes(self._session, filters, now=now)
        stats = compute_statistics(self._session, filters, now=now)
        period = period_text(filters)
        stamp = now.strftime("%Y-%m-%d")

        renderers = {
            ReportFormat.XLSX: lambda: [
                Attachment(f"survey-report-{stamp}.xlsx", render_xlsx(votes, stats), XLSX_MIME_TYPE)
            ],
            ReportFormat.CSV: lambda: [Attachment(f"survey-report-{stamp}.csv", render_csv(votes), CSV_MIME_TYPE)],
            ReportFormat.PNG: lambda: self._images(stats, filters, period, now, stamp, include_dashboard_image),
        }

        report = GeneratedReport(
            attachments=[],
            summary=ReportSummary(
                period=period,
                total_votes=stats.total_votes,
                satisfaction_index=stats.satisfaction_index,
            ),
        )
        for report_format in map(ReportFormat, formats):
            try:
                report.attachments.extend(renderers[report_format]())
            except Exception as exc:  # noqa: BLE001
                report.failed_formats.append(report_format.value)
                logger.warning(
                    "report format generation failed",
                    extra={"format": report_format.value, "error": str(exc)},
                )
        return report

    def _images(
        self,
        stats: VoteStats,
        filters: VoteFilters,
        period: str,
        now: datetime,
        stamp: str,
        include_dashboard_image: bool,
    ) -> list[Attachment]:
        images = [Attachment(f"survey-chart-{stamp}.png", render_chart_png(stats), PNG_MIME_TYPE)]
        if include_dashboard_image:
            images.append(
                Attachment(
                    f"survey-dashboard-{stamp}.png",
                    render_dashboard_png(period, self._location_label(filters.location), now),
                    PNG_MIME_TYPE,
                )
            )
        return images

    def _location_label(self, location: str) -> str:
        if location == ALL_LOCATIONS:
            return "All"
        name = self._session.scalar(select(Cafeteria.name).where(Cafeteria.code == location))
        return name or location


__all__ = [
    "CSV_MIME_TYPE",
    "GeneratedReport",
    "PNG_MIME_TYPE",
    "ReportGenerator",
    "ReportSummary",
    "XLSX_MIME_TYPE",
    "period_text",
    "render_chart_png",
    "render_csv",
    "render_dashboard_png",
    "render_xlsx",
]
