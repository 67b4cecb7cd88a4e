"""Plain-text rendering helpers shared by the tools."""

from datetime import datetime
from typing import Any


def format_number(value: Any) -> str:
    try:
        return f"{int(float(value)):,}"
    except (TypeError, ValueError):
        return "N/A"


def format_percent(part: float, whole: float) -> str:
    if whole <= 0:
        return "0.0%"
    return f"{part / whole * 100:.1f}%"


def format_date(value: str | None) -> str:
    if not value:
        return "N/A"
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00")).date().isoformat()
    except ValueError:
        return value


def truncate(text: str, limit: int = 200) -> str:
    return text if len(text) <= limit else f"{text[:limit]}..."


def to_float(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def report_rows(report: dict[str, Any]) -> list[dict[str, Any]]:
    """Rows of an Analytics report keyed by column name."""
    headers = [h.get("name", "") for h in report.get("columnHeaders") or []]
    return [dict(zip(headers, row)) for row in report.get("rows") or []]


def period(start_date: str, end_date: str, video_id: str | None = None) -> str:
    text = f"({start_date} to {end_date})"
    return f"{text} for video {video_id}" if video_id else text
