"""Plain-text export of a completed session report."""

import re
from datetime import datetime
from pathlib import Path

import structlog

from tutor_dashboard.models.session import SessionReport

logger = structlog.get_logger()

DEFAULT_TEACHER_NAME = "Teacher"
SEPARATOR = "---------------"


def _underscored(name: str) -> str:
    return re.sub(r"\s", "_", name)


def report_filename(started_at: datetime, teacher_name: str, student_name: str) -> str:
    """Build ``{YYMMDD}_{HHMM}_{teacher}_{student}.txt`` for a session."""
    teacher = _underscored(teacher_name or DEFAULT_TEACHER_NAME)
    student = _underscored(student_name)
    return f"{started_at:%y%m%d}_{started_at:%H%M}_{teacher}_{student}.txt"


def render_report(
    started_at: datetime,
    teacher_name: str,
    student_name: str,
    report: SessionReport,
) -> str:
    """Render the export text. The layout is fixed and has no trailing newline."""
    hour = started_at.hour % 12 or 12
    suffix = "AM" if started_at.hour < 12 else "PM"
    lines = [
        "Session Details",
        SEPARATOR,
        f"Date: {started_at:%B} {started_at.day}, {started_at.year}",
        f"Time: {hour:02d}:{started_at.minute:02d} {suffix}",
        f"Teacher: {teacher_name or DEFAULT_TEACHER_NAME}",
        f"Student: {student_name}",
        "",
        SEPARATOR,
        "Organizing the contents of the class:",
        report.evaluation,
        "",
        SEPARATOR,
        "Transcript:",
        report.transcript,
    ]
    return "\n".join(lines)


def write_report(
    output_dir: Path,
    started_at: datetime,
    teacher_name: str,
    student_name: str,
    report: SessionReport,
) -> Path:
    """Write the export file into ``output_dir`` and return its path."""
    output_dir.mkdir(parents=True, exist_ok=True)
    path = output_dir / report_filename(started_at, teacher_name, student_name)
    path.write_text(render_report(started_at, teacher_name, student_name, report), encoding="utf-8")
    logger.info("report_exported", path=str(path))
    return path
