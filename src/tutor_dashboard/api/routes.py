"""REST API routes for students, reports, logins and teaching sessions."""

from typing import Any

import structlog
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from tutor_dashboard.api import deps
from tutor_dashboard.dashboard.logins import LoginHistoryRecorder
from tutor_dashboard.dashboard.reports import fetch_report
from tutor_dashboard.dashboard.students import StudentService
from tutor_dashboard.dashboard.teaching import list_teaching_sessions
from tutor_dashboard.models.session import SessionContext, TeachingSession
from tutor_dashboard.models.student import LoginRecord, ReportKind, StudentAggregate

logger = structlog.get_logger()
router = APIRouter(prefix="/api")


class ProfileUpdate(BaseModel):
    name: str = Field(min_length=2, max_length=50)


@router.get("/health")
async def health_check() -> dict:
    """Health check endpoint."""
    return {"status": "ok"}


@router.get("/students")
async def list_students() -> list[StudentAggregate]:
    """List all students with their aggregated history."""
    return await StudentService(deps.get_store()).list_students()


@router.get("/students/{student_id}")
async def get_student(student_id: str) -> StudentAggregate:
    """Get one student's aggregate."""
    student = await StudentService(deps.get_store()).get_student(student_id)
    if student is None:
        raise HTTPException(status_code=404, detail="Student not found")
    return student


@router.get("/students/{student_id}/reports/{kind}/{report_id}")
async def get_report(student_id: str, kind: ReportKind, report_id: str) -> dict[str, Any]:
    """Get a stored role-play or self-study report."""
    report = await fetch_report(deps.get_store(), student_id, kind, report_id)
    if report is None:
        raise HTTPException(status_code=404, detail="Report not found")
    return report


@router.post("/logins/{user_id}")
async def record_login(user_id: str) -> dict:
    """Record one successful authentication."""
    try:
        await LoginHistoryRecorder(deps.get_store()).record(user_id)
    except Exception:
        logger.exception("login_record_failed", user_id=user_id)
        raise HTTPException(status_code=503, detail="Could not record login")
    return {"status": "recorded"}


@router.get("/logins/{user_id}")
async def get_login_history(user_id: str) -> list[LoginRecord]:
    """List a user's logins, newest first."""
    return await LoginHistoryRecorder(deps.get_store()).history(user_id)


@router.patch("/profile")
async def update_profile(
    update: ProfileUpdate,
    context: SessionContext = Depends(deps.get_session_context),
) -> dict:
    """Change the signed-in teacher's display name."""
    if not context.teacher_id:
        raise HTTPException(status_code=401, detail="No signed-in teacher")
    updated = await StudentService(deps.get_store()).update_display_name(
        context.teacher_id, update.name
    )
    if not updated:
        raise HTTPException(status_code=503, detail="Could not update profile")
    return {"status": "updated", "name": update.name}


@router.get("/teaching-sessions")
async def get_teaching_sessions(
    context: SessionContext = Depends(deps.get_session_context),
) -> list[TeachingSession]:
    """List the signed-in teacher's archived sessions, newest first."""
    return await list_teaching_sessions(deps.get_store(), context.teacher_id)
