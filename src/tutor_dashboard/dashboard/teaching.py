"""Archive of completed teaching sessions."""

from datetime import datetime

import structlog

from tutor_dashboard.models.session import SessionContext, SessionReport, TeachingSession
from tutor_dashboard.storage.base import DashboardStore

logger = structlog.get_logger()


async def save_teaching_session(
    store: DashboardStore,
    context: SessionContext,
    student_id: str,
    student_name: str,
    started_at: datetime,
    report: SessionReport,
) -> str:
    """Archive a completed session for the signed-in teacher; return its id."""
    session = TeachingSession(
        teacher_id=context.teacher_id,
        teacher_name=context.teacher_name,
        student_id=student_id,
        student_name=student_name,
        started_at=started_at,
        transcript=report.transcript,
        evaluation=report.evaluation,
    )
    data = session.model_dump(by_alias=True, exclude={"id", "created_at"}, mode="json")
    session_id = await store.add_teaching_session(data)
    logger.info("teaching_session_saved", session_id=session_id, student_id=student_id)
    return session_id


async def list_teaching_sessions(
    store: DashboardStore, teacher_id: str
) -> list[TeachingSession]:
    """Return a teacher's archived sessions, newest first."""
    if not teacher_id:
        return []
    try:
        docs = await store.list_teaching_sessions(teacher_id)
    except Exception:
        logger.exception("teaching_sessions_fetch_failed", teacher_id=teacher_id)
        return []
    return [TeachingSession.model_validate(doc) for doc in docs]
