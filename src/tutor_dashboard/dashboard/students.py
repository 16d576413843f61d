"""Student listing and detail projections."""

import asyncio
from typing import Any

import structlog

from tutor_dashboard.dashboard.aggregator import aggregate_activities
from tutor_dashboard.dashboard.formatting import format_timestamp
from tutor_dashboard.models.student import StudentAggregate, UserDocument
from tutor_dashboard.storage.base import DashboardStore

logger = structlog.get_logger()

STUDENT_ROLE = "student"


def default_avatar_url(student_id: str, size: int = 64) -> str:
    return f"https://picsum.photos/seed/{student_id}/{size}/{size}"


class StudentService:
    """Builds StudentAggregate views from the store.

    Every call reads fresh data; nothing is cached. Store failures are
    logged and degrade to an empty result, so callers cannot tell "failed"
    from "not found".

    Args:
        store: Backing document store.
    """

    def __init__(self, store: DashboardStore):
        self.store = store

    async def _build(self, student_id: str, data: dict[str, Any]) -> StudentAggregate:
        user = UserDocument.model_validate(data)
        activities = await self.store.list_activities(student_id)
        history = aggregate_activities(activities)
        return StudentAggregate(
            id=student_id,
            name=user.name or f"Student{student_id[:4]}",
            avatar_url=user.avatar_url or default_avatar_url(student_id),
            email=user.email or "",
            role=user.role or STUDENT_ROLE,
            total_logins=user.total_logins or 0,
            last_login=format_timestamp(user.last_login),
            level_test=history.level_test,
            level_test_history=history.level_test_history,
            role_play_history=history.role_play_history,
            self_study_history=history.self_study_history,
            unrecognized_history=history.unrecognized_history,
        )

    async def list_students(self) -> list[StudentAggregate]:
        """Return every student with their aggregated activity history."""
        try:
            users = await self.store.list_users(STUDENT_ROLE)
            return list(
                await asyncio.gather(*(self._build(uid, data) for uid, data in users))
            )
        except Exception:
            logger.exception("list_students_failed")
            return []

    async def get_student(self, student_id: str) -> StudentAggregate | None:
        """Return one student's aggregate, or None if missing or unreadable."""
        try:
            data = await self.store.get_user(student_id)
            if data is None:
                logger.info("student_not_found", student_id=student_id)
                return None
            return await self._build(student_id, data)
        except Exception:
            logger.exception("get_student_failed", student_id=student_id)
            return None

    async def update_display_name(self, user_id: str, name: str) -> bool:
        """Write a new display name onto the user document."""
        try:
            await self.store.update_user(user_id, {"name": name})
        except Exception:
            logger.exception("profile_update_failed", user_id=user_id)
            return False
        logger.info("profile_updated", user_id=user_id)
        return True
