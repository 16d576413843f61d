"""Firestore-backed document store."""

from typing import Any

import structlog
from google.cloud import firestore
from google.cloud.firestore_v1.base_query import FieldFilter

from tutor_dashboard.models.student import ActivityRecord, LoginRecord, ReportKind
from tutor_dashboard.storage.base import (
    ACTIVITIES,
    LOGIN_HISTORY,
    TEACHING_SESSIONS,
    USERS,
    DashboardStore,
)

logger = structlog.get_logger()


class FirestoreStore(DashboardStore):
    """Reads and writes the dashboard collections in Cloud Firestore.

    Args:
        client: Async Firestore client. Built from ``project``/``database``
            when omitted.
        project: Google Cloud project id.
        database: Firestore database id.
    """

    def __init__(
        self,
        client: firestore.AsyncClient | None = None,
        project: str | None = None,
        database: str | None = None,
    ):
        self.db = client or firestore.AsyncClient(project=project, database=database)

    def _user(self, user_id: str) -> firestore.AsyncDocumentReference:
        return self.db.collection(USERS).document(user_id)

    async def list_users(self, role: str) -> list[tuple[str, dict[str, Any]]]:
        query = self.db.collection(USERS).where(filter=FieldFilter("role", "==", role))
        return [(snap.id, snap.to_dict() or {}) async for snap in query.stream()]

    async def get_user(self, user_id: str) -> dict[str, Any] | None:
        snap = await self._user(user_id).get()
        if not snap.exists:
            return None
        return snap.to_dict() or {}

    async def update_user(self, user_id: str, fields: dict[str, Any]) -> None:
        await self._user(user_id).update(fields)

    async def list_activities(self, user_id: str) -> list[ActivityRecord]:
        query = self._user(user_id).collection(ACTIVITIES).order_by(
            "timestamp", direction=firestore.Query.DESCENDING
        )
        return [
            ActivityRecord.from_document(snap.id, snap.to_dict() or {})
            async for snap in query.stream()
        ]

    async def get_report(
        self, user_id: str, kind: ReportKind, report_id: str
    ) -> dict[str, Any] | None:
        snap = await self._user(user_id).collection(kind.collection).document(report_id).get()
        if not snap.exists:
            return None
        return snap.to_dict()

    async def record_login(self, user_id: str) -> None:
        user_ref = self._user(user_id)
        batch = self.db.batch()
        batch.set(
            user_ref,
            {"lastLogin": firestore.SERVER_TIMESTAMP, "totalLogins": firestore.Increment(1)},
            merge=True,
        )
        batch.set(
            user_ref.collection(LOGIN_HISTORY).document(),
            {"timestamp": firestore.SERVER_TIMESTAMP},
        )
        await batch.commit()
        logger.debug("firestore_login_recorded", user_id=user_id)

    async def list_logins(self, user_id: str) -> list[LoginRecord]:
        query = self._user(user_id).collection(LOGIN_HISTORY).order_by(
            "timestamp", direction=firestore.Query.DESCENDING
        )
        return [
            LoginRecord(id=snap.id, timestamp=(snap.to_dict() or {}).get("timestamp"))
            async for snap in query.stream()
        ]

    async def add_teaching_session(self, data: dict[str, Any]) -> str:
        _, ref = await self.db.collection(TEACHING_SESSIONS).add(
            {**data, "createdAt": firestore.SERVER_TIMESTAMP}
        )
        return ref.id

    async def list_teaching_sessions(self, teacher_id: str) -> list[dict[str, Any]]:
        query = (
            self.db.collection(TEACHING_SESSIONS)
            .where(filter=FieldFilter("teacherId", "==", teacher_id))
            .order_by("createdAt", direction=firestore.Query.DESCENDING)
        )
        return [{"id": snap.id, **(snap.to_dict() or {})} async for snap in query.stream()]
