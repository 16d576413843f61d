"""Document store interface shared by the Firestore and local backends."""

from abc import ABC, abstractmethod
from typing import Any

from tutor_dashboard.models.student import ActivityRecord, LoginRecord, ReportKind

USERS = "users"
ACTIVITIES = "activities"
LOGIN_HISTORY = "loginHistory"
TEACHING_SESSIONS = "teachingSessions"


class DashboardStore(ABC):
    """Raw reads and writes against the backing document store.

    Implementations return documents as plain dicts keyed by the stored
    (camelCase) field names. Errors propagate; the service layer decides how
    to degrade.
    """

    @abstractmethod
    async def list_users(self, role: str) -> list[tuple[str, dict[str, Any]]]:
        """Return ``(user_id, document)`` pairs for users with ``role``."""

    @abstractmethod
    async def get_user(self, user_id: str) -> dict[str, Any] | None:
        """Return a user document, or None if it does not exist."""

    @abstractmethod
    async def update_user(self, user_id: str, fields: dict[str, Any]) -> None:
        """Merge ``fields`` into an existing user document."""

    @abstractmethod
    async def list_activities(self, user_id: str) -> list[ActivityRecord]:
        """Return a user's activity records, newest first."""

    @abstractmethod
    async def get_report(
        self, user_id: str, kind: ReportKind, report_id: str
    ) -> dict[str, Any] | None:
        """Return one stored role-play or self-study report."""

    @abstractmethod
    async def record_login(self, user_id: str) -> None:
        """Atomically bump lastLogin/totalLogins and append a login record."""

    @abstractmethod
    async def list_logins(self, user_id: str) -> list[LoginRecord]:
        """Return a user's login records, newest first."""

    @abstractmethod
    async def add_teaching_session(self, data: dict[str, Any]) -> str:
        """Store an archived teaching session stamped with createdAt; return its id."""

    @abstractmethod
    async def list_teaching_sessions(self, teacher_id: str) -> list[dict[str, Any]]:
        """Return a teacher's archived sessions (with ``id``), newest first."""
