"""Login history recording."""

import structlog

from tutor_dashboard.models.student import LoginRecord
from tutor_dashboard.storage.base import DashboardStore

logger = structlog.get_logger()


class LoginHistoryRecorder:
    """Records authentication events on the user document.

    Args:
        store: Backing document store.
    """

    def __init__(self, store: DashboardStore):
        self.store = store

    async def record(self, user_id: str) -> None:
        """Bump the rolling counter and append one login record.

        Called once per successful authentication; repeated logins are
        never deduplicated. Write errors propagate to the caller.
        """
        await self.store.record_login(user_id)
        logger.info("login_recorded", user_id=user_id)

    async def history(self, user_id: str) -> list[LoginRecord]:
        """Return login records newest first, or [] if they cannot be read."""
        try:
            return await self.store.list_logins(user_id)
        except Exception:
            logger.exception("login_history_fetch_failed", user_id=user_id)
            return []
