"""Stored report lookup for the student detail view."""

import itertools
from typing import Any

import structlog

from tutor_dashboard.models.student import ReportKind
from tutor_dashboard.storage.base import DashboardStore

logger = structlog.get_logger()


async def fetch_report(
    store: DashboardStore, student_id: str, kind: ReportKind, report_id: str
) -> dict[str, Any] | None:
    """Fetch one role-play or self-study report; None if missing or on error."""
    try:
        return await store.get_report(student_id, kind, report_id)
    except Exception:
        logger.exception(
            "report_fetch_failed",
            student_id=student_id,
            kind=kind.value,
            report_id=report_id,
        )
        return None


class ReportViewer:
    """Holds the report currently on display.

    Each request takes a sequence token. When requests overlap, only the
    most recently issued one may update ``current``; results of older
    requests are dropped whatever order they resolve in.

    Args:
        store: Backing document store.
    """

    def __init__(self, store: DashboardStore):
        self.store = store
        self.current: dict[str, Any] | None = None
        self.loading = False
        self._tokens = itertools.count(1)
        self._latest = 0

    async def show(self, student_id: str, kind: ReportKind, report_id: str) -> bool:
        """Fetch a report and display it unless a newer request superseded it.

        Returns:
            True if this request's result was applied.
        """
        token = next(self._tokens)
        self._latest = token
        self.current = None
        self.loading = True

        report = await fetch_report(self.store, student_id, kind, report_id)

        if token != self._latest:
            logger.debug("stale_report_discarded", report_id=report_id, token=token)
            return False
        self.current = report
        self.loading = False
        return True
