"""Shared API dependencies."""

import functools
from collections.abc import Mapping

from fastapi import Request

from tutor_dashboard.config import get_settings
from tutor_dashboard.models.session import SessionContext
from tutor_dashboard.storage.base import DashboardStore
from tutor_dashboard.storage.factory import create_store


@functools.lru_cache
def get_store() -> DashboardStore:
    """Get the configured store singleton."""
    return create_store(get_settings())


def context_from_headers(headers: Mapping[str, str]) -> SessionContext:
    """Build the caller's SessionContext from X-Teacher-* headers."""
    return SessionContext(
        teacher_id=headers.get("x-teacher-id", ""),
        teacher_name=headers.get("x-teacher-name") or "Teacher",
        email=headers.get("x-teacher-email", ""),
    )


def get_session_context(request: Request) -> SessionContext:
    return context_from_headers(request.headers)
