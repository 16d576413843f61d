"""Local document store (JSON + fcntl.flock + atomic write).

Lays documents out the way the hosted store does: one JSON file per user
holding the user document and its sub-collections, plus one file for
archived teaching sessions.
"""

import asyncio
import contextlib
import fcntl
import json
import os
import tempfile
import uuid
from collections.abc import Iterator
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import structlog

from tutor_dashboard.models.student import ActivityRecord, LoginRecord, ReportKind
from tutor_dashboard.storage.base import (
    ACTIVITIES,
    LOGIN_HISTORY,
    TEACHING_SESSIONS,
    USERS,
    DashboardStore,
)

logger = structlog.get_logger()

SESSIONS_FILENAME = "teaching_sessions.json"


def _parse_time(value: Any) -> datetime | None:
    if isinstance(value, datetime):
        return value
    if isinstance(value, str) and value:
        return datetime.fromisoformat(value)
    return None


def _newest_first(
    docs: dict[str, dict[str, Any]], field: str
) -> list[tuple[str, dict[str, Any]]]:
    """Order documents by ``field`` descending, dropping those without it."""
    dated = [(doc_id, data) for doc_id, data in docs.items() if _parse_time(data.get(field))]
    return sorted(dated, key=lambda pair: _parse_time(pair[1][field]), reverse=True)


class LocalStore(DashboardStore):
    """File-backed store for development and tests.

    Args:
        root: Directory holding the store files.
    """

    def __init__(self, root: Path):
        self.root = root
        self.users_dir = root / USERS
        self.users_dir.mkdir(parents=True, exist_ok=True)

    # -- file helpers -----------------------------------------------------

    def _user_path(self, user_id: str) -> Path:
        if not user_id or "/" in user_id or user_id.startswith("."):
            raise ValueError(f"Invalid user id: {user_id!r}")
        return self.users_dir / f"{user_id}.json"

    @contextlib.contextmanager
    def _locked(self, path: Path) -> Iterator[None]:
        lock_path = path.with_suffix(path.suffix + ".lock")
        with open(lock_path, "w") as lock_file:
            fcntl.flock(lock_file, fcntl.LOCK_EX)
            try:
                yield
            finally:
                fcntl.flock(lock_file, fcntl.LOCK_UN)

    def _read(self, path: Path) -> dict[str, Any] | None:
        if not path.exists():
            return None
        with open(path, encoding="utf-8") as f:
            fcntl.flock(f, fcntl.LOCK_SH)
            data = json.load(f)
            fcntl.flock(f, fcntl.LOCK_UN)
        return data

    def _write(self, path: Path, data: dict[str, Any]) -> None:
        with tempfile.NamedTemporaryFile(
            "w", dir=path.parent, delete=False, suffix=".tmp", encoding="utf-8"
        ) as tmp:
            json.dump(data, tmp, indent=2, default=str)
        os.replace(tmp.name, path)

    def put_user(self, user_id: str, user: dict[str, Any], **collections: dict) -> None:
        """Write a whole user file (document plus sub-collections); used for seeding."""
        path = self._user_path(user_id)
        with self._locked(path):
            self._write(path, {"user": user, **collections})

    # -- blocking operations (run in a worker thread) ----------------------

    def _list_users(self, role: str) -> list[tuple[str, dict[str, Any]]]:
        users = []
        for path in sorted(self.users_dir.glob("*.json")):
            data = self._read(path) or {}
            user = data.get("user", {})
            if user.get("role") == role:
                users.append((path.stem, user))
        return users

    def _user_file(self, user_id: str) -> dict[str, Any] | None:
        return self._read(self._user_path(user_id))

    def _update_user(self, user_id: str, fields: dict[str, Any]) -> None:
        path = self._user_path(user_id)
        with self._locked(path):
            data = self._read(path)
            if data is None:
                raise KeyError(f"No user document: {user_id}")
            data.setdefault("user", {}).update(fields)
            self._write(path, data)

    def _record_login(self, user_id: str) -> None:
        path = self._user_path(user_id)
        now = datetime.now(UTC).isoformat()
        with self._locked(path):
            data = self._read(path) or {"user": {}}
            user = data.setdefault("user", {})
            user["lastLogin"] = now
            user["totalLogins"] = int(user.get("totalLogins") or 0) + 1
            data.setdefault(LOGIN_HISTORY, {})[uuid.uuid4().hex] = {"timestamp": now}
            self._write(path, data)

    def _sessions(self) -> dict[str, dict[str, Any]]:
        stored = self._read(self.root / SESSIONS_FILENAME) or {}
        return stored.get(TEACHING_SESSIONS, {})

    def _add_teaching_session(self, data: dict[str, Any]) -> str:
        path = self.root / SESSIONS_FILENAME
        session_id = uuid.uuid4().hex
        with self._locked(path):
            stored = self._read(path) or {TEACHING_SESSIONS: {}}
            stored[TEACHING_SESSIONS][session_id] = {
                **data,
                "createdAt": datetime.now(UTC).isoformat(),
            }
            self._write(path, stored)
        return session_id

    # -- DashboardStore ---------------------------------------------------

    async def list_users(self, role: str) -> list[tuple[str, dict[str, Any]]]:
        return await asyncio.to_thread(self._list_users, role)

    async def get_user(self, user_id: str) -> dict[str, Any] | None:
        data = await asyncio.to_thread(self._user_file, user_id)
        if data is None:
            return None
        return data.get("user", {})

    async def update_user(self, user_id: str, fields: dict[str, Any]) -> None:
        await asyncio.to_thread(self._update_user, user_id, fields)

    async def list_activities(self, user_id: str) -> list[ActivityRecord]:
        data = await asyncio.to_thread(self._user_file, user_id) or {}
        return [
            ActivityRecord.from_document(doc_id, doc)
            for doc_id, doc in _newest_first(data.get(ACTIVITIES, {}), "timestamp")
        ]

    async def get_report(
        self, user_id: str, kind: ReportKind, report_id: str
    ) -> dict[str, Any] | None:
        data = await asyncio.to_thread(self._user_file, user_id) or {}
        return data.get(kind.collection, {}).get(report_id)

    async def record_login(self, user_id: str) -> None:
        await asyncio.to_thread(self._record_login, user_id)
        logger.debug("local_login_recorded", user_id=user_id)

    async def list_logins(self, user_id: str) -> list[LoginRecord]:
        data = await asyncio.to_thread(self._user_file, user_id) or {}
        return [
            LoginRecord(id=doc_id, timestamp=_parse_time(doc["timestamp"]))
            for doc_id, doc in _newest_first(data.get(LOGIN_HISTORY, {}), "timestamp")
        ]

    async def add_teaching_session(self, data: dict[str, Any]) -> str:
        return await asyncio.to_thread(self._add_teaching_session, data)

    async def list_teaching_sessions(self, teacher_id: str) -> list[dict[str, Any]]:
        sessions = await asyncio.to_thread(self._sessions)
        mine = {
            doc_id: doc for doc_id, doc in sessions.items() if doc.get("teacherId") == teacher_id
        }
        return [{"id": doc_id, **doc} for doc_id, doc in _newest_first(mine, "createdAt")]
