"""Tests for the student, report, login and teaching-session services."""

import asyncio
from datetime import datetime
from unittest.mock import AsyncMock

from tutor_dashboard.dashboard.logins import LoginHistoryRecorder
from tutor_dashboard.dashboard.reports import ReportViewer, fetch_report
from tutor_dashboard.dashboard.students import StudentService
from tutor_dashboard.dashboard.teaching import list_teaching_sessions, save_teaching_session
from tutor_dashboard.models.session import SessionContext, SessionReport
from tutor_dashboard.models.student import ReportKind


class TestStudentService:
    async def test_list_students_builds_aggregates(self, store):
        students = await StudentService(store).list_students()
        assert [s.id for s in students] == ["stu12345", "stu99"]
        kim = students[0]
        assert kim.name == "Kim Min"
        assert kim.total_logins == 3
        assert kim.last_login == "Mar 14, 2026, 3:04 PM"
        assert kim.level_test.writing == "B2"
        assert kim.level_test.reading == "N/A"
        assert [i.id for i in kim.level_test_history] == ["a4", "a1"]
        assert [i.id for i in kim.role_play_history] == ["a2"]
        assert kim.role_play_history[0].duration == "25 min"
        assert [i.id for i in kim.self_study_history] == ["a3"]

    async def test_defaults_for_sparse_user(self, store):
        student = await StudentService(store).get_student("stu99")
        assert student.name == "Studentstu9"
        assert student.avatar_url == "https://picsum.photos/seed/stu99/64/64"
        assert student.email == ""
        assert student.role == "student"
        assert student.total_logins == 0
        assert student.last_login == "-"
        assert student.level_test_history == []

    async def test_get_missing_student(self, store):
        assert await StudentService(store).get_student("nobody") is None

    async def test_list_failure_degrades_to_empty(self):
        broken = AsyncMock()
        broken.list_users.side_effect = RuntimeError("unavailable")
        assert await StudentService(broken).list_students() == []

    async def test_get_failure_degrades_to_none(self):
        broken = AsyncMock()
        broken.get_user.return_value = {"role": "student"}
        broken.list_activities.side_effect = RuntimeError("unavailable")
        assert await StudentService(broken).get_student("s1") is None

    async def test_update_display_name(self, store):
        service = StudentService(store)
        assert await service.update_display_name("teach1", "Jane Smith") is True
        assert (await store.get_user("teach1"))["name"] == "Jane Smith"
        assert await service.update_display_name("nobody", "X Y") is False


class TestReports:
    async def test_fetch_report(self, store):
        report = await fetch_report(store, "stu12345", ReportKind.ROLE_PLAY, "rp-1")
        assert report["transcript"] == "Teacher: Hello"

    async def test_fetch_failure_is_none(self):
        broken = AsyncMock()
        broken.get_report.side_effect = RuntimeError("boom")
        assert await fetch_report(broken, "s", ReportKind.SELF_STUDY, "r") is None

    async def test_viewer_applies_result(self, store):
        viewer = ReportViewer(store)
        applied = await viewer.show("stu12345", ReportKind.SELF_STUDY, "ss-1")
        assert applied is True
        assert viewer.current["score"] == "8/10"
        assert viewer.loading is False

    async def test_stale_result_discarded(self):
        slow_started = asyncio.Event()
        release_slow = asyncio.Event()

        async def get_report(user_id, kind, report_id):
            if report_id == "slow":
                slow_started.set()
                await release_slow.wait()
            return {"id": report_id}

        store = AsyncMock()
        store.get_report.side_effect = get_report
        viewer = ReportViewer(store)

        slow = asyncio.create_task(viewer.show("s", ReportKind.ROLE_PLAY, "slow"))
        await slow_started.wait()
        fast_applied = await viewer.show("s", ReportKind.ROLE_PLAY, "fast")
        release_slow.set()
        slow_applied = await slow

        assert fast_applied is True
        assert slow_applied is False
        assert viewer.current == {"id": "fast"}


class TestLogins:
    async def test_each_login_recorded(self, store):
        recorder = LoginHistoryRecorder(store)
        for _ in range(3):
            await recorder.record("stu12345")
        user = await store.get_user("stu12345")
        assert user["totalLogins"] == 6
        assert len(await recorder.history("stu12345")) == 3

    async def test_history_failure_is_empty(self):
        broken = AsyncMock()
        broken.list_logins.side_effect = RuntimeError("boom")
        assert await LoginHistoryRecorder(broken).history("u") == []


class TestTeachingSessions:
    async def test_save_and_list(self, store):
        context = SessionContext(teacher_id="teach1", teacher_name="Jane Doe")
        session_id = await save_teaching_session(
            store,
            context,
            "stu12345",
            "Kim Min",
            datetime(2026, 3, 14, 9, 26),
            SessionReport(transcript="T", evaluation="E"),
        )
        sessions = await list_teaching_sessions(store, "teach1")
        assert len(sessions) == 1
        saved = sessions[0]
        assert saved.id == session_id
        assert saved.student_name == "Kim Min"
        assert saved.teacher_name == "Jane Doe"
        assert saved.evaluation == "E"
        assert saved.created_at is not None

    async def test_stored_with_camel_case_fields(self, store):
        store_mock = AsyncMock()
        store_mock.add_teaching_session.return_value = "new-id"
        await save_teaching_session(
            store_mock,
            SessionContext(teacher_id="t1"),
            "s1",
            "Kim",
            datetime(2026, 3, 14, 9, 26),
            SessionReport(transcript="T", evaluation="E"),
        )
        data = store_mock.add_teaching_session.await_args.args[0]
        assert data["teacherId"] == "t1"
        assert data["teacherName"] == "Teacher"
        assert data["startedAt"] == "2026-03-14T09:26:00"
        assert "createdAt" not in data

    async def test_empty_teacher_id(self, store):
        assert await list_teaching_sessions(store, "") == []
