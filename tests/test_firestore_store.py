"""Tests for the Firestore store against a mocked async client."""

from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock

from google.cloud import firestore

from tutor_dashboard.models.student import ReportKind
from tutor_dashboard.storage.firestore import FirestoreStore


def _snapshot(doc_id: str, data: dict | None, exists: bool = True) -> MagicMock:
    snap = MagicMock()
    snap.id = doc_id
    snap.exists = exists
    snap.to_dict.return_value = data
    return snap


def _stream(*snaps):
    async def gen():
        for snap in snaps:
            yield snap

    return gen


class TestReads:
    async def test_get_user(self):
        client = MagicMock()
        doc = client.collection.return_value.document.return_value
        doc.get = AsyncMock(return_value=_snapshot("u1", {"role": "student"}))
        store = FirestoreStore(client=client)
        assert await store.get_user("u1") == {"role": "student"}
        client.collection.assert_called_with("users")

    async def test_get_missing_user(self):
        client = MagicMock()
        doc = client.collection.return_value.document.return_value
        doc.get = AsyncMock(return_value=_snapshot("u1", None, exists=False))
        assert await FirestoreStore(client=client).get_user("u1") is None

    async def test_list_activities_ordered_query(self):
        client = MagicMock()
        user = client.collection.return_value.document.return_value
        query = user.collection.return_value.order_by.return_value
        stamp = datetime(2026, 3, 1, tzinfo=UTC)
        query.stream = _stream(
            _snapshot("a1", {"type": "Learning", "details": "x", "timestamp": stamp}),
        )
        records = await FirestoreStore(client=client).list_activities("u1")
        user.collection.assert_called_with("activities")
        user.collection.return_value.order_by.assert_called_with(
            "timestamp", direction=firestore.Query.DESCENDING
        )
        assert records[0].id == "a1"
        assert records[0].timestamp == stamp

    async def test_get_report_uses_kind_collection(self):
        client = MagicMock()
        user = client.collection.return_value.document.return_value
        report_doc = user.collection.return_value.document.return_value
        report_doc.get = AsyncMock(return_value=_snapshot("r1", {"score": "9/10"}))
        report = await FirestoreStore(client=client).get_report(
            "u1", ReportKind.SELF_STUDY, "r1"
        )
        user.collection.assert_called_with("selfStudyHistory")
        assert report == {"score": "9/10"}


class TestWrites:
    async def test_record_login_single_batch(self):
        client = MagicMock()
        batch = client.batch.return_value
        batch.commit = AsyncMock()
        user = client.collection.return_value.document.return_value

        await FirestoreStore(client=client).record_login("u1")

        assert batch.set.call_count == 2
        user_call, login_call = batch.set.call_args_list
        assert user_call.args[0] is user
        fields = user_call.args[1]
        assert fields["lastLogin"] is firestore.SERVER_TIMESTAMP
        assert isinstance(fields["totalLogins"], firestore.Increment)
        assert user_call.kwargs == {"merge": True}
        assert login_call.args[1] == {"timestamp": firestore.SERVER_TIMESTAMP}
        user.collection.assert_called_with("loginHistory")
        batch.commit.assert_awaited_once()

    async def test_add_teaching_session(self):
        client = MagicMock()
        ref = MagicMock()
        ref.id = "ts-1"
        client.collection.return_value.add = AsyncMock(return_value=(None, ref))
        session_id = await FirestoreStore(client=client).add_teaching_session({"teacherId": "t1"})
        assert session_id == "ts-1"
        data = client.collection.return_value.add.await_args.args[0]
        assert data["teacherId"] == "t1"
        assert data["createdAt"] is firestore.SERVER_TIMESTAMP
