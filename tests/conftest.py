"""Shared fixtures: a seeded local store."""

import pytest

from tutor_dashboard.storage.local import LocalStore


@pytest.fixture
def store(tmp_path):
    store = LocalStore(tmp_path / "store")
    store.put_user(
        "stu12345",
        {
            "role": "student",
            "name": "Kim Min",
            "email": "kim@example.com",
            "totalLogins": 3,
            "lastLogin": "2026-03-14T15:04:00",
        },
        activities={
            "a1": {
                "type": "Level Test",
                "details": "Writing",
                "result": "B1",
                "timestamp": "2026-03-01T10:00:00",
            },
            "a2": {
                "type": "Learning",
                "details": "Restaurant role-play",
                "duration": 1500,
                "historyId": "rp-1",
                "timestamp": "2026-03-10T10:00:00",
            },
            "a3": {
                "type": "Self-Study",
                "details": "Past tense",
                "result": "8/10",
                "selfStudyHistoryId": "ss-1",
                "timestamp": "2026-03-05T10:00:00",
            },
            "a4": {
                "type": "Level Test",
                "details": "Writing",
                "result": "B2",
                "timestamp": "2026-03-12T10:00:00",
            },
        },
        rolePlayHistory={"rp-1": {"transcript": "Teacher: Hello", "evaluation": "Good"}},
        selfStudyHistory={"ss-1": {"problems": ["I go yesterday"], "score": "8/10"}},
    )
    store.put_user("stu99", {"role": "student"})
    store.put_user("teach1", {"role": "teacher", "name": "Jane Doe"})
    return store
