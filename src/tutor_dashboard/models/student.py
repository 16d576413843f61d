"""Student, activity and login data models."""

from datetime import datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

NOT_AVAILABLE = "N/A"


class ActivityType(StrEnum):
    """Activity tags written to a student's activity log."""

    LEVEL_TEST = "Level Test"
    LEARNING = "Learning"
    SELF_STUDY = "Self-Study"


class ReportKind(StrEnum):
    """Kinds of stored detail reports."""

    ROLE_PLAY = "role_play"
    SELF_STUDY = "self_study"

    @property
    def collection(self) -> str:
        """Store sub-collection holding reports of this kind."""
        if self is ReportKind.ROLE_PLAY:
            return "rolePlayHistory"
        return "selfStudyHistory"


class ActivityRecord(BaseModel):
    """One logged student event, as read from the store."""

    id: str
    timestamp: datetime | None = None
    type: str  # raw tag; unknown tags are kept so the aggregator can report them
    details: str = ""
    result: str | None = None
    duration: float | None = None  # seconds
    history_id: str | None = None

    @classmethod
    def from_document(cls, doc_id: str, data: dict[str, Any]) -> "ActivityRecord":
        """Build a record from a raw store document."""
        return cls(
            id=doc_id,
            timestamp=data.get("timestamp"),
            type=data.get("type", ""),
            details=data.get("details") or "",
            result=data.get("result"),
            duration=data.get("duration"),
            history_id=data.get("historyId") or data.get("selfStudyHistoryId"),
        )


class HistoryItem(BaseModel):
    """A display-ready history row."""

    id: str
    type: str
    date: str
    activity: str
    score: str | None = None
    duration: str | None = None
    history_id: str | None = None


class LevelTestGrade(BaseModel):
    """Most recent writing and reading level test results."""

    writing: str = NOT_AVAILABLE
    reading: str = NOT_AVAILABLE


class ActivityHistory(BaseModel):
    """Activity log split into display buckets."""

    model_config = ConfigDict(frozen=True)

    level_test: LevelTestGrade = Field(default_factory=LevelTestGrade)
    level_test_history: list[HistoryItem] = Field(default_factory=list)
    role_play_history: list[HistoryItem] = Field(default_factory=list)
    self_study_history: list[HistoryItem] = Field(default_factory=list)
    unrecognized_history: list[HistoryItem] = Field(default_factory=list)


class StudentAggregate(BaseModel):
    """Read-only projection of a student built on every fetch."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    avatar_url: str
    email: str = ""
    role: str = "student"
    total_logins: int = 0
    last_login: str = "-"
    level_test: LevelTestGrade = Field(default_factory=LevelTestGrade)
    level_test_history: list[HistoryItem] = Field(default_factory=list)
    role_play_history: list[HistoryItem] = Field(default_factory=list)
    self_study_history: list[HistoryItem] = Field(default_factory=list)
    unrecognized_history: list[HistoryItem] = Field(default_factory=list)


class LoginRecord(BaseModel):
    """One append-only login event."""

    id: str
    timestamp: datetime | None = None


class UserDocument(BaseModel):
    """Stored user document fields read by the dashboard."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    role: str | None = None
    name: str | None = None
    avatar_url: str | None = None
    email: str | None = None
    total_logins: int | None = None
    last_login: datetime | None = None
