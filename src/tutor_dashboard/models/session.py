"""Teaching session data models."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class SessionContext(BaseModel):
    """The signed-in teacher, passed explicitly to everything that needs it."""

    model_config = ConfigDict(frozen=True)

    teacher_id: str = ""
    teacher_name: str = "Teacher"
    email: str = ""


class SessionReport(BaseModel):
    """Transcript and evaluation produced by the analysis service."""

    model_config = ConfigDict(frozen=True)

    transcript: str
    evaluation: str

    @property
    def is_complete(self) -> bool:
        return bool(self.transcript) and bool(self.evaluation)


class TeachingSession(BaseModel):
    """An archived teaching session (stored with camelCase field names)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    id: str | None = None
    teacher_id: str
    teacher_name: str
    student_id: str
    student_name: str
    started_at: datetime
    transcript: str
    evaluation: str
    created_at: datetime | None = None
