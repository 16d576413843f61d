"""Recording session state machine.

States, events and effects are immutable values; ``transition`` is a pure
function ``(state, event) -> (state, effects)``. All device, timer and
network work is described by the returned effects and carried out by
``RecordingController``. The countdown is armed only after the capture
devices report ready.

    idle -> recording -> analyzing -> complete
    recording -> idle   (capture devices unavailable)
    analyzing -> idle   (empty capture, analysis failure)
    complete  -> recording (next session)
"""

from datetime import datetime
from enum import StrEnum
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field

from tutor_dashboard.models.session import SessionReport

RECORDING_DURATION_SECONDS = 45 * 60


class RecordingStatus(StrEnum):
    IDLE = "idle"
    RECORDING = "recording"
    ANALYZING = "analyzing"
    COMPLETE = "complete"


class _Value(BaseModel):
    model_config = ConfigDict(frozen=True)


# -- states ---------------------------------------------------------------


class Idle(_Value):
    status: Literal[RecordingStatus.IDLE] = RecordingStatus.IDLE
    error: str | None = None


class Recording(_Value):
    status: Literal[RecordingStatus.RECORDING] = RecordingStatus.RECORDING
    student_id: str
    student_name: str
    started_at: datetime
    remaining_seconds: int
    devices_ready: bool = False


class Analyzing(_Value):
    status: Literal[RecordingStatus.ANALYZING] = RecordingStatus.ANALYZING
    student_id: str
    student_name: str
    started_at: datetime
    submitted: bool = False


class Complete(_Value):
    status: Literal[RecordingStatus.COMPLETE] = RecordingStatus.COMPLETE
    student_id: str
    student_name: str
    started_at: datetime
    report: SessionReport


SessionState = Annotated[Idle | Recording | Analyzing | Complete, Field(discriminator="status")]


# -- events ---------------------------------------------------------------


class Start(_Value):
    student_id: str
    student_name: str = ""
    started_at: datetime
    duration_seconds: int = RECORDING_DURATION_SECONDS


class DevicesAcquired(_Value):
    pass


class DevicesFailed(_Value):
    reason: str = ""


class Tick(_Value):
    pass


class Stop(_Value):
    pass


class PayloadAssembled(_Value):
    payload: bytes


class AnalysisSucceeded(_Value):
    report: SessionReport


class AnalysisFailed(_Value):
    reason: str = ""


class Export(_Value):
    pass


Event = (
    Start
    | DevicesAcquired
    | DevicesFailed
    | Tick
    | Stop
    | PayloadAssembled
    | AnalysisSucceeded
    | AnalysisFailed
    | Export
)


# -- effects --------------------------------------------------------------


class AcquireDevices(_Value):
    pass


class ReleaseDevices(_Value):
    pass


class StartTimer(_Value):
    seconds: int


class CancelTimer(_Value):
    pass


class AssemblePayload(_Value):
    pass


class SubmitForAnalysis(_Value):
    payload: bytes


class ClearBuffers(_Value):
    pass


class Notify(_Value):
    title: str
    description: str
    variant: str = "destructive"


class ExportReport(_Value):
    student_id: str
    student_name: str
    started_at: datetime
    report: SessionReport


Effect = (
    AcquireDevices
    | ReleaseDevices
    | StartTimer
    | CancelTimer
    | AssemblePayload
    | SubmitForAnalysis
    | ClearBuffers
    | Notify
    | ExportReport
)

MEDIA_ACCESS_DENIED = Notify(
    title="Media Access Denied",
    description="Please enable microphone permissions to record.",
)
EMPTY_RECORDING = Notify(
    title="Recording Error",
    description="No audio was recorded. Please check your microphone.",
)
ANALYSIS_FAILED = Notify(
    title="AI Analysis Failed",
    description="Could not analyze the session. Please try again.",
)
EXPORT_FAILED = Notify(
    title="Export Failed",
    description="Could not save the report file. Please try again.",
)


def _stop(state: Recording) -> tuple[Analyzing, list[Effect]]:
    analyzing = Analyzing(
        student_id=state.student_id,
        student_name=state.student_name,
        started_at=state.started_at,
    )
    return analyzing, [CancelTimer(), ReleaseDevices(), AssemblePayload()]


def _fail(error: str, notice: Notify, *cleanup: Effect) -> tuple[Idle, list[Effect]]:
    return Idle(error=error), [*cleanup, ClearBuffers(), notice]


def transition(state: SessionState, event: Event) -> tuple[SessionState, list[Effect]]:
    """Apply one event to a session state.

    Events that do not apply to the current state leave it unchanged and
    produce no effects, so a late tick or a second stop is harmless.
    """
    if isinstance(event, Start):
        if not isinstance(state, Idle | Complete) or not event.student_id:
            return state, []
        recording = Recording(
            student_id=event.student_id,
            student_name=event.student_name or event.student_id,
            started_at=event.started_at,
            remaining_seconds=event.duration_seconds,
        )
        return recording, [ClearBuffers(), AcquireDevices()]

    if isinstance(state, Recording):
        if isinstance(event, DevicesAcquired):
            if state.devices_ready:
                return state, []
            ready = state.model_copy(update={"devices_ready": True})
            return ready, [StartTimer(seconds=state.remaining_seconds)]
        if isinstance(event, DevicesFailed):
            return _fail(
                event.reason or "media access denied", MEDIA_ACCESS_DENIED, ReleaseDevices()
            )
        if isinstance(event, Stop):
            return _stop(state)
        if isinstance(event, Tick):
            remaining = state.remaining_seconds - 1
            if remaining <= 0:
                return _stop(state)
            return state.model_copy(update={"remaining_seconds": remaining}), []
        return state, []

    if isinstance(state, Analyzing):
        if isinstance(event, PayloadAssembled):
            if state.submitted:
                return state, []
            if not event.payload:
                return _fail("empty recording", EMPTY_RECORDING)
            submitted = state.model_copy(update={"submitted": True})
            return submitted, [SubmitForAnalysis(payload=event.payload)]
        if isinstance(event, AnalysisSucceeded):
            if not event.report.is_complete:
                return _fail("incomplete analysis result", ANALYSIS_FAILED)
            complete = Complete(
                student_id=state.student_id,
                student_name=state.student_name,
                started_at=state.started_at,
                report=event.report,
            )
            return complete, [ClearBuffers()]
        if isinstance(event, AnalysisFailed):
            return _fail(event.reason or "analysis failed", ANALYSIS_FAILED)
        return state, []

    if isinstance(state, Complete) and isinstance(event, Export):
        return state, [
            ExportReport(
                student_id=state.student_id,
                student_name=state.student_name,
                started_at=state.started_at,
                report=state.report,
            )
        ]

    return state, []
