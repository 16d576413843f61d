"""Recording session controller - runs the effects of the state machine."""

import asyncio
from collections import deque
from collections.abc import Awaitable, Callable
from datetime import datetime
from pathlib import Path
from typing import Any, Protocol

import structlog

from tutor_dashboard.dashboard.formatting import format_countdown
from tutor_dashboard.models.session import SessionContext, SessionReport
from tutor_dashboard.recording.encoder import WAV_MIME_TYPE, to_data_uri
from tutor_dashboard.recording.machine import (
    EXPORT_FAILED,
    RECORDING_DURATION_SECONDS,
    AcquireDevices,
    AnalysisFailed,
    AnalysisSucceeded,
    AssemblePayload,
    CancelTimer,
    ClearBuffers,
    Complete,
    DevicesAcquired,
    DevicesFailed,
    Effect,
    Event,
    Export,
    ExportReport,
    Idle,
    Notify,
    PayloadAssembled,
    Recording,
    ReleaseDevices,
    SessionState,
    Start,
    StartTimer,
    Stop,
    SubmitForAnalysis,
    Tick,
    transition,
)
from tutor_dashboard.reports.export import write_report

logger = structlog.get_logger()

SendFn = Callable[[dict[str, Any]], Awaitable[None]]


class Capture(Protocol):
    def acquire(self) -> None: ...
    def release(self) -> None: ...
    def assemble(self) -> bytes: ...
    def clear(self) -> None: ...


class Analyzer(Protocol):
    async def analyze(self, audio_data_uri: str) -> SessionReport: ...


async def _discard(message: dict[str, Any]) -> None:
    return None


class RecordingController:
    """Drives one teacher's recording sessions.

    Events go through ``transition``; the controller carries out the
    resulting effects (capture device, countdown task, analysis call,
    export) and feeds their outcomes back in as events. At most one
    countdown task is live at any time; the analysis call runs as its own
    task and is always awaited to completion, never cancelled.

    Args:
        capture: Media capture device wrapper.
        analyzer: Session analysis service.
        context: The signed-in teacher.
        exports_dir: Directory for exported reports.
        send: Coroutine receiving outbound messages for the client.
        duration_seconds: Countdown ceiling for one session.
        tick_interval: Seconds between countdown ticks.
        clock: Returns the session start time.
    """

    def __init__(
        self,
        capture: Capture,
        analyzer: Analyzer,
        context: SessionContext,
        exports_dir: Path,
        send: SendFn | None = None,
        duration_seconds: int = RECORDING_DURATION_SECONDS,
        tick_interval: float = 1.0,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.capture = capture
        self.analyzer = analyzer
        self.context = context
        self.exports_dir = exports_dir
        self._send = send or _discard
        self.duration_seconds = duration_seconds
        self.tick_interval = tick_interval
        self.clock = clock
        self.state: SessionState = Idle()
        self.last_export: Path | None = None
        self.analysis_task: asyncio.Task | None = None
        self._timer: asyncio.Task | None = None

    # -- public triggers ----------------------------------------------------

    async def start(self, student_id: str, student_name: str = "") -> SessionState:
        """Begin a session for the selected student (no-op without one)."""
        return await self.dispatch(
            Start(
                student_id=student_id,
                student_name=student_name,
                started_at=self.clock(),
                duration_seconds=self.duration_seconds,
            )
        )

    async def stop(self) -> SessionState:
        return await self.dispatch(Stop())

    async def export(self) -> Path | None:
        """Write the completed session's report; None when nothing to export."""
        self.last_export = None
        await self.dispatch(Export())
        return self.last_export

    @property
    def timer_active(self) -> bool:
        return self._timer is not None and not self._timer.done()

    async def dispatch(self, event: Event) -> SessionState:
        """Apply an event and run its effects, including follow-up events."""
        pending: deque[Event] = deque([event])
        while pending:
            current = pending.popleft()
            previous = self.state
            self.state, effects = transition(self.state, current)
            if self.state.status != previous.status:
                logger.info(
                    "recording_state_changed",
                    previous=previous.status.value,
                    state=self.state.status.value,
                    trigger=type(current).__name__,
                )
                await self._publish_state()
            if isinstance(self.state, Recording) and isinstance(current, DevicesAcquired | Tick):
                await self._send({
                    "type": "countdown",
                    "remaining": self.state.remaining_seconds,
                    "display": format_countdown(self.state.remaining_seconds),
                })
            for effect in effects:
                follow_up = await self._run(effect)
                if follow_up is not None:
                    pending.append(follow_up)
        return self.state

    async def close(self) -> None:
        """Release devices and the countdown on teardown."""
        self._cancel_timer()
        self.capture.release()
        self.capture.clear()
        logger.info("recording_controller_closed", state=self.state.status.value)

    # -- effects ------------------------------------------------------------

    async def _run(self, effect: Effect) -> Event | None:
        if isinstance(effect, AcquireDevices):
            try:
                self.capture.acquire()
            except Exception as exc:
                logger.exception("media_access_failed")
                return DevicesFailed(reason=str(exc))
            return DevicesAcquired()
        elif isinstance(effect, StartTimer):
            self._cancel_timer()
            self._timer = asyncio.create_task(self._countdown())
        elif isinstance(effect, CancelTimer):
            self._cancel_timer()
        elif isinstance(effect, ReleaseDevices):
            self.capture.release()
        elif isinstance(effect, AssemblePayload):
            return PayloadAssembled(payload=self.capture.assemble())
        elif isinstance(effect, SubmitForAnalysis):
            self.analysis_task = asyncio.create_task(self._analyze(effect.payload))
        elif isinstance(effect, ClearBuffers):
            self.capture.clear()
        elif isinstance(effect, Notify):
            logger.warning("recording_notice", title=effect.title)
            await self._send({
                "type": "notification",
                "variant": effect.variant,
                "title": effect.title,
                "description": effect.description,
            })
        elif isinstance(effect, ExportReport):
            try:
                path = write_report(
                    self.exports_dir,
                    effect.started_at,
                    self.context.teacher_name,
                    effect.student_name,
                    effect.report,
                )
            except OSError:
                logger.exception("report_export_failed", student_id=effect.student_id)
                return await self._run(EXPORT_FAILED)
            self.last_export = path
            await self._send({
                "type": "export",
                "filename": self.last_export.name,
                "path": str(self.last_export),
            })
        return None

    def _cancel_timer(self) -> None:
        timer, self._timer = self._timer, None
        # A countdown that reaches zero stops itself by dropping the reference
        if timer is not None and timer is not asyncio.current_task():
            timer.cancel()

    async def _countdown(self) -> None:
        me = asyncio.current_task()
        try:
            while self._timer is me:
                await asyncio.sleep(self.tick_interval)
                if self._timer is not me:
                    return
                await self.dispatch(Tick())
        except asyncio.CancelledError:
            pass
        except Exception:
            logger.exception("countdown_error")

    async def _analyze(self, payload: bytes) -> None:
        data_uri = to_data_uri(payload, WAV_MIME_TYPE)
        try:
            report = await self.analyzer.analyze(data_uri)
        except Exception as exc:
            logger.exception("session_analysis_failed")
            await self.dispatch(AnalysisFailed(reason=str(exc)))
            return
        await self.dispatch(AnalysisSucceeded(report=report))

    async def _publish_state(self) -> None:
        message: dict[str, Any] = {"type": "session_state", "status": self.state.status.value}
        if isinstance(self.state, Idle) and self.state.error:
            message["error"] = self.state.error
        await self._send(message)
        if isinstance(self.state, Complete):
            await self._send({
                "type": "report",
                "transcript": self.state.report.transcript,
                "evaluation": self.state.report.evaluation,
            })
