"""Tests for the pure recording state machine."""

from datetime import datetime

import pytest

from tutor_dashboard.models.session import SessionReport
from tutor_dashboard.recording.machine import (
    RECORDING_DURATION_SECONDS,
    AcquireDevices,
    AnalysisFailed,
    AnalysisSucceeded,
    Analyzing,
    AssemblePayload,
    CancelTimer,
    ClearBuffers,
    Complete,
    DevicesAcquired,
    DevicesFailed,
    Export,
    ExportReport,
    Idle,
    Notify,
    PayloadAssembled,
    Recording,
    RecordingStatus,
    ReleaseDevices,
    Start,
    StartTimer,
    Stop,
    SubmitForAnalysis,
    Tick,
    transition,
)

STARTED = datetime(2026, 3, 14, 9, 26)
REPORT = SessionReport(transcript="T", evaluation="E")


def _recording(remaining: int = RECORDING_DURATION_SECONDS) -> Recording:
    return Recording(
        student_id="s1", student_name="Kim Min", started_at=STARTED,
        remaining_seconds=remaining,
    )


def _analyzing(submitted: bool = False) -> Analyzing:
    return Analyzing(
        student_id="s1", student_name="Kim Min", started_at=STARTED, submitted=submitted,
    )


def _effect_types(effects) -> list[type]:
    return [type(e) for e in effects]


class TestStart:
    def test_start_without_student_is_noop(self):
        state, effects = transition(Idle(), Start(student_id="", started_at=STARTED))
        assert state == Idle()
        assert effects == []

    def test_start_enters_recording(self):
        state, effects = transition(
            Idle(), Start(student_id="s1", student_name="Kim Min", started_at=STARTED)
        )
        assert isinstance(state, Recording)
        assert state.remaining_seconds == 2700
        assert state.started_at == STARTED
        assert _effect_types(effects) == [ClearBuffers, AcquireDevices]
        assert StartTimer not in _effect_types(effects)

    def test_custom_duration(self):
        state, effects = transition(
            Idle(), Start(student_id="s1", started_at=STARTED, duration_seconds=10)
        )
        assert state.remaining_seconds == 10
        state, effects = transition(state, DevicesAcquired())
        assert effects == [StartTimer(seconds=10)]

    def test_student_name_defaults_to_id(self):
        state, _ = transition(Idle(), Start(student_id="s1", started_at=STARTED))
        assert state.student_name == "s1"

    def test_restart_from_complete(self):
        complete = Complete(
            student_id="s1", student_name="Kim Min", started_at=STARTED, report=REPORT
        )
        state, _ = transition(complete, Start(student_id="s2", started_at=STARTED))
        assert isinstance(state, Recording)
        assert state.student_id == "s2"

    @pytest.mark.parametrize("busy", [_recording(), _analyzing()])
    def test_start_ignored_while_busy(self, busy):
        state, effects = transition(busy, Start(student_id="s2", started_at=STARTED))
        assert state == busy
        assert effects == []


class TestRecording:
    def test_devices_ready_arms_timer(self):
        state, effects = transition(_recording(), DevicesAcquired())
        assert state.devices_ready is True
        assert effects == [StartTimer(seconds=RECORDING_DURATION_SECONDS)]

    def test_devices_ready_twice_arms_once(self):
        state, _ = transition(_recording(), DevicesAcquired())
        state_after, effects = transition(state, DevicesAcquired())
        assert state_after == state
        assert effects == []

    def test_tick_decrements(self):
        state, effects = transition(_recording(100), Tick())
        assert state.remaining_seconds == 99
        assert effects == []

    def test_tick_to_zero_stops(self):
        state, effects = transition(_recording(1), Tick())
        assert isinstance(state, Analyzing)
        assert _effect_types(effects) == [CancelTimer, ReleaseDevices, AssemblePayload]

    def test_stop(self):
        state, effects = transition(_recording(), Stop())
        assert state.status == RecordingStatus.ANALYZING
        assert _effect_types(effects) == [CancelTimer, ReleaseDevices, AssemblePayload]

    def test_stop_racing_final_tick_stops_once(self):
        state, first = transition(_recording(1), Tick())
        state, second = transition(state, Stop())
        assert isinstance(state, Analyzing)
        assert AssemblePayload in _effect_types(first)
        assert second == []

    def test_late_tick_after_stop_is_noop(self):
        state, _ = transition(_recording(5), Stop())
        state_after, effects = transition(state, Tick())
        assert state_after == state
        assert effects == []

    def test_device_failure_returns_to_idle(self):
        state, effects = transition(_recording(), DevicesFailed(reason="denied"))
        assert isinstance(state, Idle)
        assert state.error == "denied"
        types = _effect_types(effects)
        assert StartTimer not in types
        assert ReleaseDevices in types
        assert AssemblePayload not in types
        assert SubmitForAnalysis not in types
        assert effects[-1].title == "Media Access Denied"


class TestAnalyzing:
    def test_empty_payload_never_submitted(self):
        state, effects = transition(_analyzing(), PayloadAssembled(payload=b""))
        assert isinstance(state, Idle)
        assert SubmitForAnalysis not in _effect_types(effects)
        assert ClearBuffers in _effect_types(effects)
        notices = [e for e in effects if isinstance(e, Notify)]
        assert notices[0].title == "Recording Error"

    def test_payload_submitted_once(self):
        state, effects = transition(_analyzing(), PayloadAssembled(payload=b"RIFF"))
        assert state.submitted is True
        assert effects == [SubmitForAnalysis(payload=b"RIFF")]
        state, effects = transition(state, PayloadAssembled(payload=b"RIFF"))
        assert effects == []

    def test_success_completes_and_clears(self):
        state, effects = transition(_analyzing(True), AnalysisSucceeded(report=REPORT))
        assert isinstance(state, Complete)
        assert state.report == REPORT
        assert effects == [ClearBuffers()]

    @pytest.mark.parametrize(
        "report",
        [
            SessionReport(transcript="", evaluation="E"),
            SessionReport(transcript="T", evaluation=""),
        ],
    )
    def test_incomplete_result_fails(self, report):
        state, effects = transition(_analyzing(True), AnalysisSucceeded(report=report))
        assert isinstance(state, Idle)
        assert ClearBuffers in _effect_types(effects)
        assert effects[-1].title == "AI Analysis Failed"

    def test_failure_returns_to_idle(self):
        state, effects = transition(_analyzing(True), AnalysisFailed(reason="timeout"))
        assert isinstance(state, Idle)
        assert state.error == "timeout"
        assert ClearBuffers in _effect_types(effects)

    def test_stop_while_analyzing_is_noop(self):
        state, effects = transition(_analyzing(True), Stop())
        assert state == _analyzing(True)
        assert effects == []


class TestComplete:
    def test_export_keeps_state(self):
        complete = Complete(
            student_id="s1", student_name="Kim Min", started_at=STARTED, report=REPORT
        )
        state, effects = transition(complete, Export())
        assert state == complete
        assert effects == [
            ExportReport(
                student_id="s1", student_name="Kim Min", started_at=STARTED, report=REPORT
            )
        ]

    def test_export_outside_complete_is_noop(self):
        state, effects = transition(Idle(), Export())
        assert state == Idle()
        assert effects == []
