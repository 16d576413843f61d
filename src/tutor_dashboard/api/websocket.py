"""Browser WebSocket handler driving the recording session controller."""

import asyncio

import structlog
from fastapi import WebSocket, WebSocketDisconnect
from fastapi.encoders import jsonable_encoder

from tutor_dashboard.analysis.analyzer import SessionAnalyzer
from tutor_dashboard.api.deps import context_from_headers, get_store
from tutor_dashboard.config import Settings
from tutor_dashboard.dashboard.reports import ReportViewer
from tutor_dashboard.dashboard.teaching import save_teaching_session
from tutor_dashboard.models.session import SessionContext
from tutor_dashboard.models.student import ReportKind
from tutor_dashboard.recording.controller import RecordingController, SendFn
from tutor_dashboard.recording.machine import Complete

logger = structlog.get_logger()


def build_controller(
    settings: Settings, context: SessionContext, send: SendFn
) -> RecordingController:
    """Wire a controller to the microphone and the analysis service."""
    # sounddevice loads PortAudio on import; only needed once a browser connects
    from tutor_dashboard.recording.capture import MediaCapture

    capture = MediaCapture(
        sample_rate=settings.audio_sample_rate,
        channels=settings.audio_channels,
        chunk_size=settings.audio_chunk_size,
        device=settings.audio_input_device,
    )
    analyzer = SessionAnalyzer(
        api_key=settings.openai_api_key,
        transcription_model=settings.transcription_model,
        evaluation_model=settings.evaluation_model,
    )
    return RecordingController(
        capture=capture,
        analyzer=analyzer,
        context=context,
        exports_dir=settings.exports_dir,
        send=send,
        duration_seconds=settings.recording_duration_seconds,
        tick_interval=settings.tick_interval_seconds,
    )


async def _archive(controller: RecordingController, send: SendFn) -> None:
    state = controller.state
    if not isinstance(state, Complete):
        return
    try:
        session_id = await save_teaching_session(
            get_store(),
            controller.context,
            state.student_id,
            state.student_name,
            state.started_at,
            state.report,
        )
    except Exception:
        logger.exception("teaching_session_save_failed")
        await send({
            "type": "notification",
            "variant": "destructive",
            "title": "Save Failed",
            "description": "Could not save the session. Please try again.",
        })
        return
    await send({"type": "archived", "session_id": session_id})


async def _show_report(viewer: ReportViewer, send: SendFn, data: dict) -> None:
    try:
        kind = ReportKind(data.get("kind", ""))
    except ValueError:
        logger.warning("unknown_report_kind", kind=data.get("kind"))
        return
    report_id = data.get("report_id", "")
    if not await viewer.show(data.get("student_id", ""), kind, report_id):
        return
    await send({
        "type": "report_detail",
        "kind": kind.value,
        "report_id": report_id,
        "report": jsonable_encoder(viewer.current),
    })


async def handle_browser_websocket(websocket: WebSocket, settings: Settings) -> None:
    """Handle a browser WebSocket connection."""
    await websocket.accept()
    context = context_from_headers(websocket.headers)

    async def send(data: dict) -> None:
        try:
            await websocket.send_json(data)
        except Exception:
            logger.warning("browser_send_failed")

    controller = build_controller(settings, context, send)
    viewer = ReportViewer(get_store())
    # Report lookups run concurrently; the viewer applies only the latest
    report_tasks: set[asyncio.Task] = set()
    await send({"type": "session_state", "status": controller.state.status.value})

    try:
        while True:
            data = await websocket.receive_json()
            msg_type = data.get("type", "")

            if msg_type == "start_session":
                await controller.start(
                    data.get("student_id", ""),
                    data.get("student_name", ""),
                )
            elif msg_type == "stop_session":
                await controller.stop()
            elif msg_type == "export_report":
                await controller.export()
            elif msg_type == "archive_session":
                await _archive(controller, send)
            elif msg_type == "view_report":
                task = asyncio.create_task(_show_report(viewer, send, data))
                report_tasks.add(task)
                task.add_done_callback(report_tasks.discard)
            else:
                logger.debug("unknown_browser_message", type=msg_type)

    except WebSocketDisconnect:
        logger.info("browser_disconnected")
    except Exception:
        logger.exception("websocket_handler_error")
    finally:
        for task in list(report_tasks):
            task.cancel()
        await controller.close()
