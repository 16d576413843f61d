"""Service entry point: logging, app wiring, HTTP and WebSocket guards."""

import logging
import os
import time
from collections import defaultdict

import structlog
import uvicorn
from fastapi import FastAPI, Request, WebSocket
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from tutor_dashboard.api.routes import router
from tutor_dashboard.api.websocket import handle_browser_websocket
from tutor_dashboard.config import Settings, get_settings

SECRET_HEADER = "X-App-Secret"
DEFAULT_ORIGINS = "http://localhost:3000,http://127.0.0.1:3000"


def configure_logging(production: bool) -> None:
    """JSON lines in production, coloured console output otherwise."""
    renderer = (
        structlog.processors.JSONRenderer() if production else structlog.dev.ConsoleRenderer()
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.INFO if production else logging.DEBUG
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


class ConnectionRateLimiter:
    """Sliding-window cap on new WebSocket connections per client address."""

    def __init__(self, limit: int = 10, window_seconds: float = 60.0):
        self.limit = limit
        self.window_seconds = window_seconds
        self._seen: dict[str, list[float]] = defaultdict(list)

    def allow(self, client: str) -> bool:
        now = time.monotonic()
        recent = [t for t in self._seen[client] if now - t < self.window_seconds]
        if len(recent) >= self.limit:
            self._seen[client] = recent
            return False
        recent.append(now)
        self._seen[client] = recent
        return True


def _secret_ok(settings: Settings, supplied: str | None) -> bool:
    return not settings.app_secret or supplied == settings.app_secret


configure_logging(os.getenv("ENV", "development").lower() == "production")
logger = structlog.get_logger()

settings = get_settings()
ws_limiter = ConnectionRateLimiter()

app = FastAPI(title="Tutor Dashboard", version="0.1.0")
app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in os.getenv("ALLOWED_ORIGINS", DEFAULT_ORIGINS).split(",")],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.include_router(router)


@app.middleware("http")
async def require_app_secret(request: Request, call_next):
    if request.url.path != "/api/health" and not _secret_ok(
        settings, request.headers.get(SECRET_HEADER)
    ):
        return JSONResponse({"error": "Unauthorized"}, status_code=401)
    return await call_next(request)


@app.websocket("/ws")
async def recording_socket(websocket: WebSocket) -> None:
    """Recording session channel for the dashboard page."""
    if not _secret_ok(settings, websocket.headers.get(SECRET_HEADER)):
        await websocket.close(code=1008, reason="Unauthorized")
        return
    client = websocket.client.host if websocket.client else "unknown"
    if not ws_limiter.allow(client):
        logger.warning("ws_rate_limited", client=client)
        await websocket.close(code=1008, reason="Rate limit exceeded")
        return
    await handle_browser_websocket(websocket, settings)


def main() -> None:
    """Run the dashboard with uvicorn."""
    logger.info("server_starting", host=settings.host, port=settings.port)
    uvicorn.run(
        "tutor_dashboard.main:app",
        host=settings.host,
        port=settings.port,
        log_level="info",
    )


if __name__ == "__main__":
    main()
