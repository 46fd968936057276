"""HTTP facade over a TimeOffsetTracker."""

import asyncio
import logging
import time as time_module
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import UTC, datetime, timedelta

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse

from chuk_ntp_clock.models import (
    AddServerRequest,
    SyncIntervalRequest,
    SyncResult,
    TimeResponse,
    TrackerStatus,
)
from chuk_ntp_clock.tracker import SyncError, TimeOffsetTracker

logger = logging.getLogger(__name__)

DISPLAY_FORMAT = "%H:%M:%S %d/%m/%Y"


def create_app(tracker: TimeOffsetTracker, manage_auto_sync: bool = True) -> FastAPI:
    """Build the FastAPI application.

    Args:
        tracker: Offset tracker shared by every request handler
        manage_auto_sync: Start auto sync on startup and stop it on shutdown

    Returns:
        Configured FastAPI application
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if manage_auto_sync:
            # The first sync blocks on the network; keep it off the event loop
            await asyncio.to_thread(tracker.start_auto_sync)
        try:
            yield
        finally:
            if manage_auto_sync:
                tracker.stop_auto_sync()

    app = FastAPI(title="chuk-ntp-clock", lifespan=lifespan)
    app.state.tracker = tracker

    @app.middleware("http")
    async def log_requests(request: Request, call_next):  # type: ignore[no-untyped-def]
        start = time_module.perf_counter()
        client = request.client.host if request.client else "-"
        logger.info("[%s] %s %s", request.method, request.url.path, client)
        response = await call_next(request)
        elapsed_ms = (time_module.perf_counter() - start) * 1000
        logger.info("Request processed in %.2fms", elapsed_ms)
        return response

    @app.get("/", response_class=PlainTextResponse)
    def home() -> str:
        snapshot = tracker.status()
        return (
            "Welcome to the NTP clock server!\n"
            "================================\n\n"
            f"System time:          {snapshot.system_time.strftime(DISPLAY_FORMAT)}\n"
            f"NTP time (corrected): {snapshot.corrected_time.strftime(DISPLAY_FORMAT)}\n\n"
            f"Offset: {snapshot.offset_ms:.3f}ms\n"
        )

    @app.get("/status")
    def health() -> dict[str, str]:
        return {"status": "ok", "timestamp": datetime.now(UTC).isoformat()}

    @app.get("/info", response_class=PlainTextResponse)
    def info(request: Request) -> str:
        return (
            "Server information:\n"
            "===================\n"
            f"Host: {request.headers.get('host', '')}\n"
            f"User-Agent: {request.headers.get('user-agent', '')}\n"
            f"Method: {request.method}\n"
            f"URL: {request.url.path}\n"
        )

    @app.get("/ntp/status", response_model=TrackerStatus)
    def ntp_status() -> TrackerStatus:
        return tracker.status()

    @app.post("/ntp/sync", response_model=SyncResult)
    def ntp_sync() -> SyncResult | JSONResponse:
        logger.info("Manual sync requested")
        try:
            response = tracker.sync_once()
        except SyncError as e:
            result = SyncResult(status="error", message=str(e))
            return JSONResponse(status_code=500, content=result.model_dump(exclude_none=True))

        snapshot = tracker.status()
        return SyncResult(
            status="success",
            message="Synchronization completed",
            server=response.server,
            corrected_time=snapshot.corrected_time.isoformat(),
            offset_ms=snapshot.offset_ms,
            rtt_ms=response.rtt_ms,
            stratum=response.stratum,
        )

    @app.get("/ntp/time", response_model=TimeResponse)
    def ntp_time() -> TimeResponse:
        snapshot = tracker.status()
        return TimeResponse(
            ntp_time=snapshot.corrected_time.isoformat(),
            system_time=snapshot.system_time.isoformat(),
            offset_ms=snapshot.offset_ms,
            unix_timestamp=int(snapshot.corrected_time.timestamp()),
        )

    @app.post("/ntp/servers", response_model=TrackerStatus)
    def add_server(body: AddServerRequest) -> TrackerStatus:
        tracker.add_server(body.address)
        return tracker.status()

    @app.put("/ntp/sync-interval", response_model=TrackerStatus)
    def set_sync_interval(body: SyncIntervalRequest) -> TrackerStatus:
        tracker.set_sync_interval(timedelta(seconds=body.seconds))
        return tracker.status()

    @app.post("/ntp/auto-sync/start", response_model=TrackerStatus)
    def start_auto_sync() -> TrackerStatus:
        tracker.start_auto_sync()
        return tracker.status()

    @app.post("/ntp/auto-sync/stop", response_model=TrackerStatus)
    def stop_auto_sync() -> TrackerStatus:
        tracker.stop_auto_sync()
        return tracker.status()

    return app
