"""NTP clock server: HTTP facade and MCP tools over one offset tracker."""

import asyncio
import logging
import sys
from datetime import timedelta

import uvicorn
from chuk_mcp_server import run, tool

from chuk_ntp_clock.config import get_config
from chuk_ntp_clock.http_app import create_app
from chuk_ntp_clock.models import SyncResult, TimeResponse, TrackerStatus
from chuk_ntp_clock.ntp_client import NTPClient
from chuk_ntp_clock.tracker import SyncError, TimeOffsetTracker

logger = logging.getLogger(__name__)

# Initialize components
_config = get_config()
_tracker = TimeOffsetTracker(
    servers=_config.ntp_servers,
    sync_interval=timedelta(seconds=_config.sync_interval_seconds),
    client=NTPClient(timeout=_config.ntp_timeout, version=_config.ntp_version),
)

ROUTES = [
    ("GET", "/"),
    ("GET", "/status"),
    ("GET", "/info"),
    ("GET", "/ntp/status"),
    ("GET", "/ntp/time"),
    ("POST", "/ntp/sync"),
    ("POST", "/ntp/servers"),
    ("PUT", "/ntp/sync-interval"),
    ("POST", "/ntp/auto-sync/start"),
    ("POST", "/ntp/auto-sync/stop"),
]


@tool  # type: ignore[arg-type]
async def get_ntp_time() -> TimeResponse:
    """Get the current time corrected by the last NTP offset.

    Never touches the network: the offset comes from the most recent
    successful sync. Before the first sync the corrected time equals the
    system time.

    Returns:
        TimeResponse with corrected time, system time and offset
    """
    snapshot = _tracker.status()
    return TimeResponse(
        ntp_time=snapshot.corrected_time.isoformat(),
        system_time=snapshot.system_time.isoformat(),
        offset_ms=snapshot.offset_ms,
        unix_timestamp=int(snapshot.corrected_time.timestamp()),
    )


@tool  # type: ignore[arg-type]
async def get_ntp_status() -> TrackerStatus:
    """Get the synchronization status: server, last sync, offset, interval and server list."""
    return _tracker.status()


@tool  # type: ignore[arg-type]
async def sync_ntp_now() -> SyncResult:
    """Synchronize with the configured NTP servers immediately.

    Servers are tried in order; the first one that answers sets the offset.

    Returns:
        SyncResult describing the winning server, or the failure reasons
    """
    try:
        response = await asyncio.to_thread(_tracker.sync_once)
    except SyncError as e:
        return SyncResult(status="error", message=str(e))

    snapshot = _tracker.status()
    return SyncResult(
        status="success",
        message="Synchronization completed",
        server=response.server,
        corrected_time=snapshot.corrected_time.isoformat(),
        offset_ms=snapshot.offset_ms,
        rtt_ms=response.rtt_ms,
        stratum=response.stratum,
    )


@tool  # type: ignore[arg-type]
async def add_ntp_server(address: str) -> TrackerStatus:
    """Append an NTP server to the end of the query list.

    Args:
        address: Hostname or IP of the NTP server
    """
    _tracker.add_server(address)
    return _tracker.status()


@tool  # type: ignore[arg-type]
async def set_ntp_sync_interval(seconds: float) -> TrackerStatus:
    """Change how often the offset is refreshed.

    Args:
        seconds: Seconds between automatic resyncs (must be positive)
    """
    _tracker.set_sync_interval(timedelta(seconds=seconds))
    return _tracker.status()


def _log_banner(host: str, port: int) -> None:
    logger.info("Server starting on port %d", port)
    logger.info("Available routes:")
    display_host = "localhost" if host == "0.0.0.0" else host
    for method, path in ROUTES:
        logger.info("  %-4s http://%s:%d%s", method, display_host, port, path)


def main() -> None:
    """Main entry point for the server."""
    # No argument serves the HTTP API; MCP transports are opt-in
    mode = sys.argv[1] if len(sys.argv) > 1 else "web"

    if mode in ["mcp", "--mcp", "stdio"]:
        # Suppress logging in STDIO mode to avoid polluting JSON-RPC stream
        logging.basicConfig(
            level=logging.WARNING,
            format="%(levelname)s:%(name)s:%(message)s",
            stream=sys.stderr,
        )
        logging.getLogger("chuk_mcp_server").setLevel(logging.ERROR)
        logging.getLogger("chuk_mcp_server.core").setLevel(logging.ERROR)
        logging.getLogger("chuk_mcp_server.stdio_transport").setLevel(logging.ERROR)
        _tracker.start_auto_sync()
        run(transport="stdio")
        return

    logging.basicConfig(
        level=_config.log_level,
        format="%(levelname)s:%(name)s:%(message)s",
        stream=sys.stderr,
    )

    if mode in ["http", "--http"]:
        logger.info("Starting Chuk NTP Clock MCP server in HTTP mode")
        _tracker.start_auto_sync()
        run(transport="http")
        return

    logger.info("Initializing NTP clock (servers: %s)", ", ".join(_tracker.servers))
    _log_banner(_config.host, _config.port)
    uvicorn.run(create_app(_tracker), host=_config.host, port=_config.port)


if __name__ == "__main__":
    main()
