"""Shared NTP offset state with periodic background refresh."""

import logging
import threading
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

from chuk_ntp_clock.models import NTPResponse, TrackerStatus
from chuk_ntp_clock.ntp_client import NTPClient, NTPQueryError

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(UTC)


class SyncError(Exception):
    """Every configured NTP server failed during one sync."""

    def __init__(self, failures: list[tuple[str, NTPQueryError]]) -> None:
        if failures:
            reasons = "; ".join(str(error) for _, error in failures)
            message = f"failed to sync with all NTP servers: {reasons}"
        else:
            message = "failed to sync: no NTP servers configured"
        super().__init__(message)
        self.failures = failures

    @property
    def last_error(self) -> NTPQueryError | None:
        return self.failures[-1][1] if self.failures else None


class TimeOffsetTracker:
    """Tracks the offset between the system clock and NTP time.

    All fields are guarded by a single lock. The lock is held only while
    fields are read or committed, never across a network query, so HTTP
    handlers reading the corrected time are never blocked by a sync.
    """

    def __init__(
        self,
        servers: list[str],
        sync_interval: timedelta = timedelta(minutes=10),
        client: NTPClient | None = None,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        if sync_interval <= timedelta(0):
            raise ValueError("sync_interval must be positive")

        self._client = client or NTPClient()
        self._clock = clock
        self._lock = threading.Lock()

        self._servers = list(servers)
        self._current_server: str | None = None
        self._last_sync: datetime | None = None
        self._offset = timedelta(0)
        self._sync_interval = sync_interval
        self._running = False
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def servers(self) -> list[str]:
        with self._lock:
            return list(self._servers)

    @property
    def current_server(self) -> str | None:
        with self._lock:
            return self._current_server

    @property
    def last_sync(self) -> datetime | None:
        with self._lock:
            return self._last_sync

    @property
    def offset(self) -> timedelta:
        with self._lock:
            return self._offset

    @property
    def sync_interval(self) -> timedelta:
        with self._lock:
            return self._sync_interval

    @property
    def running(self) -> bool:
        with self._lock:
            return self._running

    def sync_once(self) -> NTPResponse:
        """Query the configured servers in order until one answers.

        Returns:
            The NTPResponse of the server that answered

        Raises:
            SyncError: if every server failed; no state is changed
        """
        servers = self.servers
        failures: list[tuple[str, NTPQueryError]] = []

        for server in servers:
            try:
                response = self._client.query(server)
            except NTPQueryError as e:
                logger.warning("Failed to query %s: %s (%s)", server, e.message, e.error_type.value)
                failures.append((server, e))
                continue

            now = self._clock()
            with self._lock:
                self._current_server = server
                self._last_sync = now
                self._offset = timedelta(seconds=response.offset_s)

            logger.info(
                "Synchronized with %s: offset=%.6fs stratum=%d precision=%.3gs rtt=%.1fms",
                server,
                response.offset_s,
                response.stratum,
                response.precision_s,
                response.rtt_ms,
            )
            return response

        error = SyncError(failures)
        if error.last_error is not None:
            raise error from error.last_error
        raise error

    def _sync_logged(self, context: str) -> None:
        try:
            self.sync_once()
        except SyncError as e:
            logger.error("%s sync failed: %s", context, e)
        except Exception:
            logger.exception("%s sync failed unexpectedly", context)

    def start_auto_sync(self) -> None:
        """Sync now, then keep resyncing every sync_interval in a daemon thread.

        Calling this while auto sync is already running does nothing.
        """
        with self._lock:
            if self._running:
                return
            self._running = True
            stop_event = self._stop_event
            interval = self._sync_interval

        logger.info("Starting automatic sync (interval: %s)", interval)
        self._sync_logged("Initial")

        thread = threading.Thread(
            target=self._run_loop, args=(stop_event,), daemon=True, name="ntp-auto-sync"
        )
        with self._lock:
            self._thread = thread
        thread.start()

    def _run_loop(self, stop_event: threading.Event) -> None:
        while not stop_event.wait(self.sync_interval.total_seconds()):
            self._sync_logged("Automatic")
        logger.info("Automatic sync stopped")

    def stop_auto_sync(self) -> None:
        """Signal the background loop to exit without waiting for it."""
        with self._lock:
            if not self._running:
                return
            self._stop_event.set()
            self._stop_event = threading.Event()
            self._running = False

    def corrected_time(self) -> datetime:
        """Return the system time adjusted by the last known offset."""
        with self._lock:
            return self._clock() + self._offset

    def status(self) -> TrackerStatus:
        """Return a consistent snapshot of every tracked field."""
        with self._lock:
            now = self._clock()
            since = (now - self._last_sync).total_seconds() if self._last_sync else None
            return TrackerStatus(
                current_server=self._current_server,
                last_sync=self._last_sync,
                time_since_sync_s=since,
                offset_ms=self._offset.total_seconds() * 1000,
                sync_interval_s=self._sync_interval.total_seconds(),
                running=self._running,
                servers=tuple(self._servers),
                corrected_time=now + self._offset,
                system_time=now,
            )

    def add_server(self, address: str) -> None:
        """Append a server to the end of the query list."""
        with self._lock:
            self._servers.append(address)
        logger.info("NTP server added: %s", address)

    def set_sync_interval(self, interval: timedelta) -> None:
        """Change the resync interval; a running loop applies it after its current wait."""
        if interval <= timedelta(0):
            raise ValueError("sync_interval must be positive")
        with self._lock:
            self._sync_interval = interval
        logger.info("Sync interval updated: %s", interval)
