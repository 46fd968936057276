"""Shared fakes for tracker and HTTP tests."""

import threading
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

import pytest

from chuk_ntp_clock.models import NTPError, NTPResponse
from chuk_ntp_clock.ntp_client import NTPQueryError
from chuk_ntp_clock.tracker import TimeOffsetTracker

T0 = datetime(2025, 6, 1, 12, 0, 0, tzinfo=UTC)


class FakeClock:
    """Manually advanced UTC clock."""

    def __init__(self, now: datetime = T0) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


class FakeNTPClient:
    """Answers with a fixed offset per server, or fails for unknown servers."""

    def __init__(self, offsets: dict[str, float]) -> None:
        self.offsets = offsets
        self.queried: list[str] = []
        self._lock = threading.Lock()

    def query(self, server: str) -> NTPResponse:
        with self._lock:
            self.queried.append(server)
        if server not in self.offsets:
            raise NTPQueryError(server, NTPError.TIMEOUT, "No response received")
        return NTPResponse(
            server=server,
            offset_s=self.offsets[server],
            rtt_ms=12.5,
            stratum=2,
            precision_s=2.0**-20,
            timestamp=T0.timestamp() + self.offsets[server],
        )


TrackerFactory = Callable[..., tuple[TimeOffsetTracker, FakeNTPClient, FakeClock]]


@pytest.fixture
def make_tracker() -> TrackerFactory:
    """Build a tracker wired to a fake client and clock starting at T0."""

    def factory(
        servers: list[str], offsets: dict[str, float], interval: float = 3600.0
    ) -> tuple[TimeOffsetTracker, FakeNTPClient, FakeClock]:
        client = FakeNTPClient(offsets)
        clock = FakeClock()
        tracker = TimeOffsetTracker(
            servers=servers,
            sync_interval=timedelta(seconds=interval),
            client=client,  # type: ignore[arg-type]
            clock=clock,
        )
        return tracker, client, clock

    return factory
