"""Pydantic models for the NTP clock server."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class NTPError(str, Enum):
    """NTP error types."""

    TIMEOUT = "timeout"
    DNS_ERROR = "dns_error"
    NETWORK_ERROR = "network_error"
    PARSE_ERROR = "parse_error"


class NTPResponse(BaseModel):
    """Successful reply from an NTP server."""

    server: str = Field(description="NTP server hostname or IP")
    offset_s: float = Field(description="Clock offset in seconds (remote - local)")
    rtt_ms: float = Field(description="Round-trip time in milliseconds")
    stratum: int = Field(description="NTP stratum (quality indicator, 0-16)")
    precision_s: float = Field(description="Server clock precision in seconds")
    timestamp: float = Field(description="Server transmit time as a Unix timestamp")


class TrackerStatus(BaseModel):
    """Consistent snapshot of the offset tracker."""

    model_config = ConfigDict(frozen=True)

    current_server: str | None = Field(
        description="Server that produced the stored offset (None before first sync)"
    )
    last_sync: datetime | None = Field(description="Time of the last successful sync (UTC)")
    time_since_sync_s: float | None = Field(
        description="Seconds elapsed since the last successful sync"
    )
    offset_ms: float = Field(description="Stored offset in milliseconds (remote - local)")
    sync_interval_s: float = Field(description="Seconds between automatic resyncs")
    running: bool = Field(description="Whether automatic resync is active")
    servers: tuple[str, ...] = Field(description="Configured NTP servers, in query order")
    corrected_time: datetime = Field(description="System time plus offset (UTC)")
    system_time: datetime = Field(description="System clock time (UTC)")


class TimeResponse(BaseModel):
    """Corrected and system time at one instant."""

    ntp_time: str = Field(description="Corrected time in ISO 8601 format (UTC)")
    system_time: str = Field(description="System clock time in ISO 8601 format (UTC)")
    offset_ms: float = Field(description="Offset applied to the system clock in milliseconds")
    unix_timestamp: int = Field(description="Corrected time as whole Unix seconds")


class SyncResult(BaseModel):
    """Outcome of a manual synchronization."""

    status: str = Field(description='"success" or "error"')
    message: str = Field(description="Human readable outcome")
    server: str | None = Field(None, description="Server that answered, on success")
    corrected_time: str | None = Field(None, description="Corrected time after the sync")
    offset_ms: float | None = Field(None, description="New offset in milliseconds")
    rtt_ms: float | None = Field(None, description="Round-trip time of the winning query")
    stratum: int | None = Field(None, description="Stratum of the winning server")


class AddServerRequest(BaseModel):
    """Body for registering an additional NTP server."""

    address: str = Field(min_length=1, description="Hostname or IP of the NTP server")


class SyncIntervalRequest(BaseModel):
    """Body for changing the automatic resync interval."""

    seconds: float = Field(gt=0, description="Seconds between automatic resyncs")
