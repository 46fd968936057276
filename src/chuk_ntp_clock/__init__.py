"""HTTP time server corrected by an NTP-learned clock offset."""

__version__ = "1.0.0"

from chuk_ntp_clock.server import (
    add_ntp_server,
    get_ntp_status,
    get_ntp_time,
    main,
    set_ntp_sync_interval,
    sync_ntp_now,
)
from chuk_ntp_clock.tracker import SyncError, TimeOffsetTracker

__all__ = [
    "TimeOffsetTracker",
    "SyncError",
    "get_ntp_time",
    "get_ntp_status",
    "sync_ntp_now",
    "add_ntp_server",
    "set_ntp_sync_interval",
    "main",
    "__version__",
]
