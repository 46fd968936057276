"""Blocking NTP query primitive built on ntplib."""

import logging
import socket

import ntplib

from chuk_ntp_clock.models import NTPError, NTPResponse

logger = logging.getLogger(__name__)


class NTPQueryError(Exception):
    """A single NTP server could not be queried."""

    def __init__(self, server: str, error_type: NTPError, message: str) -> None:
        super().__init__(f"{server}: {message}")
        self.server = server
        self.error_type = error_type
        self.message = message


class NTPClient:
    """Query one NTP server at a time."""

    def __init__(self, timeout: float = 5.0, version: int = 3) -> None:
        self.timeout = timeout
        self.version = version
        self._client = ntplib.NTPClient()

    def query(self, server: str) -> NTPResponse:
        """Query a single NTP server.

        Args:
            server: NTP server hostname or IP

        Returns:
            NTPResponse with the clock offset and reply metadata

        Raises:
            NTPQueryError: if the server cannot be resolved, reached or parsed
        """
        logger.debug("Querying NTP server %s (timeout=%ss)", server, self.timeout)
        try:
            stats = self._client.request(server, version=self.version, timeout=self.timeout)
        except socket.gaierror as e:
            raise NTPQueryError(server, NTPError.DNS_ERROR, f"DNS lookup failed: {e}") from e
        except TimeoutError as e:
            raise NTPQueryError(server, NTPError.TIMEOUT, "Query timed out") from e
        except ntplib.NTPException as e:
            # ntplib reports a receive timeout as an NTPException
            if "No response received" in str(e):
                raise NTPQueryError(server, NTPError.TIMEOUT, str(e)) from e
            raise NTPQueryError(server, NTPError.PARSE_ERROR, str(e)) from e
        except OSError as e:
            raise NTPQueryError(server, NTPError.NETWORK_ERROR, str(e)) from e
        except ValueError as e:
            # Malformed hostnames fail IDNA encoding before any lookup
            raise NTPQueryError(server, NTPError.DNS_ERROR, f"Invalid address: {e}") from e

        return NTPResponse(
            server=server,
            offset_s=stats.offset,
            rtt_ms=stats.delay * 1000,
            stratum=stats.stratum,
            precision_s=2.0**stats.precision,
            timestamp=stats.tx_time,
        )
