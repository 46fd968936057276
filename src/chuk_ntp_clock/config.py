"""Runtime configuration for the NTP clock server."""

import os
from functools import lru_cache

from pydantic import BaseModel, Field

DEFAULT_NTP_SERVERS = [
    "0.br.pool.ntp.org",
    "1.br.pool.ntp.org",
    "2.br.pool.ntp.org",
    "a.st1.ntp.br",
    "b.st1.ntp.br",
]


class ServerConfig(BaseModel):
    """Configuration for NTP synchronization and the HTTP listener."""

    ntp_servers: list[str] = Field(
        default_factory=lambda: list(DEFAULT_NTP_SERVERS),
        description="NTP servers, tried in order until one answers",
    )
    sync_interval_seconds: float = Field(
        600.0, gt=0, description="Seconds between automatic resyncs"
    )
    ntp_timeout: float = Field(5.0, gt=0, description="Per-server query timeout in seconds")
    ntp_version: int = Field(3, ge=1, le=4, description="NTP protocol version to request")
    host: str = Field("0.0.0.0", description="HTTP bind address")
    port: int = Field(8080, ge=1, le=65535, description="HTTP port")
    log_level: str = Field("INFO", description="Root log level for HTTP mode")


def _split_servers(raw: str) -> list[str]:
    return [s.strip() for s in raw.split(",") if s.strip()]


def load_config(environ: dict[str, str] | None = None) -> ServerConfig:
    """Build a ServerConfig from environment variables.

    Args:
        environ: Mapping to read from (defaults to os.environ)

    Returns:
        Validated ServerConfig; unset variables keep their defaults
    """
    env = os.environ if environ is None else environ
    values: dict[str, object] = {}

    if env.get("NTP_SERVERS"):
        values["ntp_servers"] = _split_servers(env["NTP_SERVERS"])
    if env.get("NTP_SYNC_INTERVAL"):
        values["sync_interval_seconds"] = env["NTP_SYNC_INTERVAL"]
    if env.get("NTP_TIMEOUT"):
        values["ntp_timeout"] = env["NTP_TIMEOUT"]
    if env.get("NTP_VERSION"):
        values["ntp_version"] = env["NTP_VERSION"]
    if env.get("HOST"):
        values["host"] = env["HOST"]
    if env.get("PORT"):
        values["port"] = env["PORT"]
    if env.get("LOG_LEVEL"):
        values["log_level"] = env["LOG_LEVEL"].upper()

    return ServerConfig.model_validate(values)


@lru_cache(maxsize=1)
def get_config() -> ServerConfig:
    """Return the process-wide configuration."""
    return load_config()
