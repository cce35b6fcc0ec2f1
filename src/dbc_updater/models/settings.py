"""Runtime settings for the DBC updater."""

from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class UpdaterSettings(BaseModel):
    """All tunables of one update run.

    There is no configuration file; defaults match the deployed vehicle and
    the CLI overrides only ``update_timeout``.
    """

    # Vehicle services
    services: tuple[str, ...] = Field(
        ("librescoot-vehicle", "unu-vehicle"),
        min_length=1,
        description="Vehicle service names operated as one unit",
    )

    # GPIO power line
    gpio_root: Path = Field(
        Path("/sys/class/gpio"), description="sysfs GPIO control directory"
    )
    gpio_pin: int = Field(50, ge=0, description="DBC power-enable line")
    gpio_settle_delay: float = Field(
        0.1, ge=0, description="Seconds to wait after export before configuring"
    )

    # Lock file rendez-vous
    lock_path: Path = Field(
        Path("/tmp/dbc-update.lock"), description="Update lock marker"
    )
    poll_interval: float = Field(
        1.0, gt=0, description="Seconds between lock file checks"
    )

    # Shared state store
    redis_host: str = Field("192.168.7.1", description="Redis host")
    redis_port: int = Field(6379, gt=0, le=65535, description="Redis port")
    redis_db: int = Field(0, ge=0, description="Redis database index")
    dashboard_channel: str = Field("dashboard", description="Readiness channel")
    ready_payload: str = Field("ready", description="Readiness event payload")

    # Deadlines
    signal_timeout: float = Field(
        30.0,
        gt=0,
        description="Bound for readiness observation and pin-code operations",
    )
    update_timeout: float = Field(
        30 * 60.0, gt=0, description="Maximum seconds to await update completion"
    )
    handoff_delay: float = Field(
        5.0, ge=0, description="Seconds given to the external updater to start"
    )
    stop_after_first_reset: bool = Field(
        False, description="End readiness monitoring after the first reset"
    )

    log_file: Optional[str] = Field(
        "./logs/dbc-updater.log", description="Rotating log file, None to disable"
    )

    @field_validator("services")
    @classmethod
    def non_empty_service_names(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        """Reject blank service names."""
        if any(not name.strip() for name in v):
            raise ValueError("Service names must not be empty")
        return v
