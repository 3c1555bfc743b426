"""Configuration domain entities."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class RconSettings:
    """Remote-console connectivity configuration."""

    host: str
    port: int
    password: str


@dataclass(frozen=True)
class TimeoutSettings:  # pylint: disable=too-many-instance-attributes
    """Wall-clock bounds and settle delays applied during one run, in seconds."""

    ready_seconds: float = 30.0
    connect_settle_seconds: float = 5.0
    connect_timeout_seconds: float = 10.0
    command_repeat_delay_seconds: float = 0.5
    post_command_settle_seconds: float = 2.0
    summary_wait_seconds: float = 0.0
    termination_grace_seconds: float = 2.0
    kill_settle_seconds: float = 0.5
    stale_instance_grace_seconds: float = 1.0


@dataclass(frozen=True)
class StagingSettings:
    """Throwaway workspace built before launch: linked mod plus a copied save."""

    mod_name: str
    mod_source: Path
    template_save: Path
    work_dir: Path

    @property
    def mods_dir(self) -> Path:
        return self.work_dir / "mods"

    @property
    def save_path(self) -> Path:
        return self.work_dir / "test-save.zip"


@dataclass(frozen=True)
class RunConfiguration:  # pylint: disable=too-many-instance-attributes
    """Top-level configuration aggregate for one test run."""

    path: Path
    server_executable: Path
    save_path: Path
    mod_directory: Path
    server_settings: Path
    rcon: RconSettings
    timeouts: TimeoutSettings
    log_path: Path
    staging: StagingSettings | None = None
