"""Configuration loader service."""

from __future__ import annotations

import json
import os
import sys
import tempfile
from collections.abc import Mapping
from dataclasses import fields
from pathlib import Path
from typing import Any

import yaml

from .runtime_settings import RconSettings, RunConfiguration, StagingSettings, TimeoutSettings

FACTORIO_PATH_ENV_VAR = "FACTORIO_PATH"
LOCAL_CONFIG_FILENAME = ".local-config.json"
DEFAULT_LOG_FILENAME = ".test-output.log"
DEFAULT_RCON_HOST = "localhost"

_POSITIVE_TIMEOUTS = frozenset({"ready_seconds", "connect_timeout_seconds"})


class ConfigurationError(Exception):
    """Raised when the configuration file is invalid."""


def load_configuration(
    config_path: Path | str,
    *,
    environ: Mapping[str, str] | None = None,
    log_path: Path | str | None = None,
) -> RunConfiguration:
    """Load and validate the run configuration file."""
    path = Path(config_path)
    if not path.exists():
        raise ConfigurationError(f"Configuration file not found: {path}")

    text = path.read_text(encoding="utf-8")
    try:
        parsed = yaml.safe_load(text)
    except yaml.YAMLError as exc:  # pragma: no cover - exercised indirectly
        raise ConfigurationError(f"Failed to parse configuration file: {exc}") from exc

    if parsed is None:
        parsed = {}

    if not isinstance(parsed, Mapping):
        raise ConfigurationError("Configuration root must be a mapping.")

    base_path = path.resolve().parent
    environment = os.environ if environ is None else environ
    server = _require_mapping(parsed.get("server"), "server")
    executable = _resolve_server_executable(server, base_path, environment)
    settings_value = _require_non_empty_string(server.get("settings"), "server.settings")
    server_settings = _require_existing_path(
        _resolve_path(base_path, settings_value), "Server settings file"
    )
    staging = _parse_staging_section(parsed.get("staging"), base_path)
    if staging is None:
        save_path = _require_existing_path(
            _resolve_path(base_path, _require_non_empty_string(server.get("save"), "server.save")),
            "Save file",
        )
        mod_directory = _require_existing_path(
            _resolve_path(
                base_path,
                _require_non_empty_string(server.get("mod_directory"), "server.mod_directory"),
            ),
            "Mod directory",
        )
    else:
        save_path = staging.save_path
        mod_directory = staging.mods_dir

    rcon = _parse_rcon_section(parsed.get("rcon"))
    timeouts = _parse_timeouts_section(parsed.get("timeouts"))
    if log_path is None:
        log_value = _require_non_empty_string(
            parsed.get("log_file", DEFAULT_LOG_FILENAME), "log_file"
        )
        resolved_log_path = _resolve_path(base_path, log_value)
    else:
        resolved_log_path = Path(log_path).resolve()

    return RunConfiguration(
        path=path,
        server_executable=executable,
        save_path=save_path,
        mod_directory=mod_directory,
        server_settings=server_settings,
        rcon=rcon,
        timeouts=timeouts,
        log_path=resolved_log_path,
        staging=staging,
    )


def verify_launch_prerequisites(configuration: RunConfiguration) -> None:
    """Fail fast when a path the server is launched with does not exist."""
    _require_existing_path(configuration.server_executable, "Factorio executable")
    _require_existing_path(configuration.server_settings, "Server settings file")
    _require_existing_path(configuration.save_path, "Save file")
    if not configuration.mod_directory.is_dir():
        raise ConfigurationError(f"Mod directory not found: {configuration.mod_directory}")


def default_server_executable() -> Path:
    """Return the usual Steam install location of the Factorio binary."""
    if sys.platform.startswith("win"):
        return Path(
            "C:/Program Files (x86)/Steam/steamapps/common/Factorio/bin/x64/factorio.exe"
        )
    if sys.platform == "darwin":
        return Path(
            "~/Library/Application Support/Steam/steamapps/common/Factorio/"
            "factorio.app/Contents/MacOS/factorio"
        ).expanduser()
    return Path("~/.steam/steam/steamapps/common/Factorio/bin/x64/factorio").expanduser()


def _resolve_server_executable(
    server: Mapping[str, Any], base_path: Path, environment: Mapping[str, str]
) -> Path:
    from_env = (environment.get(FACTORIO_PATH_ENV_VAR) or "").strip()
    if from_env:
        candidate = Path(from_env)
    elif server.get("executable") is not None:
        candidate = _resolve_path(
            base_path, _require_non_empty_string(server.get("executable"), "server.executable")
        )
    else:
        candidate = _read_local_config_executable(base_path) or default_server_executable()
    if not candidate.exists():
        raise ConfigurationError(
            f"Factorio executable not found: {candidate}. "
            f"Set server.executable or the {FACTORIO_PATH_ENV_VAR} environment variable."
        )
    return candidate


def _read_local_config_executable(base_path: Path) -> Path | None:
    local_config_path = base_path / LOCAL_CONFIG_FILENAME
    if not local_config_path.exists():
        return None
    try:
        local_config = json.loads(local_config_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ConfigurationError(f"Failed to parse {local_config_path}: {exc}") from exc
    if not isinstance(local_config, Mapping):
        raise ConfigurationError(f"{local_config_path} root must be an object.")
    value = _optional_string(local_config.get("factorio"), f"{LOCAL_CONFIG_FILENAME} factorio")
    return Path(value) if value else None


def _parse_staging_section(value: Any, base_path: Path) -> StagingSettings | None:
    if value is None:
        return None
    section = _require_mapping(value, "staging")
    mod_name = _require_non_empty_string(section.get("mod_name"), "staging.mod_name")
    mod_source = _resolve_path(
        base_path, _require_non_empty_string(section.get("mod_source", "."), "staging.mod_source")
    )
    if not mod_source.is_dir():
        raise ConfigurationError(f"Mod source directory not found: {mod_source}")
    template_save = _require_existing_path(
        _resolve_path(
            base_path,
            _require_non_empty_string(section.get("template_save"), "staging.template_save"),
        ),
        "Template save",
    )
    work_dir_value = _optional_string(section.get("work_dir"), "staging.work_dir")
    work_dir = (
        _resolve_path(base_path, work_dir_value)
        if work_dir_value
        else Path(tempfile.gettempdir()) / "factorio-test"
    )
    return StagingSettings(
        mod_name=mod_name,
        mod_source=mod_source,
        template_save=template_save,
        work_dir=work_dir,
    )


def _parse_rcon_section(value: Any) -> RconSettings:
    section = _require_mapping(value, "rcon")
    host = _require_non_empty_string(section.get("host", DEFAULT_RCON_HOST), "rcon.host")
    port = _require_positive_int(section.get("port"), "rcon.port")
    if port > 65535:
        raise ConfigurationError("rcon.port must be at most 65535.")
    password = _require_non_empty_string(section.get("password"), "rcon.password")
    return RconSettings(host=host, port=port, password=password)


def _parse_timeouts_section(value: Any) -> TimeoutSettings:
    if value is None:
        return TimeoutSettings()
    section = _require_mapping(value, "timeouts")
    known = {field.name for field in fields(TimeoutSettings)}
    unknown = sorted(set(section) - known)
    if unknown:
        raise ConfigurationError(f"Unknown timeouts setting(s): {', '.join(map(str, unknown))}")
    overrides: dict[str, float] = {}
    for name, raw in section.items():
        seconds = _require_non_negative_number(raw, f"timeouts.{name}")
        if name in _POSITIVE_TIMEOUTS and seconds == 0:
            raise ConfigurationError(f"timeouts.{name} must be greater than zero.")
        overrides[name] = seconds
    return TimeoutSettings(**overrides)


def _resolve_path(base_path: Path, raw_path: str) -> Path:
    candidate = Path(raw_path).expanduser()
    if not candidate.is_absolute():
        return (base_path / candidate).resolve()
    return candidate


def _require_existing_path(path: Path, label: str) -> Path:
    if not path.exists():
        raise ConfigurationError(f"{label} not found: {path}")
    return path


def _require_mapping(value: Any, section_name: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise ConfigurationError(f"Configuration section '{section_name}' is required.")
    return value


def _require_non_empty_string(value: Any, field_name: str) -> str:
    if not isinstance(value, str):
        raise ConfigurationError(f"{field_name} must be a string.")
    stripped = value.strip()
    if not stripped:
        raise ConfigurationError(f"{field_name} must not be empty.")
    return stripped


def _optional_string(value: Any, field_name: str) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ConfigurationError(f"{field_name} must be a string.")
    stripped = value.strip()
    return stripped or None


def _require_positive_int(value: Any, field_name: str) -> int:
    if isinstance(value, bool):
        raise ConfigurationError(f"{field_name} must be an integer.")
    if not isinstance(value, int):
        raise ConfigurationError(f"{field_name} must be an integer.")
    if value <= 0:
        raise ConfigurationError(f"{field_name} must be greater than zero.")
    return value


def _require_non_negative_number(value: Any, field_name: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigurationError(f"{field_name} must be a number.")
    if value < 0:
        raise ConfigurationError(f"{field_name} must not be negative.")
    return float(value)
