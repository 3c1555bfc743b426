"""Configuration domain exports."""

from .config_scaffold_builder import (
    DEFAULT_CONFIG_FILENAME,
    build_placeholder_configuration,
    write_placeholder_configuration,
)
from .loader import (
    FACTORIO_PATH_ENV_VAR,
    ConfigurationError,
    load_configuration,
    verify_launch_prerequisites,
)
from .runtime_settings import RconSettings, RunConfiguration, StagingSettings, TimeoutSettings

__all__ = [
    "RunConfiguration",
    "RconSettings",
    "StagingSettings",
    "TimeoutSettings",
    "ConfigurationError",
    "FACTORIO_PATH_ENV_VAR",
    "load_configuration",
    "verify_launch_prerequisites",
    "DEFAULT_CONFIG_FILENAME",
    "build_placeholder_configuration",
    "write_placeholder_configuration",
]
