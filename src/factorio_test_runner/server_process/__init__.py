"""Server process exports."""

from .process_control import kill_processes_named
from .process_errors import LaunchError, ReadinessTimeoutError, ServerProcessError
from .process_supervisor import (
    OutputConsumer,
    OutputLogWriter,
    ProcessSupervisor,
    ServerProcessHandle,
    build_launch_command,
)
from .readiness_detector import READINESS_MARKERS, ReadinessDetector

__all__ = [
    "ServerProcessError",
    "LaunchError",
    "ReadinessTimeoutError",
    "OutputConsumer",
    "OutputLogWriter",
    "ProcessSupervisor",
    "ServerProcessHandle",
    "build_launch_command",
    "kill_processes_named",
    "READINESS_MARKERS",
    "ReadinessDetector",
]
