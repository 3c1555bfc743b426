"""Server process failure taxonomy."""

from __future__ import annotations


class ServerProcessError(Exception):
    """Base class for failures of the supervised server process."""


class LaunchError(ServerProcessError):
    """Raised when the server cannot be started or exits before it is ready."""


class ReadinessTimeoutError(ServerProcessError):
    """Raised when no readiness marker appears within the allowed window."""
