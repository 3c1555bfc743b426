"""Remote console failure taxonomy."""

from __future__ import annotations


class RemoteConsoleError(Exception):
    """Base class for remote console failures."""


class RemoteConnectError(RemoteConsoleError):
    """Raised when a session cannot be opened or authenticated."""


class CommandSendError(RemoteConsoleError):
    """Raised when a command cannot be delivered over an open session."""
