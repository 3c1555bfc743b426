"""Remote console exports."""

from .console_errors import CommandSendError, RemoteConnectError, RemoteConsoleError
from .rcon_connection import RconConnection
from .remote_control_session import (
    RUN_ALL_TESTS_COMMAND,
    RemoteControlSession,
    open_remote_session,
)

__all__ = [
    "RemoteConsoleError",
    "RemoteConnectError",
    "CommandSendError",
    "RconConnection",
    "RUN_ALL_TESTS_COMMAND",
    "RemoteControlSession",
    "open_remote_session",
]
