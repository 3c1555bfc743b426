"""Remote console session used to trigger the in-game test suite."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import Protocol

from factorio_test_runner.configuration.runtime_settings import RconSettings, TimeoutSettings

from .console_errors import RemoteConsoleError
from .rcon_connection import RconConnection

_LOGGER = logging.getLogger(__name__)

RUN_ALL_TESTS_COMMAND = '/silent-command remote.call("test_runner", "run_all_tests")'


class RemoteClient(Protocol):
    """Protocol implemented by both real and fake remote console clients."""

    def connect(self, password: str) -> None: ...

    def send(self, command: str) -> str: ...

    def close(self) -> None: ...


RemoteClientFactory = Callable[..., RemoteClient]


def open_remote_session(
    rcon: RconSettings,
    timeouts: TimeoutSettings,
    *,
    client_factory: RemoteClientFactory | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> RemoteControlSession:
    """Connect and authenticate once the freshly ready server accepts sessions.

    The server logs its ready marker slightly before the console listener takes
    connections, hence the settle delay before the first attempt.
    """
    sleep(timeouts.connect_settle_seconds)
    factory = client_factory or RconConnection
    client = factory(rcon.host, rcon.port, timeout=timeouts.connect_timeout_seconds)
    client.connect(rcon.password)
    return RemoteControlSession(client, timeouts, sleep=sleep)


class RemoteControlSession:
    """Connected, authenticated remote console handle."""

    def __init__(
        self,
        client: RemoteClient,
        timeouts: TimeoutSettings,
        *,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._client = client
        self._timeouts = timeouts
        self._sleep = sleep
        self._closed = False

    def send(self, command: str) -> str:
        return self._client.send(command)

    def run_tests(self, command: str = RUN_ALL_TESTS_COMMAND) -> None:
        """Trigger the suite and give it time to print its results.

        The first console command of a save only shows Factorio's "commands disable
        achievements" warning without running anything, so the trigger is sent twice.
        """
        self.send(command)
        self._sleep(self._timeouts.command_repeat_delay_seconds)
        self.send(command)
        self._sleep(self._timeouts.post_command_settle_seconds)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            self._client.close()
        except (OSError, RemoteConsoleError) as exc:
            _LOGGER.debug("Ignoring remote console close failure: %s", exc)
