"""Source RCON connection to the server's ``--rcon-port``."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from rcon.exceptions import EmptyResponse, SessionTimeout, WrongPassword
from rcon.source import Client

from .console_errors import CommandSendError, RemoteConnectError

_LOGGER = logging.getLogger(__name__)

# Socket failures, missing or mismatched replies, and malformed frames.
_TRANSPORT_ERRORS = (OSError, EmptyResponse, SessionTimeout, ValueError)

RconClientFactory = Callable[..., Any]


class RconConnection:
    """One authenticated RCON client with library errors mapped to console errors."""

    def __init__(
        self,
        host: str,
        port: int,
        *,
        timeout: float,
        client_factory: RconClientFactory = Client,
    ) -> None:
        self._host = host
        self._port = port
        self._timeout = timeout
        self._client_factory = client_factory
        self._client: Any | None = None

    @property
    def connected(self) -> bool:
        return self._client is not None

    def connect(self, password: str) -> None:
        client = self._client_factory(
            self._host, self._port, timeout=self._timeout, passwd=password
        )
        try:
            client.connect(login=True)
        except WrongPassword as exc:
            client.close()
            raise RemoteConnectError("RCON authentication failed: wrong password.") from exc
        except _TRANSPORT_ERRORS as exc:
            client.close()
            raise RemoteConnectError(
                f"Cannot connect to RCON at {self._host}:{self._port}: {exc}"
            ) from exc
        _LOGGER.debug("RCON session authenticated at %s:%s", self._host, self._port)
        self._client = client

    def send(self, command: str) -> str:
        """Execute ``command`` and return the server's reply text."""
        if self._client is None:
            raise CommandSendError("RCON session is not connected.")
        try:
            return self._client.run(command)
        except _TRANSPORT_ERRORS as exc:
            raise CommandSendError(f"RCON command failed: {exc!r}") from exc

    def close(self) -> None:
        client, self._client = self._client, None
        if client is not None:
            client.close()
