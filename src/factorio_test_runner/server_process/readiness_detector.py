"""Detection of the server entering its hosting state."""

from __future__ import annotations

import threading
from collections.abc import Callable, Sequence

from .process_errors import LaunchError, ReadinessTimeoutError

READINESS_MARKERS = (
    "Hosting multiplayer game",
    "changing state from(CreatingGame) to(InGame)",
)


class ReadinessDetector:
    """Output consumer resolving once to "ready" or "closed before ready".

    Matching is substring based over the raw stream. The end of the previous chunk
    is kept so a marker split across two chunks is still found.
    """

    def __init__(
        self,
        markers: Sequence[str] = READINESS_MARKERS,
        *,
        on_ready: Callable[[], None] | None = None,
    ) -> None:
        self._markers = tuple(markers)
        self._on_ready = on_ready
        self._tail_length = max(len(marker) for marker in self._markers) - 1
        self._tail = ""
        self._ready = False
        self._settled = threading.Event()

    @property
    def ready(self) -> bool:
        return self._ready

    def feed(self, chunk: str) -> None:
        if self._settled.is_set():
            return
        window = self._tail + chunk
        if any(marker in window for marker in self._markers):
            self._ready = True
            if self._on_ready is not None:
                self._on_ready()
            self._settled.set()
            return
        self._tail = window[-self._tail_length :] if self._tail_length else ""

    def close(self) -> None:
        self._settled.set()

    def wait_until_ready(
        self, timeout: float, *, on_timeout: Callable[[], None] | None = None
    ) -> None:
        """Block until ready.

        Raises:
          ReadinessTimeoutError: No marker within ``timeout`` seconds. ``on_timeout``
            runs first so the caller can save the output and stop the server.
          LaunchError: The output stream ended before a marker was seen.
        """
        if not self._settled.wait(timeout):
            if on_timeout is not None:
                on_timeout()
            raise ReadinessTimeoutError(f"Server startup timeout after {timeout:g} seconds")
        if not self._ready:
            raise LaunchError("Server closed before becoming ready")
