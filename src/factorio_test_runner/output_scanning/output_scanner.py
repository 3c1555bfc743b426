"""Line-by-line scanning of the live server output for test harness markers."""

from __future__ import annotations

import re
import threading
from collections.abc import Callable

from .test_line_events import FailedTest, FailureDetail, SuiteSummary, TestLineEvent

HARNESS_TAG = r"test-harness\.lua:\d+:"

FAILURE_PATTERN = re.compile(HARNESS_TAG + r"\s*✗\s*(.+)")
FAILURE_DETAIL_PATTERN = re.compile(HARNESS_TAG + r"\s{2,}(.+)")
EMBEDDED_LOCATION_PATTERN = re.compile(r"__\w+__/.*?:\d+:\s*(.+)")
SUMMARY_PATTERN = re.compile(
    r"Tests:\s*(\d+)\s*passed,\s*(\d+)\s*failed,\s*(\d+)\s*total", re.IGNORECASE
)


def scan_line(line: str) -> TestLineEvent | None:
    """Classify one output line; the first matching pattern wins."""
    failure_match = FAILURE_PATTERN.search(line)
    if failure_match:
        return FailedTest(test_name=failure_match.group(1).strip())

    detail_match = FAILURE_DETAIL_PATTERN.search(line)
    if detail_match:
        message = detail_match.group(1)
        location_match = EMBEDDED_LOCATION_PATTERN.search(message)
        if location_match:
            message = location_match.group(1)
        return FailureDetail(message=message.strip())

    summary_match = SUMMARY_PATTERN.search(line)
    if summary_match:
        return SuiteSummary(
            passed=int(summary_match.group(1)),
            failed=int(summary_match.group(2)),
            total=int(summary_match.group(3)),
        )
    return None


class LineBuffer:
    """Reassembles complete lines from arbitrarily split text chunks."""

    def __init__(self) -> None:
        self._partial = ""

    def push(self, chunk: str) -> list[str]:
        """Return the lines completed by ``chunk``, keeping the unfinished tail."""
        pieces = (self._partial + chunk).split("\n")
        self._partial = pieces.pop()
        return [piece.rstrip("\r") for piece in pieces]

    def flush(self) -> list[str]:
        """Return the unfinished tail as a final line, if any."""
        tail, self._partial = self._partial.rstrip("\r"), ""
        return [tail] if tail else []


class OutputScanner:
    """Output consumer that turns harness lines into events as they arrive."""

    def __init__(self, on_event: Callable[[TestLineEvent], None]) -> None:
        self._on_event = on_event
        self._lines = LineBuffer()
        self._summary_seen = threading.Event()

    def feed(self, chunk: str) -> None:
        for line in self._lines.push(chunk):
            self._scan(line)

    def close(self) -> None:
        for line in self._lines.flush():
            self._scan(line)

    def wait_for_summary(self, timeout: float) -> bool:
        """Block until a summary line was scanned or ``timeout`` elapsed."""
        return self._summary_seen.wait(timeout)

    def _scan(self, line: str) -> None:
        event = scan_line(line)
        if event is None:
            return
        if isinstance(event, SuiteSummary):
            self._summary_seen.set()
        self._on_event(event)
