"""Authoritative extraction of the suite summary from captured output."""

from __future__ import annotations

from .output_scanner import SUMMARY_PATTERN
from .test_line_events import TestRunResult


def parse_test_results(output: str) -> TestRunResult:
    """Return the counts of the last summary line in ``output``.

    A harness may print intermediate summaries before the final one, so the last
    occurrence is the one that counts. Output without any summary line yields an
    all-zero result rather than an error.
    """
    last_match = None
    for last_match in SUMMARY_PATTERN.finditer(output):
        pass
    if last_match is None:
        return TestRunResult()
    return TestRunResult(
        passed=int(last_match.group(1)),
        failed=int(last_match.group(2)),
        total=int(last_match.group(3)),
    )
