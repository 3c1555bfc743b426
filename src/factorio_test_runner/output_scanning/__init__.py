"""Output scanning exports."""

from .output_scanner import LineBuffer, OutputScanner, scan_line
from .progress_rendering import ConsoleProgressReporter, render_event, render_summary
from .result_parser import parse_test_results
from .test_line_events import (
    FailedTest,
    FailureDetail,
    SuiteSummary,
    TestLineEvent,
    TestRunResult,
)

__all__ = [
    "FailedTest",
    "FailureDetail",
    "SuiteSummary",
    "TestLineEvent",
    "TestRunResult",
    "LineBuffer",
    "OutputScanner",
    "scan_line",
    "parse_test_results",
    "ConsoleProgressReporter",
    "render_event",
    "render_summary",
]
