"""Run execution entities."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from pathlib import Path

from factorio_test_runner.output_scanning.test_line_events import TestRunResult


class ExitCode(IntEnum):
    """Process exit status reported by the runner."""

    SUCCESS = 0
    FAILURE = 1


@dataclass(frozen=True)
class RunRequest:
    """Input contract for executing one run."""

    config_path: str
    log_path: str | None = None


@dataclass(frozen=True)
class RunOutcome:
    """Output contract for one completed run."""

    result: TestRunResult
    exit_code: ExitCode
    log_path: Path

    @property
    def no_tests_found(self) -> bool:
        return self.result.passed == 0 and self.result.failed == 0


def resolve_exit_code(result: TestRunResult) -> ExitCode:
    """Map parsed counts to an exit status; a run without any test never succeeds."""
    if result.failed > 0:
        return ExitCode.FAILURE
    if result.passed > 0:
        return ExitCode.SUCCESS
    return ExitCode.FAILURE
