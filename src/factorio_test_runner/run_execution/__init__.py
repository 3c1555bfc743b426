"""Run execution domain exports."""

from .run_contracts import ExitCode, RunOutcome, RunRequest, resolve_exit_code
from .suite_run_orchestrator import ProgressReporter, RunState, SuiteRunOrchestrator
from .suite_run_use_case import RunExecutionError, execute_suite_run

__all__ = [
    "ExitCode",
    "RunRequest",
    "RunOutcome",
    "resolve_exit_code",
    "ProgressReporter",
    "RunState",
    "SuiteRunOrchestrator",
    "RunExecutionError",
    "execute_suite_run",
]
