"""Run execution use-case service."""

from __future__ import annotations

from collections.abc import Callable, Mapping

from factorio_test_runner.configuration import (
    ConfigurationError,
    RunConfiguration,
    load_configuration,
)
from factorio_test_runner.output_scanning import ConsoleProgressReporter
from factorio_test_runner.remote_console import RemoteConsoleError
from factorio_test_runner.server_process import ProcessSupervisor, ServerProcessError
from factorio_test_runner.workspace_staging import StagingError

from .run_contracts import RunOutcome, RunRequest
from .suite_run_orchestrator import (
    ProgressReporter,
    SessionOpener,
    SuiteRunOrchestrator,
    WorkspacePreparer,
)

SupervisorFactory = Callable[[RunConfiguration], ProcessSupervisor]


class RunExecutionError(Exception):
    """Raised when a run use case cannot be completed."""


def execute_suite_run(
    request: RunRequest,
    *,
    supervisor_factory: SupervisorFactory | None = None,
    session_opener: SessionOpener | None = None,
    workspace_preparer: WorkspacePreparer | None = None,
    reporter: ProgressReporter | None = None,
    environ: Mapping[str, str] | None = None,
) -> RunOutcome:
    """Execute one full server test run and return its outcome."""
    try:
        configuration = load_configuration(
            request.config_path, environ=environ, log_path=request.log_path
        )
    except ConfigurationError as exc:
        raise RunExecutionError(str(exc)) from exc

    supervisor = (supervisor_factory or ProcessSupervisor)(configuration)
    orchestrator = SuiteRunOrchestrator(
        configuration,
        supervisor=supervisor,
        reporter=reporter or ConsoleProgressReporter(),
        session_opener=session_opener,
        workspace_preparer=workspace_preparer,
    )
    try:
        return orchestrator.run()
    except (
        ConfigurationError,
        StagingError,
        ServerProcessError,
        RemoteConsoleError,
    ) as exc:
        raise RunExecutionError(str(exc)) from exc
