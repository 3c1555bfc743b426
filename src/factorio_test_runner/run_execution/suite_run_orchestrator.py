"""Sequencing of one server test run with guaranteed teardown."""

from __future__ import annotations

import logging
from collections.abc import Callable
from enum import Enum
from typing import Protocol

from factorio_test_runner.configuration.runtime_settings import (
    RconSettings,
    RunConfiguration,
    TimeoutSettings,
)
from factorio_test_runner.output_scanning import (
    OutputScanner,
    TestLineEvent,
    TestRunResult,
    parse_test_results,
)
from factorio_test_runner.remote_console import RemoteControlSession, open_remote_session
from factorio_test_runner.server_process import ProcessSupervisor, ServerProcessHandle
from factorio_test_runner.workspace_staging import prepare_run_workspace

from .run_contracts import RunOutcome, resolve_exit_code

_LOGGER = logging.getLogger(__name__)

SessionOpener = Callable[[RconSettings, TimeoutSettings], RemoteControlSession]
WorkspacePreparer = Callable[[RunConfiguration], None]


class RunState(str, Enum):
    """Lifecycle of one orchestrated run."""

    IDLE = "idle"
    LAUNCHING = "launching"
    AWAITING_READY = "awaiting_ready"
    CONNECTED = "connected"
    RUNNING = "running"
    PARSING_RESULTS = "parsing_results"
    TEARING_DOWN = "tearing_down"
    DONE = "done"
    FAILED = "failed"


class ProgressReporter(Protocol):
    """Receiver of human-readable progress while a run is in flight."""

    def on_status(self, message: str) -> None: ...

    def on_event(self, event: TestLineEvent) -> None: ...

    def on_no_tests(self) -> None: ...


class SuiteRunOrchestrator:
    """Drives launch, readiness, test trigger and result parsing for one run.

    Once launching has begun, teardown (close the session, terminate the server)
    runs exactly once on every exit path, including interrupts.
    """

    def __init__(
        self,
        configuration: RunConfiguration,
        *,
        supervisor: ProcessSupervisor,
        reporter: ProgressReporter,
        session_opener: SessionOpener | None = None,
        workspace_preparer: WorkspacePreparer | None = None,
    ) -> None:
        self._configuration = configuration
        self._supervisor = supervisor
        self._reporter = reporter
        self._session_opener = session_opener or open_remote_session
        self._workspace_preparer = workspace_preparer or prepare_run_workspace
        self._state = RunState.IDLE
        self._history: list[RunState] = [RunState.IDLE]
        self._handle: ServerProcessHandle | None = None
        self._session: RemoteControlSession | None = None

    @property
    def state(self) -> RunState:
        return self._state

    @property
    def history(self) -> tuple[RunState, ...]:
        return tuple(self._history)

    def run(self) -> RunOutcome:
        if self._state is not RunState.IDLE:
            raise RuntimeError("An orchestrator instance runs only once.")
        self._transition(RunState.LAUNCHING)
        try:
            result = self._execute()
        except BaseException:
            self._tear_down()
            self._transition(RunState.FAILED)
            raise
        self._tear_down()
        self._transition(RunState.DONE)

        outcome = RunOutcome(
            result=result,
            exit_code=resolve_exit_code(result),
            log_path=self._configuration.log_path,
        )
        if outcome.no_tests_found:
            self._reporter.on_no_tests()
        return outcome

    def _execute(self) -> TestRunResult:
        timeouts = self._configuration.timeouts
        # Stale servers must be gone before staging rewrites the save and mod link.
        self._supervisor.kill_stale_instances()
        self._workspace_preparer(self._configuration)
        self._reporter.on_status("Starting Factorio server...")
        self._handle = handle = self._supervisor.launch()

        self._transition(RunState.AWAITING_READY)
        handle.readiness.wait_until_ready(timeouts.ready_seconds, on_timeout=handle.abort)
        scanner = OutputScanner(on_event=self._reporter.on_event)
        handle.subscribe(scanner, replay_from=handle.ready_offset)

        self._session = session = self._session_opener(self._configuration.rcon, timeouts)
        self._transition(RunState.CONNECTED)
        self._reporter.on_status("Running tests...")

        self._transition(RunState.RUNNING)
        session.run_tests()
        if timeouts.summary_wait_seconds > 0 and not scanner.wait_for_summary(
            timeouts.summary_wait_seconds
        ):
            _LOGGER.info("No summary line within %gs", timeouts.summary_wait_seconds)

        self._transition(RunState.PARSING_RESULTS)
        return parse_test_results(handle.output_since(handle.ready_offset))

    def _tear_down(self) -> None:
        self._transition(RunState.TEARING_DOWN)
        if self._session is not None:
            self._session.close()
        self._supervisor.terminate(self._handle)

    def _transition(self, state: RunState) -> None:
        _LOGGER.debug("Run state %s -> %s", self._state.value, state.value)
        self._state = state
        self._history.append(state)
