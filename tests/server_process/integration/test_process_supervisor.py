"""Process supervisor tests against a real child process standing in for the server."""

from __future__ import annotations

import subprocess
import sys
import textwrap
import threading
from dataclasses import replace
from pathlib import Path

import pytest
from factorio_test_runner.configuration.runtime_settings import (
    RconSettings,
    RunConfiguration,
    TimeoutSettings,
)
from factorio_test_runner.server_process.process_errors import LaunchError
from factorio_test_runner.server_process.process_supervisor import ProcessSupervisor

READY_THEN_IDLE = textwrap.dedent(
    """
    import time
    print("Loading mod base", flush=True)
    print("Info ServerMultiplayerManager.cpp:806: Hosting multiplayer game", flush=True)
    time.sleep(60)
    """
)


def _configuration(tmp_path: Path, **timeouts: float) -> RunConfiguration:
    return RunConfiguration(
        path=tmp_path / "factorio-tests.yaml",
        server_executable=tmp_path / "factorio-stand-in",
        save_path=tmp_path / "test-save.zip",
        mod_directory=tmp_path / "mods",
        server_settings=tmp_path / "server-settings.json",
        rcon=RconSettings(host="127.0.0.1", port=27015, password="pw"),
        timeouts=replace(TimeoutSettings(termination_grace_seconds=5.0), **timeouts),
        log_path=tmp_path / "logs" / ".test-output.log",
    )


class _Recorder:
    def __init__(self, kill_result: int = 0) -> None:
        self.kill_result = kill_result
        self.killed_names: list[str] = []
        self.sleeps: list[float] = []
        self.commands: list[list[str]] = []

    def kill_by_name(self, name: str) -> int:
        self.killed_names.append(name)
        return self.kill_result

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)

    def python_server(self, script: str):
        def _factory(command, **kwargs):
            self.commands.append(command)
            return subprocess.Popen([sys.executable, "-c", script], **kwargs)

        return _factory


def _supervisor(configuration: RunConfiguration, recorder: _Recorder, script: str):
    return ProcessSupervisor(
        configuration,
        popen_factory=recorder.python_server(script),
        kill_by_name=recorder.kill_by_name,
        sleep=recorder.sleep,
    )


def test_launch_reaches_ready_and_mirrors_output_to_log(tmp_path: Path) -> None:
    configuration = _configuration(tmp_path)
    configuration.log_path.parent.mkdir()
    configuration.log_path.write_text("output of a previous run\n", encoding="utf-8")
    recorder = _Recorder()
    supervisor = _supervisor(configuration, recorder, READY_THEN_IDLE)

    handle = supervisor.launch()
    try:
        handle.readiness.wait_until_ready(10.0)
        assert handle.ready is True
        assert recorder.commands[0][1:3] == ["--start-server", str(configuration.save_path)]
    finally:
        supervisor.terminate(handle)

    assert handle.process.poll() is not None
    log_text = configuration.log_path.read_text(encoding="utf-8")
    assert "previous run" not in log_text
    assert "Hosting multiplayer game" in log_text
    assert "Hosting multiplayer game" in handle.output_since(handle.ready_offset)
    assert recorder.killed_names == ["factorio-stand-in"]
    assert recorder.sleeps == [configuration.timeouts.kill_settle_seconds]


def test_subscriber_replays_backlog_from_ready_offset(tmp_path: Path) -> None:
    configuration = _configuration(tmp_path)
    recorder = _Recorder()
    supervisor = _supervisor(configuration, recorder, READY_THEN_IDLE)

    class _Collector:
        def __init__(self) -> None:
            self.chunks: list[str] = []
            self.closed = False

        def feed(self, chunk: str) -> None:
            self.chunks.append(chunk)

        def close(self) -> None:
            self.closed = True

    handle = supervisor.launch()
    collector = _Collector()
    try:
        handle.readiness.wait_until_ready(10.0)
        handle.subscribe(collector, replay_from=handle.ready_offset)
    finally:
        supervisor.terminate(handle)

    replayed = "".join(collector.chunks)
    assert "Hosting multiplayer game" in replayed
    assert collector.closed is True


def test_output_is_read_on_a_pooled_worker_that_finishes_with_teardown(tmp_path: Path) -> None:
    configuration = _configuration(tmp_path)
    recorder = _Recorder()
    supervisor = _supervisor(configuration, recorder, READY_THEN_IDLE)
    reader_threads: list[str] = []

    class _ThreadRecorder:
        def feed(self, chunk: str) -> None:
            reader_threads.append(threading.current_thread().name)

        def close(self) -> None:
            reader_threads.append(threading.current_thread().name)

    handle = supervisor.launch()
    handle.subscribe(_ThreadRecorder())
    try:
        handle.readiness.wait_until_ready(10.0)
    finally:
        supervisor.terminate(handle)

    assert reader_threads
    assert all(name.startswith("server-output") for name in reader_threads)
    assert handle.process.stdout.closed is True


def test_process_exiting_before_ready_is_a_launch_error(tmp_path: Path) -> None:
    configuration = _configuration(tmp_path)
    recorder = _Recorder()
    supervisor = _supervisor(
        configuration, recorder, "import sys; print('Error: missing save', flush=True); sys.exit(1)"
    )

    handle = supervisor.launch()
    try:
        with pytest.raises(LaunchError, match="closed before becoming ready"):
            handle.readiness.wait_until_ready(10.0)
    finally:
        supervisor.terminate(handle)

    assert "Error: missing save" in handle.output_text()


def test_multibyte_glyph_split_between_writes_is_decoded_intact(tmp_path: Path) -> None:
    configuration = _configuration(tmp_path)
    recorder = _Recorder()
    script = textwrap.dedent(
        """
        import sys, time
        sys.stdout.buffer.write(b"test-harness.lua:10: \\xe2")
        sys.stdout.buffer.flush()
        time.sleep(0.2)
        sys.stdout.buffer.write(b"\\x9c\\x97 foo\\n")
        sys.stdout.buffer.flush()
        """
    )
    supervisor = _supervisor(configuration, recorder, script)

    handle = supervisor.launch()
    try:
        with pytest.raises(LaunchError):
            handle.readiness.wait_until_ready(10.0)
    finally:
        supervisor.terminate(handle)

    assert "test-harness.lua:10: ✗ foo" in handle.output_text()


@pytest.mark.skipif(sys.platform.startswith("win"), reason="SIGTERM cannot be ignored on Windows")
def test_terminate_force_kills_a_process_ignoring_sigterm(tmp_path: Path) -> None:
    configuration = _configuration(tmp_path, termination_grace_seconds=0.3)
    recorder = _Recorder()
    script = textwrap.dedent(
        """
        import signal, time
        signal.signal(signal.SIGTERM, signal.SIG_IGN)
        print("Hosting multiplayer game", flush=True)
        time.sleep(60)
        """
    )
    supervisor = _supervisor(configuration, recorder, script)

    handle = supervisor.launch()
    handle.readiness.wait_until_ready(10.0)
    supervisor.terminate(handle)

    assert handle.process.returncode is not None
    assert handle.process.returncode != 0


def test_abort_persists_captured_output_and_kills(tmp_path: Path) -> None:
    configuration = _configuration(tmp_path)
    recorder = _Recorder()
    supervisor = _supervisor(configuration, recorder, READY_THEN_IDLE)

    handle = supervisor.launch()
    try:
        handle.readiness.wait_until_ready(10.0)
        configuration.log_path.write_text("", encoding="utf-8")
        handle.abort()
        handle.process.wait(timeout=10)
    finally:
        supervisor.terminate(handle)

    assert "Hosting multiplayer game" in configuration.log_path.read_text(encoding="utf-8")


def test_spawn_failure_is_a_launch_error(tmp_path: Path) -> None:
    configuration = _configuration(tmp_path)

    def _missing_binary(command, **kwargs):
        raise FileNotFoundError(2, "No such file or directory", command[0])

    supervisor = ProcessSupervisor(
        configuration, popen_factory=_missing_binary, kill_by_name=lambda name: 0
    )

    with pytest.raises(LaunchError, match="Failed to start Factorio server"):
        supervisor.launch()


def test_stale_instances_wait_for_grace_only_when_something_was_killed(tmp_path: Path) -> None:
    configuration = _configuration(tmp_path, stale_instance_grace_seconds=1.5)
    busy = _Recorder(kill_result=2)
    idle = _Recorder(kill_result=0)

    assert _supervisor(configuration, busy, "").kill_stale_instances() == 2
    assert _supervisor(configuration, idle, "").kill_stale_instances() == 0

    assert busy.sleeps == [1.5]
    assert idle.sleeps == []


def test_terminate_without_handle_still_runs_backstop_and_settle(tmp_path: Path) -> None:
    configuration = _configuration(tmp_path, kill_settle_seconds=0.25)
    recorder = _Recorder()

    _supervisor(configuration, recorder, "").terminate(None)

    assert recorder.killed_names == ["factorio-stand-in"]
    assert recorder.sleeps == [0.25]
