"""Launch, output capture and teardown of the Factorio server process."""

from __future__ import annotations

import codecs
import logging
import shlex
import subprocess
import threading
import time
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor, wait
from pathlib import Path
from typing import Any, Protocol

from factorio_test_runner.configuration.runtime_settings import RunConfiguration

from .process_control import kill_processes_named, platform_popen_kwargs
from .process_errors import LaunchError
from .readiness_detector import ReadinessDetector

_LOGGER = logging.getLogger(__name__)

_READ_CHUNK_SIZE = 4096

PopenFactory = Callable[..., "subprocess.Popen[bytes]"]
KillByName = Callable[[str], int]


class OutputConsumer(Protocol):
    """Subscriber receiving every decoded output chunk, then a final close."""

    def feed(self, chunk: str) -> None: ...

    def close(self) -> None: ...


class OutputLogWriter:
    """Consumer appending the raw output verbatim to the run's log file."""

    def __init__(self, log_path: Path) -> None:
        self._log_path = log_path

    def truncate(self) -> None:
        self._log_path.parent.mkdir(parents=True, exist_ok=True)
        self._log_path.write_text("", encoding="utf-8")

    def feed(self, chunk: str) -> None:
        try:
            with self._log_path.open("a", encoding="utf-8", newline="") as log_file:
                log_file.write(chunk)
        except OSError as exc:
            _LOGGER.warning("Could not append to %s: %s", self._log_path, exc)

    def close(self) -> None:
        pass


class ServerProcessHandle:  # pylint: disable=too-many-instance-attributes
    """Running server process together with everything it has printed so far.

    Output is appended only by the reader thread. Consumers are called on that
    thread while the accumulator lock is held, so a subscription that replays the
    backlog never misses or duplicates a chunk.
    """

    def __init__(self, process: subprocess.Popen[bytes], *, log_path: Path) -> None:
        self.process = process
        self.log_path = log_path
        self.readiness = ReadinessDetector(on_ready=self._mark_ready)
        self._lock = threading.RLock()
        self._chunks: list[str] = []
        self._length = 0
        self._chunk_offset = 0
        self._consumers: list[OutputConsumer] = []
        self._closed = False
        self._ready = False
        self._ready_offset = 0
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="server-output")
        self._reader: Future[None] | None = None

    @property
    def pid(self) -> int:
        return self.process.pid

    @property
    def ready(self) -> bool:
        return self._ready

    @property
    def ready_offset(self) -> int:
        """Position in the output of the chunk that carried the readiness marker."""
        return self._ready_offset

    def subscribe(self, consumer: OutputConsumer, *, replay_from: int | None = None) -> None:
        """Register ``consumer``, first feeding it the output after ``replay_from``."""
        with self._lock:
            if replay_from is not None:
                backlog = self.output_since(replay_from)
                if backlog:
                    consumer.feed(backlog)
            self._consumers.append(consumer)
            if self._closed:
                consumer.close()

    def output_text(self) -> str:
        with self._lock:
            return "".join(self._chunks)

    def output_since(self, offset: int) -> str:
        return self.output_text()[offset:]

    def start_reading(self) -> None:
        self._reader = self._executor.submit(self._read_stream)

    def join_reader(self, timeout: float) -> None:
        if self._reader is None:
            return
        done, _ = wait([self._reader], timeout=timeout)
        self._executor.shutdown(wait=False)
        if not done:
            _LOGGER.debug("Output reader for pid %s still attached", self.pid)
        elif self.process.stdout is not None:
            self.process.stdout.close()

    def persist_output(self) -> None:
        """Rewrite the log file with everything captured so far."""
        with self._lock, self.log_path.open("w", encoding="utf-8", newline="") as log_file:
            log_file.write("".join(self._chunks))

    def abort(self) -> None:
        """Save the captured output and kill the process without waiting."""
        try:
            self.persist_output()
        except OSError as exc:
            _LOGGER.warning("Could not write %s: %s", self.log_path, exc)
        try:
            self.process.kill()
        except OSError:
            _LOGGER.debug("Process %s already gone", self.pid)

    def _read_stream(self) -> None:
        stream = self.process.stdout
        if stream is None:
            self._close_consumers()
            return
        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        try:
            while True:
                data = stream.read1(_READ_CHUNK_SIZE)
                if not data:
                    break
                text = decoder.decode(data)
                if text:
                    self._publish(text)
            tail = decoder.decode(b"", final=True)
            if tail:
                self._publish(tail)
        except (OSError, ValueError) as exc:
            _LOGGER.debug("Output stream of pid %s ended: %s", self.pid, exc)
        finally:
            self._close_consumers()

    def _publish(self, text: str) -> None:
        with self._lock:
            self._chunk_offset = self._length
            self._chunks.append(text)
            self._length += len(text)
            for consumer in list(self._consumers):
                consumer.feed(text)

    def _close_consumers(self) -> None:
        with self._lock:
            self._closed = True
            for consumer in list(self._consumers):
                consumer.close()

    def _mark_ready(self) -> None:
        with self._lock:
            if self._ready:
                return
            self._ready = True
            self._ready_offset = self._chunk_offset


def build_launch_command(configuration: RunConfiguration) -> list[str]:
    """Return the argument vector starting a headless server for the test save."""
    rcon = configuration.rcon
    return [
        str(configuration.server_executable),
        "--start-server",
        str(configuration.save_path),
        "--mod-directory",
        str(configuration.mod_directory),
        "--server-settings",
        str(configuration.server_settings),
        "--rcon-port",
        str(rcon.port),
        "--rcon-password",
        rcon.password,
        "--disable-audio",
    ]


class ProcessSupervisor:
    """Starts and stops the server and keeps only one instance alive at a time."""

    def __init__(
        self,
        configuration: RunConfiguration,
        *,
        popen_factory: PopenFactory | None = None,
        kill_by_name: KillByName | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._configuration = configuration
        self._timeouts = configuration.timeouts
        self._popen_factory = popen_factory or subprocess.Popen
        self._kill_by_name = kill_by_name or kill_processes_named
        self._sleep = sleep

    @property
    def executable_name(self) -> str:
        return self._configuration.server_executable.name

    def kill_stale_instances(self) -> int:
        """Kill leftovers of earlier runs and give the OS time to free their port."""
        killed = self._kill_by_name(self.executable_name)
        if killed:
            self._sleep(self._timeouts.stale_instance_grace_seconds)
        return killed

    def launch(self) -> ServerProcessHandle:
        command = build_launch_command(self._configuration)
        log_path = self._configuration.log_path
        log_writer = OutputLogWriter(log_path)
        try:
            log_writer.truncate()
        except OSError as exc:
            raise LaunchError(f"Cannot write log file {log_path}: {exc}") from exc

        _LOGGER.debug("Launching: %s", shlex.join(command))
        popen_kwargs: dict[str, Any] = {
            "stdin": subprocess.DEVNULL,
            "stdout": subprocess.PIPE,
            "stderr": subprocess.STDOUT,
            **platform_popen_kwargs(),
        }
        try:
            process = self._popen_factory(command, **popen_kwargs)
        except OSError as exc:
            raise LaunchError(f"Failed to start Factorio server: {exc}") from exc

        handle = ServerProcessHandle(process, log_path=log_path)
        handle.subscribe(log_writer)
        handle.subscribe(handle.readiness)
        handle.start_reading()
        _LOGGER.info("Factorio server started with pid %s", handle.pid)
        return handle

    def terminate(self, handle: ServerProcessHandle | None) -> None:
        """Stop the server; every step is best-effort and safe on a dead process."""
        if handle is not None:
            self._stop_process(handle)
        try:
            self._kill_by_name(self.executable_name)
        except Exception as exc:  # pylint: disable=broad-exception-caught
            _LOGGER.warning("Kill-by-name backstop failed: %s", exc)
        self._sleep(self._timeouts.kill_settle_seconds)

    def _stop_process(self, handle: ServerProcessHandle) -> None:
        process = handle.process
        grace = self._timeouts.termination_grace_seconds
        if process.poll() is None:
            try:
                process.terminate()
            except OSError:
                _LOGGER.debug("Process %s exited before terminate", handle.pid)
            try:
                process.wait(timeout=grace)
            except subprocess.TimeoutExpired:
                _LOGGER.info("Process %s ignored terminate, killing it", handle.pid)
                try:
                    process.kill()
                except OSError:
                    _LOGGER.debug("Process %s exited before kill", handle.pid)
                try:
                    process.wait(timeout=grace)
                except subprocess.TimeoutExpired:
                    _LOGGER.warning("Process %s survived kill", handle.pid)
        handle.join_reader(timeout=grace)
