"""Readiness detector tests."""

from __future__ import annotations

import threading

import pytest
from factorio_test_runner.server_process.process_errors import LaunchError, ReadinessTimeoutError
from factorio_test_runner.server_process.readiness_detector import ReadinessDetector


@pytest.mark.parametrize(
    "chunk",
    [
        "  3.512 Info ServerMultiplayerManager.cpp:806: Hosting multiplayer game\n",
        "Info: changing state from(CreatingGame) to(InGame)",
    ],
)
def test_either_marker_resolves_ready(chunk: str) -> None:
    detector = ReadinessDetector()

    detector.feed("Loading mods...\n")
    detector.feed(chunk)
    detector.wait_until_ready(0.1)

    assert detector.ready is True


def test_marker_split_across_chunks_is_detected() -> None:
    detector = ReadinessDetector()

    detector.feed("...Hosting multi")
    assert detector.ready is False
    detector.feed("player game...\n")

    assert detector.ready is True


def test_ready_callback_fires_once_and_later_chunks_are_ignored() -> None:
    calls = []
    detector = ReadinessDetector(on_ready=lambda: calls.append("ready"))

    detector.feed("Hosting multiplayer game\n")
    detector.feed("Hosting multiplayer game\n")

    assert calls == ["ready"]


def test_stream_closing_before_marker_is_a_launch_error() -> None:
    detector = ReadinessDetector()
    detector.feed("Error: could not load save\n")
    detector.close()

    with pytest.raises(LaunchError, match="closed before becoming ready"):
        detector.wait_until_ready(1.0)


def test_timeout_runs_timeout_hook_before_raising() -> None:
    detector = ReadinessDetector()
    hook_calls = []

    with pytest.raises(ReadinessTimeoutError, match="timeout"):
        detector.wait_until_ready(0.01, on_timeout=lambda: hook_calls.append("abort"))

    assert hook_calls == ["abort"]


def test_waiter_is_released_by_marker_from_another_thread() -> None:
    detector = ReadinessDetector()
    feeder = threading.Timer(0.05, detector.feed, args=("Hosting multiplayer game",))
    feeder.start()
    try:
        detector.wait_until_ready(5.0)
    finally:
        feeder.join()

    assert detector.ready is True
