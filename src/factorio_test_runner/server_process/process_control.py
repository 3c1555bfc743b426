"""OS-level process lookup and termination helpers."""

from __future__ import annotations

import logging
import os
import subprocess
import sys
from pathlib import PurePath
from typing import Any

import psutil

_LOGGER = logging.getLogger(__name__)


def executable_name_variants(executable_name: str) -> frozenset[str]:
    """Return lower-cased process names that identify ``executable_name``."""
    lowered = executable_name.lower()
    stem = PurePath(lowered).stem if lowered.endswith(".exe") else lowered
    return frozenset({lowered, stem, f"{stem}.exe"})


def kill_processes_named(executable_name: str, *, wait_timeout: float = 3.0) -> int:
    """Force-kill every process named ``executable_name`` and return how many were hit.

    Processes that vanish while being enumerated count as already gone. The calling
    process is never targeted.
    """
    targets = executable_name_variants(executable_name)
    own_pid = os.getpid()
    victims: list[psutil.Process] = []
    for process in psutil.process_iter(["name"]):
        name = (process.info.get("name") or "").lower()
        if name not in targets or process.pid == own_pid:
            continue
        try:
            process.kill()
        except psutil.NoSuchProcess:
            continue
        except psutil.AccessDenied:
            _LOGGER.warning("Not allowed to kill %s (pid %s)", name, process.pid)
            continue
        victims.append(process)
    if victims:
        _, alive = psutil.wait_procs(victims, timeout=wait_timeout)
        for process in alive:
            _LOGGER.warning("Process %s did not exit after kill", process.pid)
        _LOGGER.info("Killed %d %s process(es)", len(victims), executable_name)
    return len(victims)


def platform_popen_kwargs() -> dict[str, Any]:
    """Return Popen settings that detach the server from the runner's console."""
    if sys.platform.startswith("win"):
        return {"creationflags": getattr(subprocess, "CREATE_NO_WINDOW", 0)}
    return {"start_new_session": True}
