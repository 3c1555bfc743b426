"""Preparation of the throwaway mod directory and save used by one run."""

from __future__ import annotations

import json
import logging
import shutil
from pathlib import Path

from factorio_test_runner.configuration.loader import verify_launch_prerequisites
from factorio_test_runner.configuration.runtime_settings import RunConfiguration, StagingSettings

_LOGGER = logging.getLogger(__name__)

MOD_LIST_FILENAME = "mod-list.json"


class StagingError(Exception):
    """Raised when the test workspace cannot be prepared."""


def build_mod_list(mod_name: str) -> dict[str, list[dict[str, object]]]:
    """Return the ``mod-list.json`` document enabling ``base`` and the mod under test."""
    return {
        "mods": [
            {"name": "base", "enabled": True},
            {"name": mod_name, "enabled": True},
        ]
    }


def prepare_run_workspace(configuration: RunConfiguration) -> None:
    """Stage the workspace when configured, then check every launch path exists."""
    if configuration.staging is not None:
        prepare_test_workspace(configuration.staging)
    verify_launch_prerequisites(configuration)


def prepare_test_workspace(staging: StagingSettings) -> None:
    """Link the mod into a fresh mod directory and copy the template save beside it."""
    try:
        staging.mods_dir.mkdir(parents=True, exist_ok=True)
        _link_mod(staging.mod_source, staging.mods_dir / staging.mod_name)
        (staging.mods_dir / MOD_LIST_FILENAME).write_text(
            json.dumps(build_mod_list(staging.mod_name), indent=2), encoding="utf-8"
        )
        if staging.save_path.exists():
            staging.save_path.unlink()
        shutil.copyfile(staging.template_save, staging.save_path)
    except OSError as exc:
        raise StagingError(f"Failed to prepare test workspace {staging.work_dir}: {exc}") from exc


def _link_mod(source: Path, link_path: Path) -> None:
    _remove_existing(link_path)
    try:
        link_path.symlink_to(source.resolve(), target_is_directory=True)
    except OSError as exc:
        # Windows without developer mode refuses symlinks.
        _LOGGER.info("Symlink to %s unavailable (%s), copying the mod instead", source, exc)
        shutil.copytree(source, link_path, ignore=_ignore_workspace(link_path))


def _remove_existing(path: Path) -> None:
    if path.is_symlink() or path.is_file():
        path.unlink()
    elif path.is_dir():
        shutil.rmtree(path)


def _ignore_workspace(link_path: Path):
    # The workspace may live inside the mod source; never copy it into itself.
    workspace_root = link_path.parent.parent.resolve()

    def _ignore(directory: str, names: list[str]) -> set[str]:
        return {name for name in names if (Path(directory) / name).resolve() == workspace_root}

    return _ignore
