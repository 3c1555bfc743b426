"""Workspace staging exports."""

from .workspace_preparation import (
    MOD_LIST_FILENAME,
    StagingError,
    build_mod_list,
    prepare_run_workspace,
    prepare_test_workspace,
)

__all__ = [
    "MOD_LIST_FILENAME",
    "StagingError",
    "build_mod_list",
    "prepare_run_workspace",
    "prepare_test_workspace",
]
