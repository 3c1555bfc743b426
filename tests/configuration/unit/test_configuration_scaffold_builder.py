"""Configuration scaffold builder tests."""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml
from factorio_test_runner.configuration.config_scaffold_builder import (
    build_placeholder_configuration,
    write_placeholder_configuration,
)
from factorio_test_runner.configuration.runtime_settings import TimeoutSettings


def test_build_placeholder_configuration_contains_all_supported_sections() -> None:
    scaffold = build_placeholder_configuration()

    assert "Run configuration template" in scaffold
    assert "server:" in scaffold
    assert "rcon:" in scaffold
    assert "staging:" in scaffold
    assert "timeouts:" in scaffold
    assert "<REQUIRED>" in scaffold
    assert "<OPTIONAL>" in scaffold


def test_scaffold_is_valid_yaml_listing_every_timeout_setting() -> None:
    parsed = yaml.safe_load(build_placeholder_configuration())

    assert set(parsed["timeouts"]) == set(TimeoutSettings.__dataclass_fields__)
    assert parsed["timeouts"]["ready_seconds"] == TimeoutSettings().ready_seconds


def test_write_placeholder_configuration_writes_file(tmp_path: Path) -> None:
    output_path = tmp_path / "factorio-tests.yaml"

    written_path = write_placeholder_configuration(output_path)

    assert written_path == output_path.resolve()
    assert "<REQUIRED>" in output_path.read_text(encoding="utf-8")


def test_write_placeholder_configuration_fails_when_file_exists(tmp_path: Path) -> None:
    output_path = tmp_path / "factorio-tests.yaml"
    output_path.write_text("existing", encoding="utf-8")

    with pytest.raises(FileExistsError):
        write_placeholder_configuration(output_path)

    assert output_path.read_text(encoding="utf-8") == "existing"
