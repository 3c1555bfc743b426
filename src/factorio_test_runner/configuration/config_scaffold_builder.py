"""Configuration scaffold generation helpers."""

from __future__ import annotations

from pathlib import Path

DEFAULT_CONFIG_FILENAME = "factorio-tests.yaml"

_CONFIG_SCAFFOLD_TEMPLATE = """# Run configuration template for factorio-test-runner.
# Replace every <REQUIRED> placeholder before running `run`.
# Replace <OPTIONAL> placeholders only when your setup needs them.
# Relative paths are resolved against the directory of this file.

server:
  # Falls back to FACTORIO_PATH, then .local-config.json, then the Steam default.
  executable: "<OPTIONAL>"
  settings: "<REQUIRED>"
  # save and mod_directory are only needed when the staging section is removed.
  # save: "<OPTIONAL>"
  # mod_directory: "<OPTIONAL>"

rcon:
  host: "localhost"
  port: "<REQUIRED>"
  password: "<REQUIRED>"

staging:
  # The mod is linked into <work_dir>/mods and the template save copied next to it.
  mod_name: "<REQUIRED>"
  mod_source: "."
  template_save: "<REQUIRED>"
  work_dir: "<OPTIONAL>"

log_file: ".test-output.log"

timeouts:
  ready_seconds: 30
  connect_settle_seconds: 5
  connect_timeout_seconds: 10
  command_repeat_delay_seconds: 0.5
  post_command_settle_seconds: 2
  # Wait up to this long for the summary line after the settle delay (0 disables).
  summary_wait_seconds: 0
  termination_grace_seconds: 2
  kill_settle_seconds: 0.5
  stale_instance_grace_seconds: 1
"""


def build_placeholder_configuration() -> str:
    """Build a YAML run configuration template with placeholders and inline guidance."""
    return _CONFIG_SCAFFOLD_TEMPLATE


def write_placeholder_configuration(output_path: Path | str) -> Path:
    """Write the placeholder run configuration template to the requested output path.

    Args:
      output_path: Destination file path for the scaffold.

    Returns:
      The resolved destination path.

    Raises:
      FileExistsError: If the destination file already exists.
      OSError: If writing the scaffold fails.
    """
    destination = Path(output_path)
    if destination.exists():
        raise FileExistsError(f"Run configuration file already exists: {destination.resolve()}")
    destination.write_text(build_placeholder_configuration(), encoding="utf-8")
    return destination.resolve()
