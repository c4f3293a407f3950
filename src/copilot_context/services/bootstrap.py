"""Bootstrap service — implements `copilot-context init`."""

from __future__ import annotations

from pathlib import Path

from copilot_context.core import paths
from copilot_context.templates import render_starter_config


def init_workspace(config_file: Path, dest: str | None = None) -> Path:
    """Write a starter config at *config_file*.

    Returns the config path on success.
    Raises FileExistsError if one is already there.
    """
    if config_file.exists():
        raise FileExistsError(f"Config already exists: {config_file}")

    config_file.parent.mkdir(parents=True, exist_ok=True)
    config_file.write_text(render_starter_config(dest or paths.DEFAULT_DEST))
    return config_file
