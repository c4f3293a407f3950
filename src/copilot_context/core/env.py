"""Machine-level defaults from env files.

``run`` reads ``COPILOT_CONTEXT_JOBS`` and ``COPILOT_CONTEXT_TIMEOUT`` as
option defaults and the logging bootstrap reads ``COPILOT_CONTEXT_LOG_LEVEL``.
Those can live in a file instead of every shell profile:

    COPILOT_CONTEXT_ENV_FILE (explicit path)
    ~/.config/copilot-context/env
    ~/.config/copilot-context/.env

Earlier files win, and a variable already in the environment is never
replaced. Keys without the ``COPILOT_CONTEXT_`` prefix are ignored.
"""

from __future__ import annotations

import os
from collections.abc import Iterator
from pathlib import Path

ENV_PREFIX = "COPILOT_CONTEXT_"

_loaded = False


def parse_env(text: str) -> Iterator[tuple[str, str]]:
    """Yield ``(key, value)`` pairs from dotenv-style *text*."""
    for raw in text.splitlines():
        line = raw.strip()
        if line.startswith("export "):
            line = line.removeprefix("export ").lstrip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, _, value = line.partition("=")
        value = value.strip()
        if len(value) >= 2 and value[0] in "'\"" and value[-1] == value[0]:
            value = value[1:-1]
        yield key.strip(), value


def env_files() -> list[Path]:
    explicit = os.environ.get(f"{ENV_PREFIX}ENV_FILE", "").strip()
    config_dir = Path.home() / ".config" / "copilot-context"
    candidates = [Path(explicit).expanduser()] if explicit else []
    return [*candidates, config_dir / "env", config_dir / ".env"]


def load_user_env(files: list[Path] | None = None) -> dict[str, str]:
    """Export prefixed settings from *files* (default: ``env_files()``).

    Runs once per process unless *files* is given. Returns what was set.
    """
    global _loaded
    if files is None:
        if _loaded:
            return {}
        _loaded = True
        files = env_files()

    applied: dict[str, str] = {}
    for path in files:
        if not path.is_file():
            continue
        for key, value in parse_env(path.read_text()):
            if key.startswith(ENV_PREFIX) and key not in os.environ:
                os.environ[key] = value
                applied[key] = value
    return applied
