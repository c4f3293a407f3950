"""Path constants, root resolution and escape checks."""

from __future__ import annotations

import posixpath
from pathlib import Path, PurePosixPath

CONFIG_TOML = "context.toml"
DEFAULT_DEST = ".copilot-context"


def resolve_root(start: Path | None = None) -> Path:
    """Walk up from *start* to locate an existing context.toml, else return *start*."""
    start = start or Path.cwd()
    for parent in [start, *start.parents]:
        if (parent / CONFIG_TOML).exists():
            return parent
    return start


def config_path(root: Path) -> Path:
    return root / CONFIG_TOML


def context_root(root: Path, dest: str) -> Path:
    """Absolute context folder for a config living in *root*."""
    dest_path = Path(dest).expanduser()
    if dest_path.is_absolute():
        return dest_path
    return root / dest_path


def escapes_root(relative: str) -> bool:
    """True when *relative* is absolute or climbs above its base through ``..``."""
    if not relative:
        return False
    if PurePosixPath(relative).is_absolute() or Path(relative).is_absolute():
        return True
    normalised = posixpath.normpath(relative.replace("\\", "/"))
    return normalised == ".." or normalised.startswith("../")


def covers_config_dir(dest: str) -> bool:
    """True when a relative top-level *dest* names the config directory or an ancestor."""
    if not dest.strip() or Path(dest).expanduser().is_absolute():
        return False
    parts = posixpath.normpath(dest.replace("\\", "/")).split("/")
    return all(part in (".", "..") for part in parts)


def holds_config(context: Path, root: Path) -> bool:
    """True when the context folder *context* is *root* or one of its ancestors."""
    return root.resolve().is_relative_to(context.resolve())
