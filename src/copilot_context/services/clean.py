"""Clean service — remove files no declared source accounts for."""

from __future__ import annotations

import logging
import os
import posixpath
from dataclasses import dataclass, field
from pathlib import Path

from copilot_context.core import paths
from copilot_context.core.errors import ConfigError
from copilot_context.core.matcher import FilterSet
from copilot_context.core.models import SourceSpec

logger = logging.getLogger(__name__)


@dataclass
class CleanResult:
    """Summary of a clean pass, paths relative to the context root."""

    removed_files: list[str] = field(default_factory=list)
    removed_dirs: list[str] = field(default_factory=list)
    kept: int = 0


class ExpectedPaths:
    """The set of context-relative paths the current config can produce.

    Reconstructed from the config rather than from a previous run: a file is
    expected when it sits at a source's ``dest`` or below it and, for sources
    with ``files`` rules, those rules select it. Flattened sources lose their
    original paths, so everything under their ``dest`` is expected.
    """

    def __init__(self, sources: list[SourceSpec]) -> None:
        self._entries: list[tuple[str, FilterSet | None]] = []
        for spec in sources:
            dest = posixpath.normpath(spec.dest.replace("\\", "/")).strip("/")
            if dest == ".":
                dest = ""
            filters = FilterSet.parse(spec.files) if spec.files and not spec.flatten else None
            self._entries.append((dest, filters))

    @property
    def destinations(self) -> set[str]:
        return {dest for dest, _ in self._entries if dest}

    def __contains__(self, rel: str) -> bool:
        for dest, filters in self._entries:
            if rel == dest:
                return True
            prefix = f"{dest}/" if dest else ""
            if rel.startswith(prefix) and (filters is None or filters.includes(rel[len(prefix):])):
                return True
        return False


def clean_context(
    context_root: Path,
    sources: list[SourceSpec],
    *,
    dry_run: bool = False,
    config_file: Path | None = None,
) -> CleanResult:
    """Delete every file under *context_root* not in the expected set.

    Directories emptied by the pass are removed too, except source
    destinations and the root itself. With *dry_run* nothing is deleted and
    only files are reported.

    Raises ConfigError instead of touching anything when *context_root* holds
    the configuration: a context.toml at its top, or *config_file* anywhere
    below it.
    """
    result = CleanResult()
    if not context_root.exists():
        return result
    _refuse_project_dir(context_root, config_file)

    expected = ExpectedPaths(sources)
    destinations = expected.destinations

    for dirpath, dirnames, filenames in os.walk(context_root, topdown=False):
        current = Path(dirpath)
        # Symlinked directories are not descended into; treat them as files.
        linked = [d for d in dirnames if (current / d).is_symlink()]
        for name in sorted([*filenames, *linked]):
            path = current / name
            rel = path.relative_to(context_root).as_posix()
            if rel in expected:
                result.kept += 1
                continue
            result.removed_files.append(rel)
            if not dry_run:
                path.unlink()
                logger.debug("removed file %s", rel)

        if dry_run or current == context_root:
            continue
        rel_dir = current.relative_to(context_root).as_posix()
        if rel_dir in destinations:
            continue
        if not any(current.iterdir()):
            current.rmdir()
            result.removed_dirs.append(rel_dir)
            logger.debug("removed directory %s", rel_dir)

    result.removed_files.sort()
    return result


def _refuse_project_dir(context_root: Path, config_file: Path | None) -> None:
    root = context_root.resolve()
    if (root / paths.CONFIG_TOML).is_file():
        raise ConfigError(f"Refusing to clean {root}: it holds {paths.CONFIG_TOML}, not only fetched context")
    if config_file is not None and config_file.resolve().is_relative_to(root):
        raise ConfigError(f"Refusing to clean {root}: it contains the config file {config_file}")
