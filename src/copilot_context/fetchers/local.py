"""Fetch files from the local filesystem."""

from __future__ import annotations

import logging
import os
from pathlib import Path

from copilot_context.core.errors import CycleDetectedError, FetchError, NotFoundError
from copilot_context.core.matcher import FilterSet
from copilot_context.core.models import FetchedFile

logger = logging.getLogger(__name__)


def resolve_source(source: str, root: Path | None = None) -> Path:
    """Resolve *source* against *root* (the config directory) when relative."""
    src = Path(source).expanduser()
    if not src.is_absolute() and root:
        src = root / src
    return src


def fetch(source: str, filters: FilterSet | None = None, *, root: Path | None = None) -> list[FetchedFile]:
    """Resolve a file or directory into FetchedFiles.

    A single file comes back with an empty ``rel_path`` (it lands at ``dest``
    itself). A directory is walked recursively, following symlinks, with
    *filters* applied to paths relative to the directory.
    """
    src = resolve_source(source, root)
    if not src.exists():
        raise NotFoundError(f"Source path not found: {src}")

    if src.is_file():
        return [FetchedFile(rel_path="", source=src)]

    filters = filters or FilterSet()
    files: list[FetchedFile] = []
    _walk(src, "", filters, files, frozenset())
    logger.debug("path %s: %d file(s) selected", src, len(files))
    return files


def _walk(
    directory: Path,
    prefix: str,
    filters: FilterSet,
    out: list[FetchedFile],
    ancestors: frozenset[tuple[int, int]],
) -> None:
    # (device, inode) of every directory on the current branch; seeing one
    # again means a symlink points back up the tree.
    try:
        st = directory.stat()
    except OSError as exc:
        raise FetchError(f"Cannot stat {directory}: {exc}") from exc
    key = (st.st_dev, st.st_ino)
    if key in ancestors:
        raise CycleDetectedError(f"Symlink cycle detected at {directory}")
    ancestors = ancestors | {key}

    try:
        entries = sorted(os.scandir(directory), key=lambda e: e.name)
    except OSError as exc:
        raise FetchError(f"Cannot list {directory}: {exc}") from exc

    for entry in entries:
        rel = f"{prefix}{entry.name}"
        if entry.is_dir(follow_symlinks=True):
            _walk(Path(entry.path), f"{rel}/", filters, out, ancestors)
        elif entry.is_file(follow_symlinks=True):
            if filters.includes(rel):
                out.append(FetchedFile(rel_path=rel, source=Path(entry.path)))
        else:
            logger.debug("skipping non-regular entry %s", entry.path)
