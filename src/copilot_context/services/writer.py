"""Destination writer — persist fetched files under ``<context root>/<dest>``.

A source's output lands all-or-nothing:

1. every target is computed and checked to stay inside the context root;
2. every file is written to a hidden temporary sibling of its target;
3. only when all temporaries exist are they renamed over their targets.

A failure in 1 or 2 leaves existing files untouched.

Flatten mode keeps only basenames. When two files share a basename the one
fetched later wins silently.
"""

from __future__ import annotations

import errno
import logging
import os
import tempfile
from collections.abc import Iterable
from pathlib import Path, PurePosixPath

from copilot_context.core.errors import DiskFullError, PathEscapeError, PermissionDeniedError, WriteError
from copilot_context.core.models import FetchedFile

logger = logging.getLogger(__name__)

DEFAULT_MODE = 0o644


def plan(
    files: Iterable[FetchedFile],
    context_root: Path,
    dest: str,
    *,
    flatten: bool = False,
) -> list[tuple[Path, FetchedFile]]:
    """Map fetched files to absolute targets, rejecting any that escape."""
    root = context_root.resolve()
    base = root / dest
    targets: dict[Path, FetchedFile] = {}

    for fetched in files:
        rel = fetched.rel_path.replace("\\", "/")
        if flatten and rel:
            rel = PurePosixPath(rel).name
        target = (base / rel if rel else base).resolve()
        if target == root or not target.is_relative_to(root):
            raise PathEscapeError(
                f"Refusing to write {dest!r}/{fetched.rel_path!r}: resolves outside {root}",
                path=str(target),
            )
        if target.is_dir():
            raise WriteError(f"Cannot write file over directory {target}", path=str(target))
        if target in targets:
            logger.debug("%s overwritten by a later file with the same path", target)
            del targets[target]
        targets[target] = fetched

    return list(targets.items())


def write(
    files: Iterable[FetchedFile],
    context_root: Path,
    dest: str,
    *,
    flatten: bool = False,
) -> list[str]:
    """Write *files* under ``context_root/dest``.

    Returns written paths relative to the context root, POSIX form.
    """
    try:
        context_root.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise _write_error(exc, context_root) from exc

    planned = plan(files, context_root, dest, flatten=flatten)
    staged: list[tuple[Path, Path]] = []
    current = context_root
    try:
        for target, fetched in planned:
            current = target
            target.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=target.parent, prefix=f".{target.name}.", suffix=".tmp",
            )
            staged.append((Path(tmp_name), target))
            with os.fdopen(fd, "wb") as fh:
                fh.write(fetched.read())
            os.chmod(tmp_name, _mode_for(fetched))
        for tmp, target in staged:
            current = target
            os.replace(tmp, target)
    except OSError as exc:
        for tmp, _ in staged:
            tmp.unlink(missing_ok=True)
        raise _write_error(exc, current) from exc

    root = context_root.resolve()
    written = [target.relative_to(root).as_posix() for target, _ in planned]
    logger.debug("wrote %d file(s) under %s", len(written), root / dest)
    return written


def _mode_for(fetched: FetchedFile) -> int:
    if fetched.source is not None:
        try:
            return fetched.source.stat().st_mode & 0o777
        except OSError:
            pass
    return DEFAULT_MODE


def _write_error(exc: OSError, path: Path) -> WriteError:
    if isinstance(exc, PermissionError) or exc.errno in (errno.EACCES, errno.EPERM):
        return PermissionDeniedError(f"Permission denied writing {path}", path=str(path))
    if exc.errno in (errno.ENOSPC, getattr(errno, "EDQUOT", errno.ENOSPC)):
        return DiskFullError(f"No space left writing {path}", path=str(path))
    return WriteError(f"Failed to write {path}: {exc}", path=str(path))
