"""Fetch files by running a shell script.

Trust boundary: the script runs through the host shell with the invoking
user's full privileges. Nothing here sandboxes it; all that is observed is
the exit status and the files it leaves in its working directory.

The working directory is an empty staging directory rather than the real
destination, so a failing script leaves nothing in the context folder. The
final destination is exported as ``COPILOT_CONTEXT_DEST`` for scripts that
need to know it.
"""

from __future__ import annotations

import logging
import os
import tempfile
import threading
from pathlib import Path

from copilot_context.core.errors import FetchError, NonZeroExitError
from copilot_context.core.models import FetchedFile
from copilot_context.fetchers import local, process

logger = logging.getLogger(__name__)


def fetch(
    script: str,
    *,
    dest_dir: Path,
    root: Path | None = None,
    timeout: float | None = None,
    cancel: threading.Event | None = None,
) -> list[FetchedFile]:
    """Run *script* and return whatever files it produced, read into memory."""
    if not script.strip():
        raise FetchError("Empty script provided")

    with tempfile.TemporaryDirectory(prefix="copilot-context-sh-") as tmp:
        workdir = Path(tmp)
        env = {
            **os.environ,
            "COPILOT_CONTEXT_DEST": str(dest_dir),
            "COPILOT_CONTEXT_ROOT": str(root or Path.cwd()),
        }
        r = process.run(
            script, cwd=workdir, env=env, shell=True, timeout=timeout, cancel=cancel,
        )
        if r.stdout:
            logger.debug("script stdout:\n%s", r.stdout.rstrip())
        if r.stderr:
            logger.debug("script stderr:\n%s", r.stderr.rstrip())
        if r.returncode != 0:
            raise NonZeroExitError(r.returncode, r.stderr)

        produced = local.fetch(str(workdir))
        return [FetchedFile(rel_path=f.rel_path, content=f.read()) for f in produced]
