"""Subprocess runner shared by the repo and sh fetchers.

Polls so that a run-level cancel event or a per-source timeout can kill the
child (and its process group) promptly instead of waiting for it to finish.
"""

from __future__ import annotations

import logging
import os
import signal
import subprocess
import threading
import time
from pathlib import Path

from copilot_context.core.errors import FetchCancelledError, FetchTimeoutError

logger = logging.getLogger(__name__)

POLL_INTERVAL = 0.2


def run(
    args: list[str] | str,
    *,
    cwd: Path | None = None,
    env: dict[str, str] | None = None,
    shell: bool = False,
    timeout: float | None = None,
    cancel: threading.Event | None = None,
) -> subprocess.CompletedProcess:
    """Run *args* to completion, capturing text output."""
    logger.debug("running %s (cwd=%s)", args, cwd)
    proc = subprocess.Popen(
        args,
        cwd=cwd,
        env=env,
        shell=shell,
        stdin=subprocess.DEVNULL,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        text=True,
        encoding="utf-8",
        errors="replace",
        start_new_session=os.name == "posix",
    )
    deadline = time.monotonic() + timeout if timeout else None
    while True:
        try:
            stdout, stderr = proc.communicate(timeout=POLL_INTERVAL)
            return subprocess.CompletedProcess(args, proc.returncode, stdout, stderr)
        except KeyboardInterrupt:
            # The child runs in its own session and never sees the Ctrl-C.
            _kill(proc)
            raise
        except subprocess.TimeoutExpired:
            if cancel is not None and cancel.is_set():
                _kill(proc)
                raise FetchCancelledError("cancelled while running subprocess")
            if deadline is not None and time.monotonic() >= deadline:
                _kill(proc)
                raise FetchTimeoutError(f"timed out after {timeout:g}s")


def _kill(proc: subprocess.Popen) -> None:
    if os.name == "posix":
        try:
            os.killpg(proc.pid, signal.SIGKILL)
        except ProcessLookupError:
            pass
    else:
        proc.kill()
    proc.communicate()
