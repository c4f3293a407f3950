"""Cross-platform clipboard text writer backed by the platform's CLI tools."""

from __future__ import annotations

import platform
import shutil
import subprocess


class ClipboardError(RuntimeError):
    """No usable clipboard tool, or the tool failed."""


def _platform_commands(system: str) -> list[list[str]]:
    """Candidate copy commands for *system*, in preference order."""
    if system == "Darwin":
        return [["pbcopy"]]
    if system == "Windows":
        return [["clip"]]
    # Wayland first, then X11
    return [
        ["wl-copy"],
        ["xclip", "-selection", "clipboard"],
        ["xsel", "--clipboard", "--input"],
    ]


def copy_text(text: str, *, timeout: float = 5.0) -> str:
    """Put *text* on the system clipboard. Returns the tool used."""
    candidates = [c for c in _platform_commands(platform.system()) if shutil.which(c[0])]
    if not candidates:
        raise ClipboardError(
            "No clipboard tool found (install wl-clipboard, xclip or xsel)."
        )

    command = candidates[0]
    try:
        result = subprocess.run(
            command,
            input=text,
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired as exc:
        raise ClipboardError(f"{command[0]} timed out") from exc
    if result.returncode != 0:
        raise ClipboardError(f"{command[0]} failed: {result.stderr.strip()}")
    return command[0]
