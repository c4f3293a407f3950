"""Combine service — concatenate context files into one text blob."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

import click

from copilot_context.core import clipboard
from copilot_context.core.matcher import FilterSet

logger = logging.getLogger(__name__)

DEFAULT_HEADER_FORMAT = "// File: {path}"
DEFAULT_SEPARATOR = "\n"


@dataclass
class CombineResult:
    text: str
    files: list[str] = field(default_factory=list)


def collect(context_root: Path, patterns: list[str], *, sort_files: bool = True) -> list[str]:
    """Context-relative paths of files selected by *patterns*.

    Patterns use the same rules as a source's ``files`` list. Unsorted order
    is whatever the directory walk yields.
    """
    filters = FilterSet.parse(patterns)
    found: list[str] = []
    for dirpath, dirnames, filenames in os.walk(context_root):
        current = Path(dirpath)
        for name in filenames:
            rel = (current / name).relative_to(context_root).as_posix()
            if filters.includes(rel):
                found.append(rel)
    if sort_files:
        found.sort()
    return found


def combine(
    context_root: Path,
    patterns: list[str],
    *,
    with_headers: bool = False,
    header_format: str = DEFAULT_HEADER_FORMAT,
    separator: str = DEFAULT_SEPARATOR,
    sort_files: bool = True,
) -> CombineResult:
    """Join matching files, optionally preceded by a ``{path}`` header line.

    A newline is added between a file and the separator when the file does
    not end with one and the separator does not start with one.
    """
    files = collect(context_root, patterns, sort_files=sort_files)
    parts: list[str] = []
    for index, rel in enumerate(files):
        content = (context_root / rel).read_text(encoding="utf-8", errors="replace")
        if with_headers:
            parts.append(header_format.replace("{path}", rel))
            parts.append("\n")
        parts.append(content)
        if index < len(files) - 1:
            if not content.endswith("\n") and not separator.startswith("\n"):
                parts.append("\n")
            parts.append(separator)
    logger.debug("combined %d file(s)", len(files))
    return CombineResult(text="".join(parts), files=files)


def deliver(text: str, *, output: Path | None = None, to_clipboard: bool = False) -> str:
    """Send *text* to exactly one sink; returns a description of where it went."""
    if output is not None and to_clipboard:
        raise ValueError("Choose either an output file or the clipboard, not both")
    if to_clipboard:
        tool = clipboard.copy_text(text)
        return f"clipboard ({tool})"
    if output is not None:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(text, encoding="utf-8")
        return str(output)
    click.echo(text, nl=False)
    stdout = click.get_text_stream("stdout")
    if stdout.isatty() and not text.endswith("\n"):
        click.echo()
    return "stdout"
