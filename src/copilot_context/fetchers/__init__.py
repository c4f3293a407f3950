"""I/O layer — resolve one declared source into files.

Dispatch based on the source ``type``:
  path  → fetchers.local   (file or directory, ``files`` rules apply)
  url   → fetchers.url     (one HTTP GET, body lands at ``dest``)
  repo  → fetchers.repo    (shallow clone, ``files`` rules apply)
  sh    → fetchers.shell   (script output, taken as-is)

Every fetcher either returns the complete file list or raises a FetchError;
nothing is written to the context folder here.
"""

from __future__ import annotations

import threading
from pathlib import Path

from copilot_context.core.matcher import FilterSet
from copilot_context.core.models import FetchedFile, SourceSpec
from copilot_context.fetchers import local, repo, shell, url


def fetch(
    spec: SourceSpec,
    *,
    root: Path,
    context_root: Path,
    timeout: float | None = None,
    cancel: threading.Event | None = None,
) -> list[FetchedFile]:
    """Dispatch to the fetcher for ``spec.kind``.

    *root* is the config directory, used to resolve relative local paths.
    ``spec.timeout`` overrides *timeout* when set.
    """
    timeout = spec.timeout or timeout

    if spec.kind == "path":
        return local.fetch(spec.path, FilterSet.parse(spec.files), root=root)

    if spec.kind == "url":
        return url.fetch(spec.url, timeout=timeout)

    if spec.kind == "repo":
        return repo.fetch(
            spec.repo,
            branch=spec.branch,
            filters=FilterSet.parse(spec.files),
            sparse=spec.sparse,
            timeout=timeout,
            cancel=cancel,
        )

    if spec.kind == "sh":
        return shell.fetch(
            spec.script,
            dest_dir=context_root / spec.dest,
            root=root,
            timeout=timeout,
            cancel=cancel,
        )

    raise ValueError(f"Unsupported source type: {spec.kind}")
