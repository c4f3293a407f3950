"""Fetch files from git repositories.

Always a depth-1, single-branch clone into a throwaway directory: only a
snapshot is needed, never history.

When ``sparse`` directories are given the clone is blob-filtered and
sparse-checked-out, and only files below those directories are materialised.
Git's cone mode also checks out top-level files; those are dropped so the
result is the same whatever git version does the checkout. ``files`` rules
then apply on top, to paths relative to the repository root.
"""

from __future__ import annotations

import logging
import os
import posixpath
import subprocess
import tempfile
import threading
from pathlib import Path

from copilot_context.core.errors import AuthError, CloneError, FetchError, NetworkError, NotFoundError
from copilot_context.core.matcher import FilterSet
from copilot_context.core.models import FetchedFile
from copilot_context.fetchers import process

logger = logging.getLogger(__name__)

_AUTH_MARKERS = (
    "authentication failed",
    "could not read username",
    "could not read password",
    "permission denied (publickey)",
)
_NETWORK_MARKERS = (
    "could not resolve host",
    "unable to access",
    "connection timed out",
    "connection refused",
    "network is unreachable",
)


def _run(
    args: list[str],
    *,
    timeout: float | None = None,
    cancel: threading.Event | None = None,
) -> subprocess.CompletedProcess:
    env = {**os.environ, "GIT_TERMINAL_PROMPT": "0"}
    try:
        return process.run(args, env=env, timeout=timeout, cancel=cancel)
    except FileNotFoundError as exc:
        raise CloneError("git executable not found on PATH") from exc


def _clone_error(repo_url: str, stderr: str) -> FetchError:
    detail = stderr.strip()
    text = detail.lower()
    if any(marker in text for marker in _AUTH_MARKERS):
        return AuthError(f"git authentication failed for {repo_url}: {detail}")
    if any(marker in text for marker in _NETWORK_MARKERS):
        return NetworkError(f"git could not reach {repo_url}: {detail}")
    if "repository" in text and "not found" in text:
        return NotFoundError(f"Repository not found: {repo_url}")
    return CloneError(f"git clone failed for {repo_url}: {detail}")


def _clone_args(repo_url: str, branch: str | None, tmp_repo: Path, *extra: str) -> list[str]:
    args = ["git", "clone", "--depth", "1", "--single-branch", *extra]
    if branch:
        args += ["--branch", branch]
    return [*args, repo_url, str(tmp_repo)]


def _shallow_clone(
    repo_url: str, branch: str | None, tmp_repo: Path, **run_kw,
) -> None:
    r = _run(_clone_args(repo_url, branch, tmp_repo), **run_kw)
    if r.returncode != 0:
        raise _clone_error(repo_url, r.stderr)


def _sparse_clone(
    repo_url: str, branch: str | None, sparse: list[str], tmp_repo: Path, **run_kw,
) -> None:
    """Clone only the needed directories using sparse checkout + blob filter."""
    r = _run(
        _clone_args(repo_url, branch, tmp_repo, "--filter=blob:none", "--no-checkout"),
        **run_kw,
    )
    if r.returncode != 0:
        raise _clone_error(repo_url, r.stderr)

    r = _run(["git", "-C", str(tmp_repo), "sparse-checkout", "set", *sparse], **run_kw)
    if r.returncode != 0:
        raise CloneError(f"git sparse-checkout failed: {r.stderr.strip()}")
    r = _run(["git", "-C", str(tmp_repo), "checkout"], **run_kw)
    if r.returncode != 0:
        raise CloneError(f"git checkout failed: {r.stderr.strip()}")


def fetch(
    repo_url: str,
    *,
    branch: str | None = None,
    filters: FilterSet | None = None,
    sparse: list[str] | None = None,
    timeout: float | None = None,
    cancel: threading.Event | None = None,
) -> list[FetchedFile]:
    """Clone *repo_url* and return every selected file, read into memory.

    The clone is discarded before returning, so contents are held as bytes.
    """
    filters = filters or FilterSet()
    run_kw = {"timeout": timeout, "cancel": cancel}

    with tempfile.TemporaryDirectory(prefix="copilot-context-") as tmp:
        tmp_repo = Path(tmp) / "repo"

        if sparse:
            _sparse_clone(repo_url, branch, sparse, tmp_repo, **run_kw)
        else:
            _shallow_clone(repo_url, branch, tmp_repo, **run_kw)

        if not tmp_repo.is_dir():
            raise CloneError(f"git clone produced no checkout for {repo_url}")

        files = _collect(tmp_repo, filters, _sparse_prefixes(sparse or []))

    logger.debug("repo %s: %d file(s) selected", repo_url, len(files))
    return files


def _sparse_prefixes(sparse: list[str]) -> tuple[str, ...]:
    dirs = (posixpath.normpath(d.replace("\\", "/")).strip("/") for d in sparse)
    return tuple(f"{d}/" for d in dirs if d not in ("", "."))


def _collect(tmp_repo: Path, filters: FilterSet, prefixes: tuple[str, ...] = ()) -> list[FetchedFile]:
    files: list[FetchedFile] = []
    checkout = tmp_repo.resolve()
    for dirpath, dirnames, filenames in os.walk(tmp_repo):
        current = Path(dirpath)
        if current == tmp_repo:
            dirnames[:] = [d for d in dirnames if d != ".git"]
        dirnames.sort()
        for filename in sorted(filenames):
            path = current / filename
            rel = path.relative_to(tmp_repo).as_posix()
            if prefixes and not rel.startswith(prefixes):
                continue
            if not filters.includes(rel):
                continue
            # A committed symlink may point anywhere on this machine.
            if path.is_symlink() and not path.resolve().is_relative_to(checkout):
                logger.warning("skipping symlink leaving the checkout: %s", rel)
                continue
            if not path.is_file():
                continue
            files.append(FetchedFile(rel_path=rel, content=path.read_bytes()))
    return files
