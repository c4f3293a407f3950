"""Run service — fetch every declared source and materialise it.

Per source: pending → fetching → writing → succeeded, or → failed from
either of the middle states. One source failing never stops the others.

Fetches may overlap on a bounded thread pool (``jobs``); writes always
happen on the calling thread, in declaration order, so the context folder
ends up the same regardless of which fetch finishes first.
"""

from __future__ import annotations

import json
import logging
import threading
import time
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path

from copilot_context import fetchers
from copilot_context.core import paths
from copilot_context.core.errors import ConfigError, FetchCancelledError, FetchError, WriteError
from copilot_context.core.models import (
    ContextConfig,
    FetchedFile,
    RunSummary,
    SourceEvent,
    SourceOutcome,
    SourceSpec,
)
from copilot_context.services import writer

logger = logging.getLogger(__name__)


@dataclass
class _FetchResult:
    files: list[FetchedFile] | None = None
    error: Exception | None = None
    cancelled: bool = False
    elapsed_ms: float = 0


def select_sources(cfg: ContextConfig, only: list[str] | tuple[str, ...] | None) -> list[SourceSpec]:
    """Restrict to the named sources, keeping declaration order."""
    if not only:
        return list(cfg.sources)
    known = {spec.name for spec in cfg.sources}
    missing = [name for name in only if name not in known]
    if missing:
        raise ConfigError(f"Unknown source(s): {', '.join(missing)}")
    wanted = set(only)
    return [spec for spec in cfg.sources if spec.name in wanted]


def run_sources(
    cfg: ContextConfig,
    root: Path,
    *,
    jobs: int = 1,
    timeout: float | None = None,
    only: list[str] | tuple[str, ...] | None = None,
    cancel: threading.Event | None = None,
    on_event: Callable[[SourceEvent], None] | None = None,
) -> RunSummary:
    """Fetch and write every selected source in *cfg*.

    *root* is the directory holding context.toml. Setting *cancel* stops
    sources that have not started yet and kills in-flight subprocesses.
    """
    specs = select_sources(cfg, only)
    context = paths.context_root(root, cfg.dest)
    cancel = cancel or threading.Event()
    emit_lock = threading.Lock()

    def emit(event: SourceEvent) -> None:
        if on_event is None:
            return
        with emit_lock:
            on_event(event)

    def do_fetch(spec: SourceSpec) -> _FetchResult:
        if cancel.is_set():
            return _FetchResult(cancelled=True)
        emit(SourceEvent(spec.name, "fetching", spec.kind))
        t0 = time.monotonic()
        try:
            files = fetchers.fetch(
                spec, root=root, context_root=context, timeout=timeout, cancel=cancel,
            )
            return _FetchResult(files=files, elapsed_ms=_since(t0))
        except FetchCancelledError:
            return _FetchResult(cancelled=True, elapsed_ms=_since(t0))
        except Exception as exc:
            if not isinstance(exc, FetchError):
                logger.exception("unexpected error fetching %s", spec.name)
            return _FetchResult(error=exc, elapsed_ms=_since(t0))

    for spec in specs:
        emit(SourceEvent(spec.name, "pending"))

    summary = RunSummary()
    if jobs <= 1 or len(specs) <= 1:
        for spec in specs:
            try:
                result = do_fetch(spec)
            except KeyboardInterrupt:
                logger.warning("interrupted; cancelling remaining sources")
                cancel.set()
                result = _FetchResult(cancelled=True)
            summary.outcomes.append(_finish(spec, result, context, emit))
        return summary

    with ThreadPoolExecutor(max_workers=min(jobs, len(specs))) as pool:
        futures: list[Future[_FetchResult]] = [pool.submit(do_fetch, spec) for spec in specs]
        index = 0
        while index < len(specs):
            try:
                result = futures[index].result()
            except KeyboardInterrupt:
                logger.warning("interrupted; cancelling remaining sources")
                cancel.set()
                continue
            summary.outcomes.append(_finish(specs[index], result, context, emit))
            index += 1
    return summary


def _finish(
    spec: SourceSpec,
    result: _FetchResult,
    context: Path,
    emit: Callable[[SourceEvent], None],
) -> SourceOutcome:
    outcome = SourceOutcome(spec.name, spec.kind, "pending", elapsed_ms=result.elapsed_ms)

    if result.cancelled:
        outcome.state = "cancelled"
        emit(SourceEvent(spec.name, "cancelled"))
        return outcome

    if result.error is not None:
        return _fail(outcome, result.error, emit)

    emit(SourceEvent(spec.name, "writing", f"{len(result.files or [])} file(s)"))
    t0 = time.monotonic()
    try:
        outcome.files = writer.write(result.files or [], context, spec.dest, flatten=spec.flatten)
    except WriteError as exc:
        outcome.elapsed_ms += _since(t0)
        return _fail(outcome, exc, emit)

    outcome.elapsed_ms += _since(t0)
    outcome.state = "succeeded"
    emit(SourceEvent(spec.name, "succeeded", f"{len(outcome.files)} file(s)", outcome.elapsed_ms))
    logger.info("%s: %d file(s) written", spec.name, len(outcome.files))
    return outcome


def _fail(
    outcome: SourceOutcome, exc: Exception, emit: Callable[[SourceEvent], None],
) -> SourceOutcome:
    outcome.state = "failed"
    outcome.error = str(exc) or type(exc).__name__
    outcome.error_type = type(exc).__name__
    emit(SourceEvent(outcome.name, "failed", outcome.error, outcome.elapsed_ms))
    logger.info("%s failed: %s", outcome.name, outcome.error)
    return outcome


def _since(t0: float) -> float:
    return (time.monotonic() - t0) * 1000


def write_summary_json(summary: RunSummary, path: Path) -> None:
    """Persist *summary* as JSON metadata for other tools."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(summary.to_dict(), indent=2) + "\n")
