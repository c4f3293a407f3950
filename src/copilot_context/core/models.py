"""Data shapes for context configuration and run results.

A configuration is a flat, ordered list of sources:
    context.toml
    ├── version           (int)
    ├── dest              (context root, relative to context.toml)
    └── [[sources]]       (one table per SourceSpec, `type` discriminates)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

from copilot_context.core.paths import DEFAULT_DEST

SourceKind = Literal["path", "url", "repo", "sh"]
SOURCE_KINDS: tuple[str, ...] = ("path", "url", "repo", "sh")

SourceState = Literal["pending", "fetching", "writing", "succeeded", "failed", "cancelled"]


# ── Configuration layer ─────────────────────────────────────────────


@dataclass
class SourceSpec:
    """One declared fetch job. Which location field is used depends on *kind*."""

    name: str
    kind: SourceKind
    dest: str
    path: str = ""
    url: str = ""
    repo: str = ""
    branch: str | None = None
    sparse: list[str] = field(default_factory=list)
    script: str = ""
    files: list[str] = field(default_factory=list)
    flatten: bool = False
    timeout: float | None = None

    @property
    def location(self) -> str:
        """The kind-specific field that says where content comes from."""
        if self.kind == "path":
            return self.path
        if self.kind == "url":
            return self.url
        if self.kind == "repo":
            return f"{self.repo}@{self.branch}" if self.branch else self.repo
        return self.script.strip().splitlines()[0] if self.script.strip() else ""


@dataclass
class ContextConfig:
    """Root configuration object for context.toml."""

    version: int = 1
    dest: str = DEFAULT_DEST
    sources: list[SourceSpec] = field(default_factory=list)

    def get(self, name: str) -> SourceSpec | None:
        for spec in self.sources:
            if spec.name == name:
                return spec
        return None


# ── Fetch / write layer ─────────────────────────────────────────────


@dataclass
class FetchedFile:
    """A file a fetcher resolved, not yet written.

    ``rel_path`` is POSIX and relative to the source's ``dest``. The empty
    string means ``dest`` itself names the file (single-file path and url
    sources). Exactly one of *content* / *source* is set.
    """

    rel_path: str
    content: bytes | None = None
    source: Path | None = None

    def read(self) -> bytes:
        if self.content is not None:
            return self.content
        if self.source is None:
            raise ValueError(f"FetchedFile {self.rel_path!r} has no content")
        return self.source.read_bytes()


# ── Run layer ───────────────────────────────────────────────────────


@dataclass
class SourceEvent:
    """Progress report for a single source during a run."""

    name: str
    state: SourceState
    detail: str = ""
    elapsed_ms: float = 0


@dataclass
class SourceOutcome:
    """Final state of one source after a run."""

    name: str
    kind: str
    state: SourceState
    files: list[str] = field(default_factory=list)
    error: str = ""
    error_type: str = ""
    elapsed_ms: float = 0


@dataclass
class RunSummary:
    """Aggregate of all source outcomes for one invocation."""

    outcomes: list[SourceOutcome] = field(default_factory=list)

    @property
    def attempted(self) -> int:
        return sum(1 for o in self.outcomes if o.state != "cancelled")

    @property
    def succeeded(self) -> int:
        return sum(1 for o in self.outcomes if o.state == "succeeded")

    @property
    def failed(self) -> int:
        return sum(1 for o in self.outcomes if o.state == "failed")

    @property
    def cancelled(self) -> list[str]:
        return [o.name for o in self.outcomes if o.state == "cancelled"]

    @property
    def failures(self) -> list[tuple[str, str]]:
        return [(o.name, o.error) for o in self.outcomes if o.state == "failed"]

    @property
    def ok(self) -> bool:
        return self.failed == 0 and not self.cancelled

    def to_dict(self) -> dict:
        return {
            "attempted": self.attempted,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "cancelled": self.cancelled,
            "sources": [
                {
                    "name": o.name,
                    "type": o.kind,
                    "state": o.state,
                    "files": o.files,
                    "error": o.error or None,
                    "error_type": o.error_type or None,
                    "elapsed_ms": round(o.elapsed_ms, 1),
                }
                for o in self.outcomes
            ],
        }
