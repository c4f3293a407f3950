"""Source-list operations behind `list`, `add`, `remove` and `update`.

Pure data operations: each takes the ContextConfig explicitly, mutates it,
and leaves persisting to the caller.
"""

from __future__ import annotations

import dataclasses
from typing import Any

from copilot_context.core.errors import ConfigError
from copilot_context.core.models import SOURCE_KINDS, ContextConfig, SourceSpec
from copilot_context.repo.config import LOCATION_FIELDS, validate_source


def build_spec(
    kind: str,
    name: str,
    location: str,
    dest: str,
    *,
    branch: str | None = None,
    files: list[str] | tuple[str, ...] = (),
    flatten: bool = False,
) -> SourceSpec:
    """Create a SourceSpec, putting *location* in the field *kind* uses."""
    kind = kind.strip().lower()
    if kind not in SOURCE_KINDS:
        raise ConfigError(f"Unknown source type {kind!r} (expected one of {', '.join(SOURCE_KINDS)})")
    spec = SourceSpec(
        name=name,
        kind=kind,  # type: ignore[arg-type]
        dest=dest,
        branch=branch or None,
        files=list(files),
        flatten=flatten,
    )
    setattr(spec, LOCATION_FIELDS[kind], location)
    return spec


def add_source(cfg: ContextConfig, spec: SourceSpec) -> SourceSpec:
    if cfg.get(spec.name) is not None:
        raise ConfigError(f"Source '{spec.name}' already exists. Use 'update' to change it.")
    _check(spec)
    cfg.sources.append(spec)
    return spec


def remove_source(cfg: ContextConfig, name: str) -> SourceSpec:
    spec = _require(cfg, name)
    cfg.sources.remove(spec)
    return spec


def update_source(cfg: ContextConfig, name: str, /, **changes: Any) -> SourceSpec:
    """Replace the given fields of source *name*.

    ``location`` is accepted as an alias for the kind's location field.
    None values are ignored so CLI options can be passed straight through.
    """
    current = _require(cfg, name)
    changes = {k: v for k, v in changes.items() if v is not None}
    if "location" in changes:
        changes[LOCATION_FIELDS[current.kind]] = changes.pop("location")
    if "files" in changes:
        changes["files"] = list(changes["files"])

    new_name = changes.get("name", name)
    if new_name != name and cfg.get(new_name) is not None:
        raise ConfigError(f"Source '{new_name}' already exists")

    try:
        updated = dataclasses.replace(current, **changes)
    except TypeError as exc:
        raise ConfigError(f"Invalid field for update: {exc}") from exc
    _check(updated)
    cfg.sources[cfg.sources.index(current)] = updated
    return updated


def _require(cfg: ContextConfig, name: str) -> SourceSpec:
    spec = cfg.get(name)
    if spec is None:
        raise ConfigError(f"No source named '{name}'")
    return spec


def _check(spec: SourceSpec) -> None:
    problems = validate_source(spec)
    if problems:
        raise ConfigError(f"Invalid source '{spec.name}': " + "; ".join(problems))
