"""Repository for context.toml read/write/validate."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

import tomlkit
from tomlkit.exceptions import TOMLKitError

from copilot_context.core import paths
from copilot_context.core.errors import ConfigError
from copilot_context.core.matcher import MatchRule
from copilot_context.core.models import SOURCE_KINDS, ContextConfig, SourceSpec

logger = logging.getLogger(__name__)

SUPPORTED_VERSIONS = (1,)

# Location field required by each source type.
LOCATION_FIELDS = {"path": "path", "url": "url", "repo": "repo", "sh": "script"}

_KNOWN_KEYS = {
    "type", "name", "dest", "path", "url", "repo", "branch", "sparse",
    "script", "files", "flatten", "timeout",
}


# ── Serialization ───────────────────────────────────────────────────


def dump(cfg: ContextConfig) -> str:
    """Serialize a ContextConfig to a TOML string."""
    doc = tomlkit.document()
    doc.add(tomlkit.comment("copilot-context configuration"))
    doc.add(tomlkit.nl())
    doc.add("version", cfg.version)
    doc.add("dest", cfg.dest)

    sources = tomlkit.aot()
    for spec in cfg.sources:
        sources.append(_spec_to_table(spec))
    doc.add(tomlkit.nl())
    doc.add("sources", sources)
    return tomlkit.dumps(doc)


def loads(text: str, *, origin: str = "<string>") -> ContextConfig:
    """Deserialize and validate TOML text."""
    try:
        raw = tomlkit.loads(text).unwrap()
    except TOMLKitError as exc:
        raise ConfigError(f"{origin}: invalid TOML ({exc})") from exc

    version = raw.get("version")
    if version is None:
        raise ConfigError(f"{origin}: missing 'version'")
    if isinstance(version, bool) or not isinstance(version, int):
        raise ConfigError(f"{origin}: 'version' must be an integer")

    raw_sources = raw.get("sources", [])
    if not isinstance(raw_sources, list):
        raise ConfigError(f"{origin}: 'sources' must be an array of tables")

    cfg = ContextConfig(
        version=version,
        dest=str(raw.get("dest", paths.DEFAULT_DEST)),
        sources=[_parse_source(item, index, origin) for index, item in enumerate(raw_sources)],
    )
    validate(cfg, origin=origin)
    return cfg


def load(path: Path) -> ContextConfig:
    """Deserialize context.toml into a validated ContextConfig."""
    try:
        text = path.read_text()
    except FileNotFoundError as exc:
        raise ConfigError(f"Config file not found: {path}") from exc
    except OSError as exc:
        raise ConfigError(f"Cannot read {path}: {exc}") from exc
    return loads(text, origin=str(path))


def save(cfg: ContextConfig, path: Path) -> None:
    """Validate, then write config to disk."""
    validate(cfg, origin=str(path))
    path.write_text(dump(cfg))


# ── Validation ──────────────────────────────────────────────────────


def validate(cfg: ContextConfig, *, origin: str = "config") -> None:
    """Raise ConfigError listing every problem found in *cfg*."""
    problems: list[str] = []

    if cfg.version not in SUPPORTED_VERSIONS:
        problems.append(f"unsupported version {cfg.version!r}")
    if not cfg.dest.strip():
        problems.append("'dest' must not be empty")
    elif paths.covers_config_dir(cfg.dest):
        problems.append(f"'dest' {cfg.dest!r} would make the config directory the context folder")

    seen: set[str] = set()
    for index, spec in enumerate(cfg.sources):
        label = f"sources[{index}]" + (f" ({spec.name})" if spec.name else "")
        problems.extend(f"{label}: {p}" for p in validate_source(spec))
        if spec.name in seen:
            problems.append(f"{label}: duplicate source name {spec.name!r}")
        seen.add(spec.name)

    if problems:
        raise ConfigError(f"{origin}: " + "; ".join(problems))


def validate_source(spec: SourceSpec) -> list[str]:
    """Return the problems with a single source (empty when valid)."""
    problems: list[str] = []
    if spec.kind not in SOURCE_KINDS:
        return [f"unknown type {spec.kind!r} (expected one of {', '.join(SOURCE_KINDS)})"]
    if not spec.name.strip():
        problems.append("'name' must not be empty")

    if not spec.dest.strip():
        problems.append("'dest' must not be empty")
    elif paths.escapes_root(spec.dest):
        problems.append(f"'dest' {spec.dest!r} escapes the context root")

    location_field = LOCATION_FIELDS[spec.kind]
    if not str(getattr(spec, location_field)).strip():
        problems.append(f"type {spec.kind!r} requires a non-empty '{location_field}'")

    if spec.kind == "url" and spec.url.strip():
        scheme = urlparse(spec.url).scheme
        if scheme not in ("http", "https"):
            problems.append(f"'url' must be http or https, got {spec.url!r}")

    if spec.files and spec.kind not in ("path", "repo"):
        problems.append(f"'files' is not supported for type {spec.kind!r}")
    for pattern in spec.files:
        try:
            MatchRule.parse(pattern)
        except ConfigError as exc:
            problems.append(str(exc))

    if spec.flatten and spec.kind not in ("path", "repo"):
        problems.append(f"'flatten' is not supported for type {spec.kind!r}")
    if spec.sparse and spec.kind != "repo":
        problems.append("'sparse' is only supported for type 'repo'")
    if spec.timeout is not None and spec.timeout <= 0:
        problems.append("'timeout' must be positive")
    return problems


# ── Private helpers ─────────────────────────────────────────────────


def _parse_source(raw: Any, index: int, origin: str) -> SourceSpec:
    if not isinstance(raw, dict):
        raise ConfigError(f"{origin}: sources[{index}] must be a table")

    unknown = set(raw) - _KNOWN_KEYS
    if unknown:
        logger.warning("%s: sources[%d] ignoring unknown keys: %s", origin, index, ", ".join(sorted(unknown)))

    timeout = raw.get("timeout")
    if timeout is not None and (isinstance(timeout, bool) or not isinstance(timeout, (int, float))):
        raise ConfigError(f"{origin}: sources[{index}] 'timeout' must be a number")

    branch = raw.get("branch")
    return SourceSpec(
        name=str(raw.get("name", "")),
        kind=str(raw.get("type", "")).strip().lower(),  # type: ignore[arg-type]
        dest=str(raw.get("dest", "")),
        path=str(raw.get("path", "")),
        url=str(raw.get("url", "")),
        repo=str(raw.get("repo", "")),
        branch=str(branch) if branch else None,
        sparse=_string_list(raw.get("sparse"), "sparse", index, origin),
        script=str(raw.get("script", "")),
        files=_string_list(raw.get("files"), "files", index, origin),
        flatten=bool(raw.get("flatten", False)),
        timeout=float(timeout) if timeout is not None else None,
    )


def _string_list(value: Any, key: str, index: int, origin: str) -> list[str]:
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ConfigError(f"{origin}: sources[{index}] '{key}' must be a list of strings")
    return list(value)


def _spec_to_table(spec: SourceSpec) -> Any:
    row = tomlkit.table()
    row.add("type", spec.kind)
    row.add("name", spec.name)
    if spec.kind == "path":
        row.add("path", spec.path)
    elif spec.kind == "url":
        row.add("url", spec.url)
    elif spec.kind == "repo":
        row.add("repo", spec.repo)
        if spec.branch:
            row.add("branch", spec.branch)
        if spec.sparse:
            row.add("sparse", spec.sparse)
    elif spec.kind == "sh":
        row.add("script", tomlkit.string(spec.script, multiline="\n" in spec.script))
    row.add("dest", spec.dest)
    if spec.files:
        row.add("files", spec.files)
    if spec.flatten:
        row.add("flatten", True)
    if spec.timeout is not None:
        row.add("timeout", spec.timeout)
    return row
