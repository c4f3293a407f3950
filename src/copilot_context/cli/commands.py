"""CLI commands — init, run, list, add, remove, update, clean, combine."""

from __future__ import annotations

import time
from pathlib import Path

import click

from copilot_context.cli import CliState, cli
from copilot_context.cli.ui import render_event
from copilot_context.core import paths
from copilot_context.core.errors import ConfigError
from copilot_context.core.models import SOURCE_KINDS

pass_state = click.make_pass_decorator(CliState)


# ── init ────────────────────────────────────────────────────────────


@cli.command()
@click.option("--dest", default=paths.DEFAULT_DEST, show_default=True, help="Context folder to create.")
@pass_state
def init(state: CliState, dest: str) -> None:
    """Write a starter context.toml."""
    from copilot_context.services import bootstrap

    try:
        result = bootstrap.init_workspace(state.config_path, dest)
    except FileExistsError as exc:
        raise click.ClickException(str(exc)) from exc

    click.echo(f"✔ Initialised {result}")
    click.echo(f"  → context folder: {dest}")


# ── run ─────────────────────────────────────────────────────────────


@cli.command()
@click.option(
    "-j", "--jobs", default=1, show_default=True, envvar="COPILOT_CONTEXT_JOBS",
    type=click.IntRange(min=1), help="Fetch up to N sources concurrently.",
)
@click.option(
    "--timeout", default=None, envvar="COPILOT_CONTEXT_TIMEOUT",
    type=click.FloatRange(min=0, min_open=True),
    help="Per-source timeout in seconds (a source's own `timeout` wins).",
)
@click.option("--only", multiple=True, metavar="NAME", help="Only fetch these sources (repeatable).")
@click.option(
    "--summary-json", default=None, type=click.Path(dir_okay=False, path_type=Path),
    help="Also write the run summary as JSON.",
)
@pass_state
def run(
    state: CliState,
    jobs: int,
    timeout: float | None,
    only: tuple[str, ...],
    summary_json: Path | None,
) -> None:
    """Fetch every source into the context folder.

    Failing sources are reported and skipped; the rest still land. Exits
    non-zero when any source failed.
    """
    from copilot_context.services import runner

    cfg = state.load()
    if not cfg.sources:
        click.echo("No sources configured. Add one with 'copilot-context add'.")
        return

    click.echo(f"Fetching into {state.context_root(cfg)}")
    t0 = time.monotonic()
    try:
        summary = runner.run_sources(
            cfg, state.root, jobs=jobs, timeout=timeout, only=only, on_event=render_event,
        )
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc
    dt = time.monotonic() - t0

    if summary_json is not None:
        runner.write_summary_json(summary, summary_json)

    line = f"Fetched {summary.succeeded}/{len(summary.outcomes)} source(s) in {dt:.1f}s"
    if summary.failed:
        line += f", {summary.failed} failed"
    if summary.cancelled:
        line += f", {len(summary.cancelled)} cancelled"
    click.echo(line)

    if summary.failures:
        click.echo("Failed sources:", err=True)
        for name, error in summary.failures:
            click.echo(f"  {name}: {error}", err=True)
    if not summary.ok:
        click.get_current_context().exit(1)


# ── sources ─────────────────────────────────────────────────────────


@cli.command("list")
@pass_state
def list_sources(state: CliState) -> None:
    """Show declared sources without fetching anything."""
    cfg = state.load()
    if not cfg.sources:
        click.echo("No sources configured.")
        return
    for spec in cfg.sources:
        click.echo(f"{spec.name}  [{spec.kind}]  {spec.location}  → {spec.dest}")
        if spec.files:
            click.echo(f"    files: {', '.join(spec.files)}")


@cli.command()
@click.argument("kind", metavar="TYPE", type=click.Choice(SOURCE_KINDS))
@click.argument("name")
@click.argument("location")
@click.option("--dest", required=True, help="Destination relative to the context folder.")
@click.option("--branch", default=None, help="Git branch or tag (repo only).")
@click.option("--file", "files", multiple=True, metavar="PATTERN", help="Include/exclude rule (repeatable).")
@click.option("--flatten", is_flag=True, help="Drop directory structure, keep basenames.")
@pass_state
def add(
    state: CliState,
    kind: str,
    name: str,
    location: str,
    dest: str,
    branch: str | None,
    files: tuple[str, ...],
    flatten: bool,
) -> None:
    """Declare a new source.

    LOCATION is the path, URL, clone URL or script text, depending on TYPE.
    """
    from copilot_context.services import sources

    cfg = state.load()
    try:
        spec = sources.build_spec(
            kind, name, location, dest, branch=branch, files=files, flatten=flatten,
        )
        sources.add_source(cfg, spec)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc
    state.save(cfg)
    click.echo(f"✔ Added {spec.kind} source: {spec.name} → {spec.dest}")


@cli.command()
@click.argument("name")
@pass_state
def remove(state: CliState, name: str) -> None:
    """Remove a declared source (files already fetched stay until `clean`)."""
    from copilot_context.services import sources

    cfg = state.load()
    try:
        sources.remove_source(cfg, name)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc
    state.save(cfg)
    click.echo(f"✔ Removed source: {name}")


@cli.command()
@click.argument("name")
@click.option("--name", "new_name", default=None, help="Rename the source.")
@click.option("--dest", default=None)
@click.option("--location", default=None, help="New path, URL, clone URL or script.")
@click.option("--branch", default=None)
@click.option("--file", "files", multiple=True, metavar="PATTERN", help="Replace the rules (repeatable).")
@click.option("--flatten/--no-flatten", default=None)
@pass_state
def update(
    state: CliState,
    name: str,
    new_name: str | None,
    dest: str | None,
    location: str | None,
    branch: str | None,
    files: tuple[str, ...],
    flatten: bool | None,
) -> None:
    """Change fields of a declared source."""
    from copilot_context.services import sources

    cfg = state.load()
    try:
        spec = sources.update_source(
            cfg,
            name,
            name=new_name,
            dest=dest,
            location=location,
            branch=branch,
            files=files or None,
            flatten=flatten,
        )
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc
    state.save(cfg)
    click.echo(f"✔ Updated source: {spec.name}")


# ── context folder ──────────────────────────────────────────────────


@cli.command()
@click.option("--dry-run", is_flag=True, help="List what would be removed.")
@pass_state
def clean(state: CliState, dry_run: bool) -> None:
    """Delete files in the context folder that no source accounts for."""
    from copilot_context.services import clean as clean_service

    cfg = state.load()
    context = state.context_root(cfg)
    try:
        result = clean_service.clean_context(
            context, cfg.sources, dry_run=dry_run, config_file=state.config_path,
        )
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    verb = "Would remove" if dry_run else "Removed"
    for rel in result.removed_files:
        click.echo(f"  - {rel}")
    summary = f"{verb} {len(result.removed_files)} file(s)"
    if result.removed_dirs:
        summary += f" and {len(result.removed_dirs)} empty director(ies)"
    click.echo(f"{summary}; kept {result.kept}.")


@cli.command()
@click.argument("patterns", nargs=-1, required=True)
@click.option("-o", "--output", default=None, type=click.Path(dir_okay=False, path_type=Path), help="Write to this file.")
@click.option("--clipboard", is_flag=True, help="Copy to the clipboard.")
@click.option("--with-headers", is_flag=True, help="Precede each file with a header line.")
@click.option("--header-format", default="// File: {path}", show_default=True, help="Header template; {path} is replaced.")
@click.option("--separator", default="\n", help="Text inserted between files (default: newline).")
@click.option("--sort-files/--no-sort-files", default=True, show_default=True, help="Order files alphabetically.")
@pass_state
def combine(
    state: CliState,
    patterns: tuple[str, ...],
    output: Path | None,
    clipboard: bool,
    with_headers: bool,
    header_format: str,
    separator: str,
    sort_files: bool,
) -> None:
    """Concatenate context files matching PATTERNS.

    Writes to stdout unless --output or --clipboard is given.
    """
    from copilot_context.core.clipboard import ClipboardError
    from copilot_context.services import combine as combine_service

    if output is not None and clipboard:
        raise click.UsageError("--output and --clipboard are mutually exclusive.")

    cfg = state.load()
    try:
        result = combine_service.combine(
            state.context_root(cfg),
            list(patterns),
            with_headers=with_headers,
            header_format=header_format,
            separator=separator,
            sort_files=sort_files,
        )
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    if not result.files:
        click.echo("No files matched the patterns.", err=True)
        return

    try:
        sink = combine_service.deliver(result.text, output=output, to_clipboard=clipboard)
    except ClipboardError as exc:
        raise click.ClickException(str(exc)) from exc
    except OSError as exc:
        raise click.ClickException(f"Cannot write {output or 'clipboard'}: {exc}") from exc
    click.echo(f"Combined {len(result.files)} file(s) → {sink}", err=True)
