"""CLI entry point — Click command group."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import click

from copilot_context import __version__
from copilot_context.core import paths
from copilot_context.core.env import load_user_env
from copilot_context.core.errors import ConfigError
from copilot_context.core.logging_setup import setup_logging
from copilot_context.core.models import ContextConfig

load_user_env()


@dataclass
class CliState:
    """Per-invocation state handed to every subcommand via ``ctx.obj``."""

    config_path: Path
    verbose: bool = False

    @property
    def root(self) -> Path:
        return self.config_path.parent

    def load(self) -> ContextConfig:
        from copilot_context.repo import config

        if not self.config_path.exists():
            raise click.ClickException(
                f"No {paths.CONFIG_TOML} found at {self.config_path}. Run 'copilot-context init' first."
            )
        try:
            return config.load(self.config_path)
        except ConfigError as exc:
            raise click.ClickException(str(exc)) from exc

    def save(self, cfg: ContextConfig) -> None:
        from copilot_context.repo import config

        try:
            config.save(cfg, self.config_path)
        except ConfigError as exc:
            raise click.ClickException(str(exc)) from exc

    def context_root(self, cfg: ContextConfig) -> Path:
        context = paths.context_root(self.root, cfg.dest)
        if paths.holds_config(context, self.root):
            raise click.ClickException(
                f"Context folder {context} contains {self.config_path.name}; point 'dest' at a subfolder."
            )
        return context


_SECTIONS: dict[str, tuple[str, ...]] = {
    "Workspace": ("init",),
    "Fetch": ("run",),
    "Sources": ("list", "add", "remove", "update"),
    "Context folder": ("clean", "combine"),
}


def _quick_start(root_name: str) -> str:
    lines = [
        "Quick start:",
        f"  {root_name} init",
        f"  {root_name} add path notes ./README.md --dest notes/README.md",
        f"  {root_name} run",
        f"  {root_name} combine '**/*.md' --with-headers --clipboard",
    ]
    return "\n".join(lines)


def _render_grouped_index(root: click.Command, root_name: str) -> str:
    if not isinstance(root, click.Group):
        return f"  {root_name}"

    lines: list[str] = []
    listed: set[str] = set()
    for section, names in _SECTIONS.items():
        entries = [name for name in names if name in root.commands]
        if not entries:
            continue
        lines.append(f"{section}:")
        lines.extend(f"  {root_name} {name}" for name in entries)
        listed.update(entries)

    other = sorted(set(root.commands) - listed)
    if other:
        lines.append("Other:")
        lines.extend(f"  {root_name} {name}" for name in other)
    return "\n".join(lines)


class ContextGroup(click.Group):
    """Click group that appends a quick start and command index to help output."""

    def get_help(self, ctx: click.Context) -> str:
        base = super().get_help(ctx)
        root_ctx = ctx.find_root()
        root_name = root_ctx.info_name or "copilot-context"
        grouped = _render_grouped_index(root_ctx.command, root_name)
        return f"{base}\n\n{_quick_start(root_name)}\n\nCommands by workflow:\n{grouped}"


@click.group(cls=ContextGroup, invoke_without_command=True)
@click.option(
    "-c", "--config", "config_file", default=None,
    type=click.Path(dir_okay=False, path_type=Path),
    help=f"Path to {paths.CONFIG_TOML} (default: nearest one upwards from cwd).",
)
@click.option("-v", "--verbose", is_flag=True, help="Debug logging on stderr.")
@click.version_option(__version__, prog_name="copilot-context")
@click.pass_context
def cli(ctx: click.Context, config_file: Path | None, verbose: bool) -> None:
    """copilot-context — curate a reproducible local context folder.

    Pulls files from local paths, URLs, git repositories and shell scripts
    into one folder, as declared in context.toml. Runs `run` when no
    command is given.
    """
    setup_logging(verbose)
    if config_file is None:
        config_file = paths.config_path(paths.resolve_root())
    ctx.obj = CliState(config_path=config_file.expanduser().absolute(), verbose=verbose)

    if ctx.invoked_subcommand is None:
        from copilot_context.cli.commands import run

        ctx.invoke(run)


# Register all sub-commands on import
from copilot_context.cli import commands as _commands  # noqa: F401, E402
