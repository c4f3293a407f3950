"""Terminal UI utilities — per-source status lines."""

from __future__ import annotations

import click

from copilot_context.core.models import SourceEvent


def render_event(ev: SourceEvent) -> None:
    """Print one status line per state change worth showing."""
    ms = f" ({ev.elapsed_ms:.0f}ms)" if ev.elapsed_ms else ""
    match ev.state:
        case "fetching":
            click.echo(f"  ↓ {ev.name} ({ev.detail})…")
        case "succeeded":
            click.echo(f"  ✔ {ev.name}: {ev.detail}{ms}")
        case "failed":
            click.echo(f"  ✗ {ev.name}: {ev.detail}{ms}", err=True)
        case "cancelled":
            click.echo(f"  ⊘ {ev.name}: cancelled", err=True)
