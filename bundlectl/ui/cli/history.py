"""
CLI command for the operation ledger.
"""

from __future__ import annotations

import click

from bundlectl.core.persistence.audit import AuditWriter
from bundlectl.ui.cli.common import emit_json, get_settings

_STATUS_COLORS = {"ok": "green", "skipped": "yellow", "failed": "red"}


@click.command()
@click.option("-n", "count", default=20, show_default=True, help="Number of entries to show.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def history(ctx: click.Context, count: int, as_json: bool) -> None:
    """Show recent lifecycle and update operations."""
    writer = AuditWriter(get_settings(ctx).audit_path())
    entries = writer.read_recent(count)

    if as_json:
        emit_json([e.model_dump(mode="json") for e in entries])
        return

    if not entries:
        click.secho(f"⚠️  No operations recorded in {writer.path}", fg="yellow")
        return

    click.secho(f"📜 Recent operations ({len(entries)}):", fg="cyan", bold=True)
    for e in entries:
        label = f"{e.operation} {e.module or ''} [{e.target}]".replace("  ", " ")
        click.echo(f"   {e.timestamp[:19]}  {label:<40} ", nl=False)
        click.secho(e.status, fg=_STATUS_COLORS.get(e.status, "white"))
        if e.error:
            click.echo(f"      {e.error}")
    click.echo()
