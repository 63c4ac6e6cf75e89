"""
CLI command for the installed-module list.

Thin wrapper over ``bundlectl.core.services.session``.
"""

from __future__ import annotations

import sys

import click

from bundlectl.core.services.sorting import SORTABLE_FIELDS
from bundlectl.ui.cli.common import emit_json, make_notifier, make_session, notifications_of, run_async

_STATE_COLORS = {"ACTIVE": "green", "RESOLVED": "yellow"}


@click.command("modules")
@click.option("--filter", "-f", "needle", default="", help="Case-insensitive name filter.")
@click.option("--sort", "order_by", type=click.Choice(SORTABLE_FIELDS), default=None, help="Sort column.")
@click.option("--order", type=click.Choice(["asc", "desc"]), default=None, help="Sort direction.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def modules(ctx: click.Context, needle: str, order_by: str | None, order: str | None, as_json: bool) -> None:
    """List installed modules."""
    notifier = make_notifier(as_json)
    session = make_session(ctx, notifier)
    snapshot: dict = {}

    async def _load() -> bool:
        async with session:
            ok = await session.open()
            if ok and (order_by or order):
                session.state.set_sort(order_by or session.state.order_by, order or "asc")
            session.state.set_filter(needle)
            snapshot.update(session.state.to_dict())
            return ok

    ok = run_async(_load())

    if as_json:
        emit_json({**snapshot, "notifications": notifications_of(notifier)})
        sys.exit(0 if ok else 1)

    if not ok:
        click.secho(f"❌ {snapshot.get('error')}", fg="red")
        sys.exit(1)

    rows = snapshot["modules"]
    if not rows and not needle:
        click.secho("⚠️  No modules installed", fg="yellow")
        return

    click.secho(f"📦 Modules ({len(rows)}):", fg="cyan", bold=True)
    if snapshot.get("last_update_time"):
        click.echo(f"   Last update check: {snapshot['last_update_time']}")
    updates = snapshot["updates"]
    if updates:
        click.secho(f"   {len(updates)} update(s) available — run 'bundlectl updates apply'", fg="yellow")
    click.echo()
    for m in rows:
        click.echo(f"   {m['name']:<40} {m['version']:<16} ", nl=False)
        click.secho(m["state"] or "?", fg=_STATE_COLORS.get(m["state"], "red"))
    if not rows:
        click.echo(f"   (no module matches '{needle}')")
    click.echo()
