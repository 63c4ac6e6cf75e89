"""
CLI commands for available updates — list, check, apply.

Thin wrappers over ``bundlectl.core.services.updates``.
"""

from __future__ import annotations

import sys

import click

from bundlectl.core.models.result import OperationResult
from bundlectl.ui.cli.common import (
    echo_result,
    emit_json,
    exit_for,
    make_notifier,
    make_session,
    notifications_of,
    run_async,
)


@click.group()
def updates() -> None:
    """Updates — list, check, apply."""


@updates.command("list")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def list_updates(ctx: click.Context, as_json: bool) -> None:
    """Show modules with a newer version available."""
    notifier = make_notifier(as_json)
    session = make_session(ctx, notifier)
    snapshot: dict = {}

    async def _load() -> bool:
        async with session:
            ok = await session.open()
            snapshot.update(session.state.to_dict())
            return ok

    ok = run_async(_load())

    if as_json:
        emit_json({
            "updates": snapshot.get("updates", []),
            "last_update_time": snapshot.get("last_update_time"),
            "error": snapshot.get("error"),
            "notifications": notifications_of(notifier),
        })
        sys.exit(0 if ok else 1)

    if not ok:
        click.secho(f"❌ {snapshot.get('error')}", fg="red")
        sys.exit(1)

    _echo_updates(snapshot["updates"], snapshot.get("last_update_time"))


@updates.command("check")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def check(ctx: click.Context, as_json: bool) -> None:
    """Ask the registry for the current list of available updates."""
    notifier = make_notifier(as_json)
    session = make_session(ctx, notifier)
    snapshot: dict = {}

    async def _check() -> OperationResult:
        async with session:
            result = await session.updates.check_for_updates()
            snapshot.update(session.state.to_dict())
            return result

    result = run_async(_check())

    if as_json:
        emit_json({
            "result": result.model_dump(),
            "updates": snapshot.get("updates", []),
            "last_update_time": snapshot.get("last_update_time"),
            "notifications": notifications_of(notifier),
        })
        exit_for(result)
        return

    echo_result(result)
    if result.ok:
        _echo_updates(snapshot["updates"], snapshot.get("last_update_time"))
    exit_for(result)


@updates.command("apply")
@click.option("--filter", "filters", multiple=True, help="Only update modules whose name contains this (repeatable).")
@click.option(
    "--platform-only/--any-vendor",
    "platform_only",
    default=None,
    help="Restrict to platform-vendor modules (default: registry decides).",
)
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def apply(ctx: click.Context, filters: tuple[str, ...], platform_only: bool | None, as_json: bool) -> None:
    """Apply every available update in one bulk operation."""
    notifier = make_notifier(as_json)
    session = make_session(ctx, notifier)

    async def _apply() -> OperationResult | None:
        async with session:
            if not await session.open():
                return None
            if not session.updates.can_update_all:
                return OperationResult.skip("update_all", "all", reason="No updates available")
            return await session.updates.update_all(platform_only=platform_only, filters=filters or None)

    result = run_async(_apply())

    if result is None:
        if as_json:
            emit_json({"error": "Failed to load module data", "notifications": notifications_of(notifier)})
        sys.exit(1)

    if as_json:
        emit_json({"result": result.model_dump(), "notifications": notifications_of(notifier)})
        sys.exit(1 if result.failed else 0)

    if result.skipped:
        click.secho("✅ Nothing to update", fg="green")
        return

    echo_result(result)
    for name in result.metadata.get("updated_modules", []):
        click.echo(f"   • {name}")
    exit_for(result)


def _echo_updates(rows: list[dict], last_update_time: object) -> None:
    if last_update_time:
        click.echo(f"   Last update check: {last_update_time}")
    if not rows:
        click.secho("✅ All modules up to date", fg="green")
        return
    click.secho(f"⬆️  Available updates ({len(rows)}):", fg="yellow", bold=True)
    for u in rows:
        click.echo(f"   {u['name']:<40} {u['current_version'] or '?':<16} → {u['available_version'] or '?'}")
    click.echo()
