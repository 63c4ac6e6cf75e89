"""
CLI commands for a single bundle — show, start, stop, refresh.

Thin wrappers over ``bundlectl.core.services.lifecycle``. Operations
always target the bundle id from a freshly fetched detail, never the name.
"""

from __future__ import annotations

import sys

import click

from bundlectl.core.errors import RegistryError
from bundlectl.core.models.bundle import BundleDetail, BundleOperation
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
def bundle() -> None:
    """Bundle — show, start, stop, refresh."""


@bundle.command()
@click.argument("name")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def show(ctx: click.Context, name: str, as_json: bool) -> None:
    """Show everything the registry knows about bundle NAME."""
    notifier = make_notifier(as_json)
    session = make_session(ctx, notifier)

    async def _show() -> BundleDetail:
        async with session:
            row = session.row(name)
            await row.load()
            return row.require_detail()

    try:
        detail = run_async(_show())
    except RegistryError as e:
        if as_json:
            emit_json({"error": e.to_dict(), "notifications": notifications_of(notifier)})
        else:
            click.secho(f"❌ {e}", fg="red")
        sys.exit(1)

    if as_json:
        emit_json({
            "bundle": detail.model_dump(mode="json"),
            "operations": sorted(op.value for op in detail.available_operations),
        })
        return

    _echo_detail(detail)


def _lifecycle_command(operation: BundleOperation) -> click.Command:
    @click.command(operation.value, help=f"{operation.value.capitalize()} bundle NAME.")
    @click.argument("name")
    @click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
    @click.pass_context
    def command(ctx: click.Context, name: str, as_json: bool) -> None:
        notifier = make_notifier(as_json)
        session = make_session(ctx, notifier)
        after: dict = {}

        async def _run() -> OperationResult:
            async with session:
                row = session.row(name)
                await row.load()
                row.require_detail()
                result = await row.run(operation)
                if row.detail is not None:
                    after["state"] = row.detail.state
                return result

        try:
            result = run_async(_run())
        except RegistryError as e:
            if as_json:
                emit_json({"error": e.to_dict(), "notifications": notifications_of(notifier)})
            else:
                click.secho(f"❌ {e}", fg="red")
            sys.exit(1)

        if as_json:
            emit_json({
                "result": result.model_dump(),
                "state": after.get("state"),
                "notifications": notifications_of(notifier),
            })
            exit_for(result)
            return

        echo_result(result)
        if "state" in after:
            click.echo(f"   State: {after['state']}")
        exit_for(result)

    return command


for _op in BundleOperation:
    bundle.add_command(_lifecycle_command(_op))


def _echo_detail(detail: BundleDetail) -> None:
    click.secho(f"\n📦 {detail.label}", fg="cyan", bold=True)
    click.echo(f"   Version: {detail.version}")
    color = "green" if detail.state == "ACTIVE" else "red"
    click.echo("   State:   ", nl=False)
    click.secho(detail.state or "?", fg=color)
    ops = ", ".join(sorted(op.value for op in detail.available_operations)) or "none"
    click.echo(f"   Operations: {ops}")

    _echo_list("Deployed on sites", detail.sites_deployment)
    _echo_list("Dependencies", detail.dependencies)
    _echo_list("Module dependencies", detail.module_dependencies)
    _echo_list("Node type dependencies", detail.node_types_dependencies)
    _echo_list("Services provided", detail.services)
    _echo_list("Services in use", detail.services_in_use)

    manifest = detail.manifest_dict()
    if manifest:
        click.secho("\n   Manifest:", fg="white", bold=True)
        for key, value in manifest.items():
            click.echo(f"     {key}: {value}")
    if detail.license:
        click.secho("\n   License:", fg="white", bold=True)
        click.echo(f"     {detail.license.strip()}")
    click.echo()


def _echo_list(title: str, items: list[str]) -> None:
    if not items:
        return
    click.secho(f"\n   {title}:", fg="white", bold=True)
    for item in items:
        click.echo(f"     • {item}")
