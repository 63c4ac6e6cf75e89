"""
Shared plumbing for the CLI commands: settings, gateway, session, output.
"""

from __future__ import annotations

import asyncio
import json
import sys
from collections.abc import Awaitable
from typing import Any, TypeVar

import click

from bundlectl.adapters.base import RegistryGateway
from bundlectl.core.config.loader import ConfigError, Settings, load_settings
from bundlectl.core.models.result import OperationResult
from bundlectl.core.persistence.audit import AuditWriter
from bundlectl.core.services.notifications import CollectingNotifier, ConsoleNotifier, Notifier
from bundlectl.core.services.session import ModuleManagementSession

T = TypeVar("T")

_STATUS_STYLE = {"ok": ("✅", "green"), "skipped": ("⚠️ ", "yellow"), "failed": ("❌", "red")}


def run_async(coro: Awaitable[T]) -> T:
    return asyncio.run(coro)


def get_settings(ctx: click.Context) -> Settings:
    """Settings for this invocation (loaded once, cached on the context)."""
    settings = ctx.obj.get("settings")
    if settings is None:
        try:
            settings = load_settings(ctx.obj.get("config_path"))
        except ConfigError as e:
            click.secho(f"❌ {e}", fg="red", err=True)
            sys.exit(1)
        ctx.obj["settings"] = settings
    return settings


def build_gateway(ctx: click.Context) -> RegistryGateway:
    """Gateway for this invocation: injected, mock, or GraphQL."""
    if ctx.obj.get("gateway") is not None:
        return ctx.obj["gateway"]
    if ctx.obj.get("mock"):
        from bundlectl.adapters.mock import MockRegistryGateway

        return MockRegistryGateway.demo()

    from bundlectl.adapters.graphql import GraphQLRegistryGateway

    reg = get_settings(ctx).registry
    return GraphQLRegistryGateway(
        reg.url,
        endpoint=reg.endpoint,
        username=reg.username,
        password=reg.password,
        token=reg.token,
        timeout=reg.timeout,
        verify_ssl=reg.verify_ssl,
        graph_depth=reg.graph_depth,
    )


def audit_writer(ctx: click.Context) -> AuditWriter | None:
    settings = get_settings(ctx)
    if not settings.audit.enabled:
        return None
    return AuditWriter(settings.audit_path())


def make_notifier(as_json: bool) -> Notifier:
    return CollectingNotifier() if as_json else ConsoleNotifier()


def make_session(ctx: click.Context, notifier: Notifier) -> ModuleManagementSession:
    settings = get_settings(ctx)
    return ModuleManagementSession(
        build_gateway(ctx),
        notifier=notifier,
        audit=audit_writer(ctx),
        order_by=settings.view.order_by,
        order=settings.view.order,
    )


def notifications_of(notifier: Notifier) -> list[str]:
    return notifier.messages if isinstance(notifier, CollectingNotifier) else []


def emit_json(data: Any) -> None:
    click.echo(json.dumps(data, indent=2, default=str))


def echo_result(result: OperationResult) -> None:
    icon, color = _STATUS_STYLE.get(result.status, ("•", "white"))
    label = f"{result.operation} [{result.target}]" if result.target else result.operation
    click.secho(f"{icon} {label}: {result.status}", fg=color, bold=True)
    if result.message:
        click.echo(f"   {result.message}")
    if result.error:
        click.echo(f"   {result.error}")
    if result.attempted and not result.resynced:
        click.secho("   ⚠️  Could not re-fetch registry state afterwards", fg="yellow")


def exit_for(result: OperationResult) -> None:
    if not result.ok:
        sys.exit(1)
