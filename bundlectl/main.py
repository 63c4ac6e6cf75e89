"""
bundlectl — CLI entrypoint.

Usage:
    python -m bundlectl.main --help
    bundlectl modules --filter core --sort version --order desc
    bundlectl bundle start acme-forms
    bundlectl updates apply
"""

from __future__ import annotations

import os
from pathlib import Path

import click

from bundlectl import __version__
from bundlectl.core.observability.logging_config import setup_logging


@click.group()
@click.version_option(version=__version__, prog_name="bundlectl")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to bundlectl.yml (default: auto-detect).",
)
@click.option("--mock", is_flag=True, help="Use an in-memory demo registry instead of a server.")
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
    mock: bool,
) -> None:
    """bundlectl — inspect, control and update registry bundles."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug
    ctx.obj["config_path"] = Path(config_path) if config_path else None
    ctx.obj["mock"] = mock

    if debug:
        level = "DEBUG"
    elif verbose:
        level = "INFO"
    elif quiet:
        level = "ERROR"
    else:
        level = os.environ.get("BCTL_LOG_LEVEL", "WARNING")

    setup_logging(
        level=level,
        log_file=os.environ.get("BCTL_LOG_FILE"),
        log_file_level=os.environ.get("BCTL_LOG_FILE_LEVEL"),
        quiet_third_party=not debug,
    )


from bundlectl.ui.cli.bundle import bundle  # noqa: E402
from bundlectl.ui.cli.history import history  # noqa: E402
from bundlectl.ui.cli.modules import modules  # noqa: E402
from bundlectl.ui.cli.updates import updates  # noqa: E402

cli.add_command(modules)
cli.add_command(updates)
cli.add_command(bundle)
cli.add_command(history)


if __name__ == "__main__":
    cli()
