from __future__ import annotations

import asyncio
from typing import Optional

import typer

from .config import CliState
from .errors import ErrorKind, exit_code_for
from .image_export import ExportOptions, do_export
from .log import setup_logging
from .pipeline import Failure, Outcome

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    help="Triton CloudAPI command line.",
    context_settings={"help_option_names": ["-h", "--help"]},
)

# ---- Image commands ----
image_app = typer.Typer(help="List, get and export images.", no_args_is_help=True)
app.add_typer(image_app, name="image")


def _finish(command_path: str, outcome: Outcome, usage: str) -> None:
    """Report a failed outcome on stderr and exit non-zero; return on success."""
    if not isinstance(outcome, Failure):
        return
    typer.echo(f"{command_path}: error: {outcome.error}", err=True)
    if outcome.kind == ErrorKind.USAGE:
        typer.echo(f"usage: {command_path} {usage}", err=True)
    raise typer.Exit(code=exit_code_for(outcome.kind))


@app.callback()
def main(
    ctx: typer.Context,
    profile: Optional[str] = typer.Option(None, "--profile", "-p", help="Profile name under ~/.triton/profiles.d/"),
    url: Optional[str] = typer.Option(None, "--url", "-U", help="CloudAPI URL (overrides the profile)"),
    account: Optional[str] = typer.Option(None, "--account", "-a", help="Account login (overrides the profile)"),
    verbose: int = typer.Option(0, "--verbose", "-v", count=True, help="Debug logging on stderr; repeat for trace"),
) -> None:
    """
    Triton CloudAPI command line.

    Connection settings come from --profile, TRITON_URL/TRITON_ACCOUNT
    (or the older SDC_* names), and can be overridden per invocation.
    """
    state = ctx.ensure_object(CliState)
    if profile:
        state.profile = profile
    if url:
        state.url = url
    if account:
        state.account = account
    state.verbose = max(state.verbose, verbose)
    setup_logging(state.verbose)


@image_app.command("export", add_help_option=False)
def export(
    ctx: typer.Context,
    args: Optional[list[str]] = typer.Argument(None, metavar="IMAGE MANTA_PATH", show_default=False),
    help_: bool = typer.Option(False, "--help", "-h", help="Show this help."),
    dry_run: bool = typer.Option(False, "--dry-run", help="Go through the motions without actually exporting."),
    json_: bool = typer.Option(False, "--json", "-j", help="JSON stream output."),
):
    """
    Export an image.

    Where "IMAGE" is an image id (a full UUID), an image name (selects the
    latest, by "published_at", image with that name), an image "name@version"
    (selects latest match by "published_at"), or an image short ID (ID prefix).
    """

    def show_help() -> None:
        text = ctx.get_help()
        if text:
            typer.echo(text)

    state = ctx.ensure_object(CliState)
    opts = ExportOptions(help=help_, dry_run=dry_run, json=json_)
    outcome = asyncio.run(do_export(state, opts, args or [], show_help=show_help))
    _finish(ctx.command_path, outcome, "[OPTIONS] IMAGE MANTA_PATH")
