"""`triton image export IMAGE MANTA_PATH`.

Builds the export pipeline (setup, fetch, export, render) and runs it
against a fresh ExportContext. The caller maps the returned Outcome to an
exit status.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

import typer
from loguru import logger

from .config import CliState
from .errors import CloudApiError, RemoteActionError, UsageError
from .pipeline import ExportContext, Failure, Outcome, Success, run_pipeline
from .tritonapi import setup_triton_api

DRY_RUN_NOTICE = "Dry run: image not exported."


@dataclass
class ExportOptions:
    help: bool = False
    dry_run: bool = False
    json: bool = False


async def do_export(
    state: CliState,
    opts: ExportOptions,
    args: Sequence[str],
    *,
    show_help: Optional[Callable[[], None]] = None,
    timeout: Optional[float] = None,
) -> Outcome:
    if opts.help:
        if show_help is not None:
            show_help()
        return Success()
    if len(args) != 2:
        return Failure(UsageError(f"incorrect number of args: expect 2, got {len(args)}"))

    image_ref, manta_path = args

    async def get_image(ctx: ExportContext) -> None:
        ctx.image = await ctx.api.get_image(image_ref)
        logger.trace("image export: img {}", ctx.image.model_dump())

    async def export_image(ctx: ExportContext) -> None:
        logger.trace("image export path: dry_run={} manta_path={}", opts.dry_run, manta_path)

        # Progress goes to stderr in JSON mode so stdout stays one document.
        typer.echo(f"Exporting image {ctx.image.name}@{ctx.image.version} to {manta_path}", err=opts.json)

        if opts.dry_run:
            return
        try:
            ctx.path = await ctx.api.cloudapi.export_image(ctx.image.id, manta_path)
        except CloudApiError as e:
            raise RemoteActionError(e, "error exporting image to manta") from e
        logger.trace("image export: path {}", ctx.path.model_dump())

    async def output_results(ctx: ExportContext) -> None:
        if ctx.path is None:
            if not opts.json:
                typer.echo(DRY_RUN_NOTICE)
            return
        if opts.json:
            typer.echo(json.dumps(ctx.path.model_dump()))
        else:
            typer.echo(f"Manta URL: {ctx.path.manta_url}")
            typer.echo(f"Manifest path: {ctx.path.manifest_path}")
            typer.echo(f"Image path: {ctx.path.image_path}")

    ctx = ExportContext(cli=state)
    try:
        return await run_pipeline(
            ctx,
            [setup_triton_api, get_image, export_image, output_results],
            timeout=timeout,
        )
    finally:
        if ctx.api is not None:
            await ctx.api.close()
