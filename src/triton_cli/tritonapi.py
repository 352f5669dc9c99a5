from __future__ import annotations

from typing import Any, Optional

import httpx
from loguru import logger

from .cloudapi import CloudApi
from .config import load_profile
from .errors import AmbiguousReferenceError, CloudApiError, ResourceNotFoundError
from .models import Image, Profile
from .utils import is_id_prefix, is_uuid


def _latest(images: list[Image]) -> Image:
    # ISO-8601 timestamps from CloudAPI sort lexically; unpublished sorts first.
    return sorted(images, key=lambda img: img.published_at or "")[-1]


class TritonApi:
    """
    Session-level API used by CLI commands.

    Wraps CloudApi with the lookups a human-facing command needs, such as
    resolving an image by name, "name@version" or short id.
    """

    def __init__(self, profile: Profile, transport: Optional[httpx.AsyncBaseTransport] = None) -> None:
        self.profile = profile
        self.cloudapi = CloudApi(profile, transport=transport)

    async def close(self) -> None:
        await self.cloudapi.aclose()

    async def __aenter__(self) -> "TritonApi":
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()

    async def get_image(self, reference: str) -> Image:
        """Resolve an image id, name, name@version or short id to one image.

        Names select the latest match by `published_at`. A short id must
        match exactly one image.
        """

        if not reference.strip():
            raise ResourceNotFoundError("no image reference given", reference)

        if is_uuid(reference):
            try:
                return await self.cloudapi.get_image(reference)
            except CloudApiError as e:
                if e.status == 404:
                    raise ResourceNotFoundError(f"image with id {reference} was not found", reference) from e
                raise

        images = await self.cloudapi.list_images(state="all")

        if "@" in reference:
            name, version = reference.split("@", 1)
            matches = [img for img in images if img.name == name and img.version == version]
        else:
            matches = [img for img in images if img.name == reference]
        if matches:
            img = _latest(matches)
            logger.trace("image {!r} matched {} by name, picked {}", reference, len(matches), img.id)
            return img

        if not is_id_prefix(reference):
            raise ResourceNotFoundError(f'no image with name or short id "{reference}" was found', reference)

        by_short_id = [img for img in images if img.id.startswith(reference)]
        if len(by_short_id) == 1:
            return by_short_id[0]
        if len(by_short_id) > 1:
            ids = ", ".join(img.id for img in by_short_id)
            raise AmbiguousReferenceError(
                f'image short id "{reference}" is ambiguous: matches {ids}', reference
            )
        raise ResourceNotFoundError(f'no image with name or short id "{reference}" was found', reference)


async def setup_triton_api(ctx: Any) -> None:
    """Pipeline task: open a TritonApi session for `ctx.cli` into `ctx.api`."""

    profile = load_profile(ctx.cli)
    ctx.api = TritonApi(profile, transport=ctx.cli.transport)
