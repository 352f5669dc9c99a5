from __future__ import annotations

from typing import Any, Optional, TypeVar
from urllib.parse import quote

import httpx
from loguru import logger
from pydantic import BaseModel, ValidationError

from .errors import CloudApiError
from .models import ExportPath, Image, Profile

API_VERSION = "~8"
USER_AGENT = "triton-cli-python"

M = TypeVar("M", bound=BaseModel)


def _error_from_response(resp: httpx.Response) -> CloudApiError:
    code: Optional[str] = None
    message = resp.reason_phrase or f"HTTP {resp.status_code}"
    try:
        body = resp.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        code = body.get("code")
        message = body.get("message") or message
    label = f"{code}: {message}" if code else message
    return CloudApiError(f"{label} (HTTP {resp.status_code})", status=resp.status_code, code=code)


class CloudApi:
    """
    Minimal async CloudAPI client.

    Only the calls the CLI needs are implemented. Requests are unsigned;
    the account comes from the profile and scopes every path.
    """

    def __init__(self, profile: Profile, transport: Optional[httpx.AsyncBaseTransport] = None) -> None:
        self.profile = profile
        self.account = profile.account
        self._client = httpx.AsyncClient(
            base_url=profile.url.rstrip("/"),
            headers={
                "Accept": "application/json",
                "Accept-Version": API_VERSION,
                "User-Agent": USER_AGENT,
            },
            timeout=httpx.Timeout(profile.timeout),
            verify=not profile.insecure,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    def _path(self, *parts: str) -> str:
        return "/" + "/".join(quote(p, safe="") for p in (self.account, *parts))

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        logger.trace("cloudapi: {} {} {}", method, path, kwargs.get("params") or "")
        try:
            resp = await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            raise CloudApiError(f"{method} {path}: {type(e).__name__}: {e}") from e
        if resp.status_code >= 400:
            raise _error_from_response(resp)
        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as e:
            raise CloudApiError(
                f"{method} {path}: response is not valid JSON (HTTP {resp.status_code})",
                status=resp.status_code,
            ) from e

    def _load(self, model: type[M], data: Any, what: str) -> M:
        """Build `model` from a response body, or raise CloudApiError."""
        if not isinstance(data, dict):
            raise CloudApiError(f"unexpected {what} response: expected an object, got {type(data).__name__}")
        try:
            return model(**data)
        except ValidationError as e:
            raise CloudApiError(f"unexpected {what} response: {e}") from e

    async def get_image(self, image_id: str) -> Image:
        data = await self._request("GET", self._path("images", image_id))
        return self._load(Image, data, "GetImage")

    async def list_images(self, **filters: str) -> list[Image]:
        data = await self._request("GET", self._path("images"), params=filters or None)
        if data is None:
            return []
        if not isinstance(data, list):
            raise CloudApiError(f"unexpected ListImages response: expected a list, got {type(data).__name__}")
        return [self._load(Image, item, "ListImages") for item in data]

    async def export_image(self, image_id: str, manta_path: str) -> ExportPath:
        data = await self._request(
            "POST",
            self._path("images", image_id),
            params={"action": "export"},
            json={"manta_path": manta_path},
        )
        return self._load(ExportPath, data, "ExportImage")
