from __future__ import annotations

import json
import os
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Optional

from loguru import logger
from pydantic import ValidationError

from .errors import SetupError
from .models import Profile
from .paths import profile_path
from .utils import parse_bool, read_json

if TYPE_CHECKING:
    import httpx


@dataclass
class CliState:
    """Top-level invocation state shared by every subcommand.

    Filled in by the `triton` callback from global options. `transport` is
    handed to the HTTP client unchanged (tests use httpx.MockTransport).
    """

    profile: Optional[str] = None
    url: Optional[str] = None
    account: Optional[str] = None
    verbose: int = 0
    transport: Optional["httpx.AsyncBaseTransport"] = None


def _first_env(*names: str) -> Optional[str]:
    for name in names:
        value = os.getenv(name)
        if value:
            return value
    return None


def _profile_from_env() -> dict[str, Any]:
    data: dict[str, Any] = {}
    url = _first_env("TRITON_URL", "SDC_URL")
    account = _first_env("TRITON_ACCOUNT", "SDC_ACCOUNT")
    key_id = _first_env("TRITON_KEY_ID", "SDC_KEY_ID")
    if url:
        data["url"] = url
    if account:
        data["account"] = account
    if key_id:
        data["key_id"] = key_id
    insecure = _first_env("TRITON_TLS_INSECURE", "SDC_TLS_INSECURE")
    if insecure is not None:
        data["insecure"] = parse_bool(insecure)
    return data


def _profile_from_file(name: str) -> dict[str, Any]:
    path = profile_path(name)
    if not path.exists():
        raise SetupError(f"no such profile: {name!r} (looked for {path})")
    try:
        data = read_json(path)
    except (OSError, json.JSONDecodeError) as e:
        raise SetupError(f"could not read profile {name!r} from {path}: {e}") from e
    if not isinstance(data, dict):
        raise SetupError(f"profile {name!r} in {path} is not a JSON object")
    data.setdefault("name", name)
    return data


def load_profile(state: CliState) -> Profile:
    """
    Resolve the CloudAPI profile for this invocation.

    Precedence: --url/--account overrides, then the named profile file
    (--profile or TRITON_PROFILE), then TRITON_*/SDC_* environment variables.
    """
    name = state.profile or os.getenv("TRITON_PROFILE")
    data = _profile_from_file(name) if name and name != "env" else _profile_from_env()
    if state.url:
        data["url"] = state.url
    if state.account:
        data["account"] = state.account

    missing = [k for k in ("url", "account") if not data.get(k)]
    if missing:
        raise SetupError(
            f"missing {' and '.join(missing)} for profile {data.get('name', 'env')!r}. "
            "Set TRITON_URL/TRITON_ACCOUNT, pass --url/--account, or use --profile NAME"
        )

    try:
        profile = Profile(**data)
    except ValidationError as e:
        raise SetupError(f"invalid profile {data.get('name', 'env')!r}: {e}") from e

    logger.debug("using profile {} ({} as {})", profile.name, profile.url, profile.account)
    return profile
