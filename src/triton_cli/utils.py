from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any, Optional

_UUID_RE = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.IGNORECASE)

_ID_PREFIX_RE = re.compile(r"^[0-9a-f-]+$", re.IGNORECASE)

_TRUTHY = {"1", "true", "yes", "on"}


def is_uuid(s: str) -> bool:
    return bool(_UUID_RE.match(s))


def is_id_prefix(s: str) -> bool:
    return bool(_ID_PREFIX_RE.match(s))


def parse_bool(value: Optional[str]) -> bool:
    if value is None:
        return False
    return value.strip().lower() in _TRUTHY


def read_json(path: Path) -> Any:
    return json.loads(path.read_text(encoding="utf-8"))
