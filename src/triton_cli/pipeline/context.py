from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

from ..config import CliState
from ..models import ExportPath, Image

if TYPE_CHECKING:
    from ..tritonapi import TritonApi


@dataclass
class ExportContext:
    """Shared state for one `triton image export` run.

    Seeded with the invocation state; every other field is filled in by
    exactly one task and is None until that task has completed:

    - api: set by setup_triton_api
    - image: set by get_image
    - path: set by export_image (stays None on a dry run)
    """

    cli: CliState
    api: Optional["TritonApi"] = None
    image: Optional[Image] = None
    path: Optional[ExportPath] = None
