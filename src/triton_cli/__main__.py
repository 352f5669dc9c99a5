"""Package entry point.

Preferred invocation is via the installed console script:

    triton image export ...

For convenience we also support:

    python -m triton_cli ...
"""

from __future__ import annotations

from .cli import app


def main() -> None:
    """Entry point used by `python -m triton_cli`."""

    app()


if __name__ == "__main__":
    main()
