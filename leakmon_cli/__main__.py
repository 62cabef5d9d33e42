#!/usr/bin/env python3
"""
Entry point for `python -m leakmon_cli` and the `leakmon` console script.
"""

import sys
from typing import NoReturn


def main() -> NoReturn:
    """
    Run the leakmon-cli command group.

    Raises:
        SystemExit: Always exits after CLI execution or error handling
    """
    from .cli import cli
    try:
        cli()
    except KeyboardInterrupt:
        print("\nOperation cancelled by user.", file=sys.stderr)
        sys.exit(130)  # Standard exit code for SIGINT
    sys.exit(0)


if __name__ == "__main__":
    main()
