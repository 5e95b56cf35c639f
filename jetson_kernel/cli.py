from __future__ import annotations

import argparse
import sys
from typing import NoReturn

from .errors import UsageError


class ArgParser(argparse.ArgumentParser):
    """argparse that reports bad arguments as UsageError (exit 1, not 2).

    Prefix matching is off: ``--force-r`` is an unknown flag, not
    ``--force-replace``.
    """

    def __init__(self, *args, **kwargs) -> None:
        kwargs.setdefault("allow_abbrev", False)
        super().__init__(*args, **kwargs)

    def error(self, message: str) -> NoReturn:
        raise UsageError(message)


def report_usage_error(parser: argparse.ArgumentParser, err: Exception) -> int:
    # Logging is not configured yet: usage errors have no side effects.
    print(f"[ERROR] {err}", file=sys.stderr)
    parser.print_usage(sys.stderr)
    return 1
