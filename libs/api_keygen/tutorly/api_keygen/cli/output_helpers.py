import json
import sys
from collections.abc import Mapping
from typing import Any


def write_human_line(message: str, *args: Any) -> None:
    """Write a human-readable output line to stdout.

    Use this for command results in HUMAN format. Diagnostics go through
    logger.* instead, which writes to stderr.
    """
    formatted = message.format(*args) if args else message
    sys.stdout.write(formatted + "\n")
    sys.stdout.flush()


def emit_final_json(data: Mapping[str, Any]) -> None:
    """Write the command result as a single JSON line to stdout."""
    sys.stdout.write(json.dumps(data) + "\n")
    sys.stdout.flush()
