"""Time-derived identifiers for jobs, runs, and storage keys."""

from __future__ import annotations

import time
from uuid import uuid4


def timestamp_ms() -> int:
    """Return the current wall-clock time in milliseconds."""

    return time.time_ns() // 1_000_000


def unique_suffix() -> str:
    """Return ``<ms timestamp>-<8 hex chars>``.

    The timestamp keeps keys roughly sortable by creation time; the random tail
    prevents collisions between runs started within the same millisecond.
    """

    return f"{timestamp_ms()}-{uuid4().hex[:8]}"


def new_run_id() -> str:
    return f"run-{unique_suffix()}"


__all__ = ["timestamp_ms", "unique_suffix", "new_run_id"]
