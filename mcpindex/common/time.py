"""Clock helpers for sync timestamps and run durations."""

from __future__ import annotations

import datetime as dt
import time


def utcnow() -> dt.datetime:
    """Return an aware UTC timestamp suitable for ``synced_at`` columns."""
    return dt.datetime.now(dt.UTC)


def elapsed_ms(started: float) -> float:
    """Return milliseconds elapsed since a ``time.perf_counter()`` reading."""
    return (time.perf_counter() - started) * 1000.0
