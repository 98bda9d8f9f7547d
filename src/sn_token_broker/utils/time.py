"""Time helpers."""

from __future__ import annotations

import time


def now_millis() -> int:
    """Current wall-clock time as epoch milliseconds."""
    return time.time_ns() // 1_000_000
