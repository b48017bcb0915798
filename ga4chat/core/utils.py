"""
Small shared utilities: wall-clock timing and lenient number parsing.
"""
from __future__ import annotations

import math
import time
from contextlib import contextmanager
from typing import Generator


@contextmanager
def timer() -> Generator[dict, None, None]:
    """Context manager that records elapsed wall-clock milliseconds."""
    result: dict = {}
    start = time.perf_counter()
    try:
        yield result
    finally:
        result["elapsed_ms"] = int((time.perf_counter() - start) * 1000)


def parse_number(value: str) -> int | float | str:
    """Parse a GA4 string value as int, then float; otherwise return it unchanged.

    Non-finite floats ("NaN", "inf") are kept as strings so results stay
    JSON-serialisable.
    """
    text = value.strip()
    try:
        return int(text)
    except ValueError:
        pass
    try:
        number = float(text)
    except ValueError:
        return value
    if not math.isfinite(number):
        return value
    return number
