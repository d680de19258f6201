"""
Clock and time unit helpers.

All window arithmetic happens in integer microseconds. Conversions towards
coarser units always round up so a reported wait is never shorter than the
real one.
"""

import math
import time


def get_current_microseconds() -> int:
    # Wall clock, so timestamps from separate processes share an epoch.
    return time.time_ns() // 1000


def milliseconds_to_microseconds(milliseconds: float) -> int:
    return int(round(milliseconds * 1000))


def microseconds_to_milliseconds(microseconds: float) -> int:
    return math.ceil(microseconds / 1000)


def microseconds_to_seconds(microseconds: float) -> int:
    return math.ceil(microseconds / 1000 / 1000)
