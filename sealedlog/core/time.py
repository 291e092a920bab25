"""
sealedlog/core/time.py

Ledger timestamps: signed 128-bit integers, nanoseconds since the Unix
epoch when stamped by the wall clock.

Every module that needs "now" imports now_ns() from here.
"""

import re
import time

TIMESTAMP_MIN = -(2 ** 127)
TIMESTAMP_MAX = 2 ** 127 - 1

_DECIMAL = re.compile(r"-?[0-9]+")


def now_ns() -> int:
    """Current wall-clock time in nanoseconds since the epoch."""
    return time.time_ns()


def check_timestamp(value: int) -> int:
    """
    Return value unchanged if it is a valid ledger timestamp.
    Raises ValueError if it is not an int or does not fit in 128 signed bits.
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(
            f"timestamp must be int, got {type(value).__name__}"
        )
    if not TIMESTAMP_MIN <= value <= TIMESTAMP_MAX:
        raise ValueError(
            f"timestamp {value} does not fit in a signed 128-bit integer"
        )
    return value


def parse_timestamp(raw: str) -> int:
    """
    Parse the decimal string form of a timestamp.

    Only an optional "-" followed by ASCII digits is accepted, so every
    timestamp has exactly one text form. Raises ValueError otherwise.
    """
    if not isinstance(raw, str) or _DECIMAL.fullmatch(raw) is None:
        raise ValueError(f"timestamp must be a decimal string, got {raw!r}")
    return check_timestamp(int(raw))
