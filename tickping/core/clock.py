"""
Time source for TickPing.

Every timestamp recorded for a probe comes from a single clock object so
that the correlation logic can be driven by a scripted clock in tests.
Durations are taken from the monotonic clock; the wall-clock part of an
``Instant`` is only used for display.
"""

import time
from dataclasses import dataclass
from datetime import datetime, timedelta


@dataclass(frozen=True)
class Instant:
    """A moment as seen by the wall clock and the monotonic clock."""
    wall: datetime
    mono_ns: int

    def __sub__(self, other: 'Instant') -> timedelta:
        return timedelta(microseconds=(self.mono_ns - other.mono_ns) // 1000)

    def __lt__(self, other: 'Instant') -> bool:
        return self.mono_ns < other.mono_ns

    def __le__(self, other: 'Instant') -> bool:
        return self.mono_ns <= other.mono_ns


class SystemClock:
    """Local wall time paired with ``time.monotonic_ns()``."""

    def now(self) -> Instant:
        return Instant(wall=datetime.now(), mono_ns=time.monotonic_ns())


def format_timestamp(value: datetime) -> str:
    """Format a timestamp as ``HH:MM:SS.mmm``."""
    return value.strftime("%H:%M:%S.") + f"{value.microsecond // 1000:03d}"


def to_microseconds(delta: timedelta) -> int:
    return (delta.days * 86400 + delta.seconds) * 1_000_000 + delta.microseconds


def to_milliseconds(delta: timedelta) -> int:
    """Whole milliseconds in a duration, truncated toward zero."""
    micros = to_microseconds(delta)
    return int(micros / 1000) if micros < 0 else micros // 1000
