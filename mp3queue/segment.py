import math
from dataclasses import dataclass, replace

from mp3queue.errors import InputError

# Used until the preview reports the real duration
DEFAULT_DURATION = 300


def format_time(seconds: float) -> str:
    """Format seconds as M:SS"""
    total = max(0, int(math.floor(seconds)))
    return f"{total // 60}:{total % 60:02d}"


@dataclass(frozen=True)
class SegmentSelection:
    """Start/end picked against the duration reported by the preview"""

    start: int = 0
    end: int = DEFAULT_DURATION
    duration: int = DEFAULT_DURATION

    def with_duration(self, duration: float) -> "SegmentSelection":
        total = int(math.floor(duration))
        if total <= 0:
            raise InputError(f"Invalid video duration: {duration}")
        start = self.start if self.start < total else 0
        return SegmentSelection(start=start, end=total, duration=total)

    def move_start(self, value: float) -> "SegmentSelection":
        new_start = self._clamp(value)
        if new_start < self.end:
            return replace(self, start=new_start)
        return self

    def move_end(self, value: float) -> "SegmentSelection":
        new_end = self._clamp(value)
        if new_end > self.start:
            return replace(self, end=new_end)
        return self

    @property
    def length(self) -> int:
        return self.end - self.start

    def describe(self) -> str:
        return f"{format_time(self.start)} to {format_time(self.end)} ({format_time(self.length)} total)"

    def _clamp(self, value: float) -> int:
        return min(max(int(value), 0), self.duration)
