#!/usr/bin/env python3
from dataclasses import dataclass
from typing import List, Sequence, Tuple

from .constants import MINUTES_PER_DAY


class ConfigError(Exception):
    """Raised when a rotation schedule cannot be built."""


class ZeroImagesError(ConfigError):
    """A schedule was requested for zero images."""


class InvalidScheduleError(ConfigError):
    """Stored slice durations do not cover a day."""


def even_split(total: int, count: int) -> List[int]:
    """Split total units into count integer parts.

    Every part gets floor(total / count) units and the first (total mod count)
    parts get one extra unit, so the parts always add up to total.

    Raises:
        ZeroImagesError: If count is 0.
    """
    if count <= 0:
        raise ZeroImagesError("Cannot split the day between zero wallpapers")
    base, remainder = divmod(int(total), count)
    return [base + 1 if i < remainder else base for i in range(count)]


@dataclass(frozen=True)
class ScheduleConfig:
    """Per-wallpaper display durations, in minutes, starting at local midnight."""
    slice_minutes: Tuple[int, ...]

    @classmethod
    def generate(cls, count: int) -> 'ScheduleConfig':
        """Divide 24 hours evenly between count wallpapers."""
        return cls(tuple(even_split(MINUTES_PER_DAY, count)))

    @classmethod
    def from_durations(cls, durations: Sequence[int]) -> 'ScheduleConfig':
        """Build a schedule from stored (possibly hand-edited) durations.

        Zero-minute slices are only accepted when there are more slices than
        minutes in a day, as generate() produces for such directories.

        Raises:
            InvalidScheduleError: If the durations are empty, not positive
                integers, or do not add up to 24 hours.
        """
        if not durations:
            raise InvalidScheduleError("Schedule has no slices")
        shortest = 0 if len(durations) > MINUTES_PER_DAY else 1
        if any(isinstance(d, bool) or not isinstance(d, int) or d < shortest for d in durations):
            raise InvalidScheduleError(f"Slice durations must be positive whole minutes: {list(durations)}")
        total = sum(durations)
        if total != MINUTES_PER_DAY:
            raise InvalidScheduleError(f"Slice durations add up to {total} minutes instead of {MINUTES_PER_DAY}")
        return cls(tuple(durations))

    def __len__(self):
        return len(self.slice_minutes)

    @property
    def total_minutes(self) -> int:
        return sum(self.slice_minutes)

    def start_minutes(self) -> List[int]:
        """Minute of the day at which each slice begins."""
        starts = []
        elapsed = 0
        for minutes in self.slice_minutes:
            starts.append(elapsed)
            elapsed += minutes
        return starts

    def start_times(self) -> List[str]:
        """Start of each slice as 'HH:MM'."""
        return [f"{start // 60:02d}:{start % 60:02d}" for start in self.start_minutes()]

    def index_at(self, minute_of_day: float) -> int:
        """Index of the slice covering the given minute of the day."""
        elapsed = 0
        for index, minutes in enumerate(self.slice_minutes):
            elapsed += minutes
            if minute_of_day < elapsed:
                return index
        return len(self.slice_minutes) - 1
