import json
import os
import time

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from .constants import MINUTES_PER_DAY
from .logger import setup_logger
from .schedule import ConfigError, ScheduleConfig
from .wallpaper_set import WallpaperSet

logger = setup_logger('wallpaper_scheduler.cache')


@dataclass
class StoredSchedule:
    """The schedule last generated for a wallpaper directory."""
    directory: str
    image_count: int
    fingerprint: str
    slice_durations: List[int]
    generated_at: float = field(default_factory=time.time)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'StoredSchedule':
        """Create a StoredSchedule from a dictionary.

        Raises:
            KeyError, TypeError, ValueError: If the data is malformed.
        """
        durations = data['slice_durations']
        if not isinstance(durations, list):
            raise TypeError("slice_durations must be a list")
        return cls(
            directory=str(data['directory']),
            image_count=int(data['image_count']),
            fingerprint=str(data.get('fingerprint', '')),
            slice_durations=durations,
            generated_at=float(data.get('generated_at', 0.0))
        )

    @classmethod
    def for_wallpapers(cls, wallpapers: WallpaperSet, schedule: ScheduleConfig) -> 'StoredSchedule':
        return cls(
            directory=str(wallpapers.directory),
            image_count=len(wallpapers),
            fingerprint=wallpapers.fingerprint,
            slice_durations=list(schedule.slice_minutes)
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'directory': self.directory,
            'image_count': self.image_count,
            'fingerprint': self.fingerprint,
            'slice_durations': self.slice_durations,
            'generated_at': self.generated_at
        }

    def matches(self, wallpapers: WallpaperSet) -> bool:
        """Check whether this schedule was generated for the given discovery."""
        return (self.directory == str(wallpapers.directory)
                and self.image_count == len(wallpapers)
                and self.fingerprint == wallpapers.fingerprint)


class ScheduleStore:
    """JSON file holding the interval schedule between runs."""

    def __init__(self, store_file):
        """Initialize the store.

        Args:
            store_file: Path to the schedule file
        """
        self.store_file = Path(store_file)

    def load(self) -> Optional[StoredSchedule]:
        """Load the stored schedule, or None if there is no usable file."""
        if not self.store_file.exists():
            return None
        try:
            with open(self.store_file, 'r') as f:
                return StoredSchedule.from_dict(json.load(f))
        except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
            logger.warning(f"Invalid schedule file {self.store_file}: {str(e)}. Recreating schedule.")
            try:
                os.remove(self.store_file)
            except OSError:
                pass  # regenerated and overwritten below anyway
            return None
        except OSError as e:
            logger.warning(f"Could not read schedule file {self.store_file}: {str(e)}")
            return None

    def save(self, stored: StoredSchedule) -> None:
        """Save the schedule to file."""
        try:
            self.store_file.parent.mkdir(parents=True, exist_ok=True)
            with open(self.store_file, 'w') as f:
                json.dump(stored.to_dict(), f, indent=2)
        except OSError as e:
            logger.error(f"Failed to save schedule file: {str(e)}")


def resolve_schedule(wallpapers: WallpaperSet, store: ScheduleStore) -> ScheduleConfig:
    """Get the interval schedule for a discovery, regenerating it only when needed.

    The stored durations are reused when they were generated for the same
    directory and the same files, which keeps hand-edited durations. Otherwise
    a fresh even schedule is generated and saved.
    """
    stored = store.load()
    if stored is not None and stored.matches(wallpapers):
        try:
            schedule = ScheduleConfig.from_durations(stored.slice_durations)
        except ConfigError as e:
            logger.warning(f"Ignoring stored schedule: {str(e)}")
        else:
            if len(schedule) == len(wallpapers):
                logger.info(f"Using stored schedule from {store.store_file}")
                return schedule
            logger.warning(f"Stored schedule has {len(schedule)} slices for {len(wallpapers)} wallpapers")
    elif stored is not None:
        logger.info("Wallpaper directory changed since the schedule was generated")

    schedule = ScheduleConfig.generate(len(wallpapers))
    if len(wallpapers) > MINUTES_PER_DAY:
        logger.warning(f"{len(wallpapers)} wallpapers but only {MINUTES_PER_DAY} minutes in a day, "
                       f"wallpapers after the first {MINUTES_PER_DAY} are never shown")
    store.save(StoredSchedule.for_wallpapers(wallpapers, schedule))
    logger.info(f"Generated schedule for {len(wallpapers)} wallpapers: {', '.join(schedule.start_times())}")
    return schedule
