#!/usr/bin/env python3
"""The rotation loop.

The day is cut into windows. In interval mode a window runs from local
midnight to the next midnight and is sliced by the ScheduleConfig. In solar
mode a window is one DAY (sunrise to sunset) or NIGHT (sunset to the next
sunrise) phase, sliced evenly between that phase's wallpapers. On a polar day
the window is the whole calendar day in the phase the sun stays in.

The Rotator starts at the slice covering the current time, then wakes at the
end of every slice to show the next wallpaper. When a window ends the next one
starts again from its first wallpaper.
"""
from dataclasses import dataclass
from datetime import date, datetime, time as dt_time, timedelta
import functools
import time
from typing import List, Optional, Tuple

from .config import Config
from .constants import DEFAULT_POLL_SECONDS, Phase, RotationMode, ScalingMode
from .core import SetError, set_wallpaper
from .logger import setup_logger
from .schedule import ConfigError, InvalidScheduleError, ScheduleConfig, even_split
from .schedule_cache import ScheduleStore, resolve_schedule
from .solar import NoTransitionError, SolarClock
from .utils import format_duration
from .wallpaper_set import Image, WallpaperSet, discover, discover_tagged

logger = setup_logger('wallpaper_scheduler.rotator')


class Clock:
    """Wall clock of the running process. Tests substitute a fake one."""

    def now(self) -> datetime:
        return datetime.now()

    def sleep(self, seconds: float) -> None:
        time.sleep(seconds)


@dataclass(frozen=True)
class PhaseWindow:
    """A stretch of time shared evenly (or per schedule) between a run of wallpapers."""
    images: Tuple[Image, ...]
    start: datetime
    end: datetime
    slice_seconds: Tuple[int, ...]
    phase: Optional[Phase] = None
    degraded: bool = False

    def slice_start(self, index: int) -> datetime:
        if index == 0:
            return self.start
        return self.slice_end(index - 1)

    def slice_end(self, index: int) -> datetime:
        """End of a slice. The last slice always ends with the window."""
        if index >= len(self.images) - 1:
            return self.end
        return min(self.start + timedelta(seconds=sum(self.slice_seconds[:index + 1])), self.end)

    def index_at(self, moment: datetime) -> int:
        """Index of the slice covering moment."""
        elapsed = (moment - self.start).total_seconds()
        total = 0
        for index, seconds in enumerate(self.slice_seconds[:len(self.images) - 1]):
            total += seconds
            if elapsed < total:
                return index
        return len(self.images) - 1


@dataclass
class RotationState:
    """Position of the loop: which slice of which window, and when it ends."""
    window: PhaseWindow
    index: int
    next_transition: datetime

    @property
    def phase(self) -> Optional[Phase]:
        return self.window.phase

    @property
    def image(self) -> Image:
        return self.window.images[self.index]


def _midnight(day: date, tzinfo=None) -> datetime:
    return datetime.combine(day, dt_time.min).replace(tzinfo=tzinfo)


class Rotator:
    """Shows each wallpaper of a WallpaperSet for its slice of the day.

    Args:
        wallpapers: The discovered wallpapers (DAY/NIGHT tagged for solar rotation)
        schedule: Slice durations for interval rotation
        solar_clock: Sunrise/sunset source for solar rotation
        setter: Called with the image path to change the wallpaper, may raise SetError
        clock: Source of the current time and of sleeping
        poll_seconds: Longest single sleep while waiting for a transition
    """

    def __init__(self, wallpapers: WallpaperSet, schedule: Optional[ScheduleConfig] = None,
                 solar_clock: Optional[SolarClock] = None, setter=set_wallpaper, clock=None,
                 poll_seconds=DEFAULT_POLL_SECONDS):
        if (schedule is None) == (solar_clock is None):
            raise ValueError("Rotator needs either a schedule or a solar clock")
        if schedule is not None and len(schedule) != len(wallpapers):
            raise InvalidScheduleError(f"Schedule has {len(schedule)} slices for {len(wallpapers)} wallpapers")
        if solar_clock is not None and not wallpapers.tagged:
            raise ValueError("Solar rotation needs DAY/NIGHT tagged wallpapers")

        self.wallpapers = wallpapers
        self.schedule = schedule
        self.solar_clock = solar_clock
        self.setter = setter
        self.clock = clock or Clock()
        self.poll_seconds = max(1, poll_seconds)
        self.state: Optional[RotationState] = None

    @property
    def mode(self) -> RotationMode:
        return RotationMode.SOLAR if self.solar_clock is not None else RotationMode.INTERVAL

    def window_at(self, moment: datetime) -> PhaseWindow:
        """The window covering moment."""
        if self.solar_clock is None:
            return self._interval_window(moment)
        return self._solar_window(moment)

    def _interval_window(self, moment):
        start = _midnight(moment.date(), moment.tzinfo)
        return PhaseWindow(
            images=self.wallpapers.images,
            start=start,
            end=start + timedelta(days=1),
            slice_seconds=tuple(minutes * 60 for minutes in self.schedule.slice_minutes)
        )

    def _solar_events(self, day, tzinfo):
        """Phase changes around a day as (moment, phase starting, degraded) tuples, in time order."""
        events = []
        for offset in (-1, 0, 1):
            current = day + timedelta(days=offset)
            try:
                times = self.solar_clock.times_for(current)
            except NoTransitionError as e:
                midnight = _midnight(current, tzinfo)
                events.append((midnight, e.phase, True))
                # Night until the next sunrise, unless the next day is polar too
                events.append((midnight + timedelta(days=1), Phase.NIGHT, False))
            else:
                events.append((times.sunrise, Phase.DAY, False))
                events.append((times.sunset, Phase.NIGHT, False))
        # Stable sort: on equal moments the later day's event wins
        events.sort(key=lambda event: event[0])
        return events

    def _solar_window(self, moment):
        events = self._solar_events(moment.date(), moment.tzinfo)
        past = [event for event in events if event[0] <= moment]
        upcoming = [event for event in events if event[0] > moment]

        start, phase, degraded = past[-1] if past else (_midnight(moment.date(), moment.tzinfo), Phase.NIGHT, False)
        end = upcoming[0][0] if upcoming else _midnight(moment.date() + timedelta(days=1), moment.tzinfo)

        images = self.wallpapers.phase_images(phase)
        return PhaseWindow(
            images=images,
            start=start,
            end=end,
            slice_seconds=tuple(even_split(int((end - start).total_seconds()), len(images))),
            phase=phase,
            degraded=degraded
        )

    def _enter_window(self, window):
        if window.phase is None:
            logger.info(f"Rotating {len(window.images)} wallpapers for {window.start:%Y-%m-%d}")
            return
        if window.degraded:
            logger.warning(f"No sunrise or sunset on {window.start:%Y-%m-%d}, "
                           f"showing {window.phase.value} wallpapers until {window.end:%Y-%m-%d %H:%M}")
        else:
            logger.info(f"{window.phase.value} phase from {window.start:%H:%M} to {window.end:%H:%M} "
                        f"({format_duration((window.end - window.start).total_seconds())}), "
                        f"{len(window.images)} wallpapers")

    def start(self) -> RotationState:
        """Resynchronise to the current time and show the wallpaper of the current slice."""
        now = self.clock.now()
        window = self.window_at(now)
        self._enter_window(window)
        index = window.index_at(now)
        self.state = RotationState(window=window, index=index, next_transition=window.slice_end(index))
        self._apply()
        return self.state

    def step(self) -> RotationState:
        """Move to the next slice and show its wallpaper."""
        if self.state is None:
            return self.start()

        now = self.clock.now()
        state = self.state
        if now >= state.window.end:
            state.window = self.window_at(now)
            state.index = 0
            self._enter_window(state.window)
        else:
            state.index = (state.index + 1) % len(state.window.images)

        if state.window.slice_end(state.index) <= now:
            # The wait overran (e.g. the machine was suspended), skip to the current slice
            state.index = state.window.index_at(now)
        state.next_transition = state.window.slice_end(state.index)
        self._apply()
        return state

    def _apply(self):
        image = self.state.image
        try:
            self.setter(image.path)
        except SetError as e:
            logger.error(f"Failed to set wallpaper {image.name}: {str(e)}")
        logger.info(f"Next wallpaper change at {self.state.next_transition:%Y-%m-%d %H:%M:%S}")

    def _wait_until(self, target: datetime) -> None:
        while True:
            remaining = (target - self.clock.now()).total_seconds()
            if remaining <= 0:
                return
            self.clock.sleep(min(remaining, self.poll_seconds))

    def run(self, max_transitions: Optional[int] = None) -> RotationState:
        """Rotate wallpapers until interrupted, or for max_transitions transitions."""
        self.start()
        transitions = 0
        while max_transitions is None or transitions < max_transitions:
            self._wait_until(self.state.next_transition)
            self.step()
            transitions += 1
        return self.state

    def timetable(self, day: Optional[date] = None) -> List[Tuple[datetime, Image, Optional[Phase]]]:
        """List (start time, wallpaper, phase) for every slice of a calendar day."""
        now = self.clock.now()
        day = day or now.date()
        day_start = _midnight(day, now.tzinfo)
        day_end = day_start + timedelta(days=1)

        entries = []
        moment = day_start
        while moment < day_end:
            window = self.window_at(moment)
            for index, image in enumerate(window.images):
                slice_start = max(window.slice_start(index), moment)
                if slice_start >= day_end:
                    break
                if window.slice_end(index) <= slice_start:
                    continue
                entries.append((slice_start, image, window.phase))
            moment = window.end
        return entries


def build_rotator(config: Config, setter=None, clock=None) -> Rotator:
    """Create a Rotator from the saved configuration.

    Raises:
        ConfigError: If no directory is configured or a setting is invalid.
        DiscoveryError: If the wallpaper directory is unusable.
        SolarError: If the coordinates are invalid.
    """
    directory = config.get('directory')
    if not directory:
        raise ConfigError("No wallpaper directory configured, run with --dir, --solar or --preset first")

    try:
        mode = config.mode
        scaling_mode = ScalingMode.from_string(config.get('scaling_mode') or 'auto')
    except ValueError as e:
        raise ConfigError(f"Invalid setting in {config.config_file}: {e}") from e

    if setter is None:
        setter = functools.partial(set_wallpaper, scaling_mode=scaling_mode)
    poll_value = config.get('poll_seconds') or DEFAULT_POLL_SECONDS
    try:
        poll_seconds = float(poll_value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid poll_seconds {poll_value!r} in {config.config_file}") from e

    if mode is RotationMode.SOLAR:
        latitude, longitude = config.get('latitude'), config.get('longitude')
        if latitude is None or longitude is None:
            raise ConfigError(f"Solar rotation needs a latitude and longitude in {config.config_file}")
        try:
            latitude, longitude = float(latitude), float(longitude)
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid latitude {latitude!r} or longitude {longitude!r} "
                              f"in {config.config_file}") from e
        solar_clock = SolarClock(latitude, longitude)
        wallpapers = discover_tagged(directory)
        return Rotator(wallpapers, solar_clock=solar_clock, setter=setter, clock=clock,
                       poll_seconds=poll_seconds)

    wallpapers = discover(directory)
    schedule = resolve_schedule(wallpapers, ScheduleStore(config.schedule_file))
    return Rotator(wallpapers, schedule=schedule, setter=setter, clock=clock, poll_seconds=poll_seconds)


def run_from_config(config: Config, once: bool = False, setter=None, clock=None) -> RotationState:
    """Build a Rotator from the configuration and run it.

    Args:
        config: The saved configuration
        once: Only show the wallpaper for the current time and return
    """
    rotator = build_rotator(config, setter=setter, clock=clock)
    logger.info(f"Starting {rotator.mode.value} rotation of {rotator.wallpapers.directory}")
    if once:
        return rotator.start()
    return rotator.run()
