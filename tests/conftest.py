"""
conftest.py

Shared fixtures for the wallpaper_scheduler tests.

- FakeClock: a wall clock that only moves when the code under test sleeps
- make_wallpapers: writes empty image files with the given names into a temporary folder
- FixedSolarClock: a solar clock with the same sunrise/sunset every day
"""

from datetime import date, datetime, time, timedelta

import pytest

from wallpaper_scheduler.core import SetError
from wallpaper_scheduler.solar import NoTransitionError, SolarTimes


class FakeClock:
    """Clock whose time advances only through sleep()."""

    def __init__(self, start: datetime):
        self.current = start
        self.sleeps = []

    def now(self) -> datetime:
        return self.current

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.current += timedelta(seconds=seconds)


class FixedSolarClock:
    """Sunrise and sunset at the same wall-clock times every day, except for polar days."""

    def __init__(self, sunrise=time(6, 0), sunset=time(18, 0), polar=None):
        self.sunrise = sunrise
        self.sunset = sunset
        self.polar = polar or {}
        self.calls = []

    def times_for(self, day: date) -> SolarTimes:
        self.calls.append(day)
        if day in self.polar:
            raise NoTransitionError(f"polar {day}", self.polar[day])
        return SolarTimes(day=day,
                          sunrise=datetime.combine(day, self.sunrise),
                          sunset=datetime.combine(day, self.sunset))


class RecordingSetter:
    """Wallpaper setter that records every path and can fail on chosen calls."""

    def __init__(self, fail_on=()):
        self.paths = []
        self.fail_on = set(fail_on)

    def __call__(self, path):
        self.paths.append(path)
        if len(self.paths) - 1 in self.fail_on:
            raise SetError(f"cannot set {path}")

    @property
    def names(self):
        return [path.name for path in self.paths]


@pytest.fixture
def make_wallpapers(tmp_path):
    """Return a function creating the named (empty) image files in a fresh folder."""

    def _make(names, folder='walls'):
        directory = tmp_path / folder
        directory.mkdir(exist_ok=True)
        for name in names:
            (directory / name).write_bytes(b'')
        return directory

    return _make


@pytest.fixture
def interval_dir(make_wallpapers):
    """Folder with paper-01.jpg .. paper-04.jpg."""
    return make_wallpapers([f"paper-{i:02d}.jpg" for i in range(1, 5)])


@pytest.fixture
def solar_dir(make_wallpapers):
    """Folder with three DAY and two NIGHT wallpapers."""
    return make_wallpapers(['lake-DAY-01.jpg', 'lake-DAY-02.jpg', 'lake-DAY-03.jpg',
                            'lake-NIGHT-01.jpg', 'lake-NIGHT-02.jpg'])
