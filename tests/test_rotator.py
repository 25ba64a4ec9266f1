"""
Test rotator

Drives the Rotator with a fake clock and a recording wallpaper setter. No test
touches the real desktop or sleeps.

*** Fixtures ***
- interval_dir, solar_dir (defined in conftest.py)
"""

from datetime import date, datetime, timedelta

import pytest

from conftest import FakeClock, FixedSolarClock, RecordingSetter
from wallpaper_scheduler.constants import Phase
from wallpaper_scheduler.rotator import Rotator
from wallpaper_scheduler.schedule import InvalidScheduleError, ScheduleConfig
from wallpaper_scheduler.solar import SolarClock
from wallpaper_scheduler.wallpaper_set import discover, discover_tagged

DAY = date(2026, 10, 18)


def at(hour, minute=0, day=DAY):
    return datetime(day.year, day.month, day.day, hour, minute)


def interval_rotator(directory, start, setter=None, schedule=None):
    wallpapers = discover(directory)
    return Rotator(wallpapers,
                   schedule=schedule or ScheduleConfig.generate(len(wallpapers)),
                   setter=setter or RecordingSetter(),
                   clock=FakeClock(start),
                   poll_seconds=3600)


def solar_rotator(directory, start, solar_clock=None, setter=None):
    return Rotator(discover_tagged(directory),
                   solar_clock=solar_clock or FixedSolarClock(),
                   setter=setter or RecordingSetter(),
                   clock=FakeClock(start),
                   poll_seconds=3600)


def test_cold_start_resynchronises_to_now(interval_dir):
    setter = RecordingSetter()
    rotator = interval_rotator(interval_dir, at(14), setter)

    state = rotator.start()

    assert state.index == 2
    assert state.next_transition == at(18)
    assert state.phase is None
    assert setter.names == ["paper-03.jpg"]


@pytest.mark.parametrize(
    "hour, minute, index",
    [(0, 0, 0), (5, 59, 0), (6, 0, 1), (23, 59, 3)],
)
def test_cold_start_slice_boundaries(interval_dir, hour, minute, index):
    assert interval_rotator(interval_dir, at(hour, minute)).start().index == index


def test_run_advances_and_wraps_at_midnight(interval_dir):
    setter = RecordingSetter()
    rotator = interval_rotator(interval_dir, at(14), setter)

    state = rotator.run(max_transitions=3)

    assert setter.names == ["paper-03.jpg", "paper-04.jpg", "paper-01.jpg", "paper-02.jpg"]
    assert rotator.clock.now() == at(6, day=DAY + timedelta(days=1))
    assert state.index == 1
    assert state.next_transition == at(12, day=DAY + timedelta(days=1))
    assert all(0 < seconds <= 3600 for seconds in rotator.clock.sleeps)


def test_uneven_schedule_transition_times(make_wallpapers):
    directory = make_wallpapers([f"paper-{i:02d}.jpg" for i in range(1, 12)])
    rotator = interval_rotator(directory, at(0))

    state = rotator.start()
    assert state.next_transition == at(2, 11)

    state = rotator.run(max_transitions=10)
    assert state.index == 10
    assert state.next_transition == at(0, day=DAY + timedelta(days=1))


def test_edited_schedule_durations_are_used(interval_dir):
    rotator = interval_rotator(interval_dir, at(9), schedule=ScheduleConfig.from_durations([480, 120, 600, 240]))

    state = rotator.start()

    assert state.index == 1
    assert state.next_transition == at(10)


def test_failed_wallpaper_change_does_not_stall_rotation(interval_dir, caplog):
    setter = RecordingSetter(fail_on={1})
    rotator = interval_rotator(interval_dir, at(14), setter)

    state = rotator.run(max_transitions=3)

    # The failed paper-04 is not retried, the next transitions happen on time
    assert setter.names == ["paper-03.jpg", "paper-04.jpg", "paper-01.jpg", "paper-02.jpg"]
    assert state.next_transition == at(12, day=DAY + timedelta(days=1))
    assert "Failed to set wallpaper paper-04.jpg" in caplog.text


def test_overrun_wait_skips_to_current_slice(interval_dir):
    setter = RecordingSetter()
    rotator = interval_rotator(interval_dir, at(14), setter)
    rotator.start()

    # Machine suspended until the next morning
    rotator.clock.current = at(7, 30, day=DAY + timedelta(days=1))
    state = rotator.step()

    assert state.index == 1
    assert state.next_transition == at(12, day=DAY + timedelta(days=1))
    assert setter.names == ["paper-03.jpg", "paper-02.jpg"]


def test_step_before_start_starts(interval_dir):
    rotator = interval_rotator(interval_dir, at(13))

    assert rotator.step().index == 2


def test_solar_cold_start_during_the_day(solar_dir):
    setter = RecordingSetter()
    rotator = solar_rotator(solar_dir, at(12), setter=setter)

    state = rotator.start()

    assert state.phase is Phase.DAY
    assert state.index == 1
    assert state.next_transition == at(14)
    assert setter.names == ["lake-DAY-02.jpg"]


def test_solar_cold_start_before_sunrise(solar_dir):
    rotator = solar_rotator(solar_dir, at(3))

    state = rotator.start()

    assert state.phase is Phase.NIGHT
    assert state.window.start == at(18, day=DAY - timedelta(days=1))
    assert state.index == 1
    assert state.next_transition == at(6)


def test_solar_sunset_switches_to_night_from_the_first_image(solar_dir):
    setter = RecordingSetter()
    rotator = solar_rotator(solar_dir, at(12), setter=setter)

    state = rotator.run(max_transitions=3)

    assert setter.names == ["lake-DAY-02.jpg", "lake-DAY-03.jpg", "lake-NIGHT-01.jpg", "lake-NIGHT-02.jpg"]
    assert state.phase is Phase.NIGHT
    assert state.next_transition == at(6, day=DAY + timedelta(days=1))


def test_solar_sunrise_restarts_day_images(solar_dir):
    setter = RecordingSetter()
    rotator = solar_rotator(solar_dir, at(5), setter=setter)

    state = rotator.run(max_transitions=1)

    assert state.phase is Phase.DAY
    assert state.index == 0
    assert state.next_transition == at(10)
    assert setter.names == ["lake-NIGHT-02.jpg", "lake-DAY-01.jpg"]


def test_polar_night_degrades_to_single_phase_day(solar_dir, caplog):
    polar_day = date(2026, 12, 21)
    solar_clock = FixedSolarClock(polar={polar_day: Phase.NIGHT})
    rotator = solar_rotator(solar_dir, at(12, day=polar_day), solar_clock=solar_clock)

    state = rotator.start()

    assert state.window.degraded
    assert state.phase is Phase.NIGHT
    assert state.window.start == at(0, day=polar_day)
    assert state.window.end == at(0, day=polar_day + timedelta(days=1))
    assert state.index == 1
    assert "No sunrise or sunset" in caplog.text

    # Normal night after midnight, then sunrise
    state = rotator.run(max_transitions=3)
    assert not state.window.degraded
    assert state.phase is Phase.DAY
    assert state.window.start == at(6, day=polar_day + timedelta(days=1))


def test_polar_night_at_the_pole_keeps_rotating(solar_dir):
    setter = RecordingSetter()
    rotator = solar_rotator(solar_dir, at(12, day=date(2026, 12, 21)),
                            solar_clock=SolarClock(90.0, 0.0), setter=setter)

    state = rotator.run(max_transitions=2)

    assert state.phase is Phase.NIGHT
    assert state.window.degraded
    assert setter.names == ["lake-NIGHT-02.jpg", "lake-NIGHT-01.jpg", "lake-NIGHT-02.jpg"]


def test_interval_timetable(interval_dir):
    rotator = interval_rotator(interval_dir, at(9))

    table = rotator.timetable()

    assert [(start.hour, image.name) for start, image, _ in table] == [
        (0, "paper-01.jpg"), (6, "paper-02.jpg"), (12, "paper-03.jpg"), (18, "paper-04.jpg")]


def test_solar_timetable(solar_dir):
    rotator = solar_rotator(solar_dir, at(9))

    table = rotator.timetable()

    assert [(start.hour, image.name, phase) for start, image, phase in table] == [
        (0, "lake-NIGHT-02.jpg", Phase.NIGHT),
        (6, "lake-DAY-01.jpg", Phase.DAY),
        (10, "lake-DAY-02.jpg", Phase.DAY),
        (14, "lake-DAY-03.jpg", Phase.DAY),
        (18, "lake-NIGHT-01.jpg", Phase.NIGHT),
    ]


def test_rotator_needs_exactly_one_policy(interval_dir):
    wallpapers = discover(interval_dir)

    with pytest.raises(ValueError):
        Rotator(wallpapers)
    with pytest.raises(ValueError):
        Rotator(wallpapers, schedule=ScheduleConfig.generate(4), solar_clock=FixedSolarClock())


def test_rotator_rejects_mismatched_schedule(interval_dir):
    with pytest.raises(InvalidScheduleError):
        Rotator(discover(interval_dir), schedule=ScheduleConfig.generate(3))


def test_solar_rotation_needs_tagged_wallpapers(interval_dir):
    with pytest.raises(ValueError):
        Rotator(discover(interval_dir), solar_clock=FixedSolarClock())
