"""
Test schedule

Even splitting of the day and validation of stored durations.
"""

import pytest

from wallpaper_scheduler.schedule import (
    InvalidScheduleError,
    ScheduleConfig,
    ZeroImagesError,
    even_split,
)


@pytest.mark.parametrize("count", [1, 2, 5, 7, 11, 13, 97, 1440, 2000])
def test_generate_covers_the_whole_day(count):
    schedule = ScheduleConfig.generate(count)

    assert len(schedule) == count
    assert schedule.total_minutes == 1440
    assert max(schedule.slice_minutes) - min(schedule.slice_minutes) <= 1


def test_generate_five_images():
    assert ScheduleConfig.generate(5).slice_minutes == (288, 288, 288, 288, 288)


def test_generate_eleven_images_gives_remainder_to_first_slices():
    slices = ScheduleConfig.generate(11).slice_minutes

    assert slices == (131,) * 10 + (130,)


def test_generate_zero_images():
    with pytest.raises(ZeroImagesError):
        ScheduleConfig.generate(0)


def test_even_split_in_seconds():
    assert even_split(43200, 3) == [14400, 14400, 14400]
    assert even_split(10, 4) == [3, 3, 2, 2]


def test_start_times():
    assert ScheduleConfig.generate(4).start_times() == ["00:00", "06:00", "12:00", "18:00"]
    assert ScheduleConfig.generate(11).start_times()[:3] == ["00:00", "02:11", "04:22"]


@pytest.mark.parametrize("minute, index", [(0, 0), (359, 0), (360, 1), (14 * 60, 2), (1439, 3)])
def test_index_at(minute, index):
    assert ScheduleConfig.generate(4).index_at(minute) == index


def test_from_durations_keeps_edited_slices():
    schedule = ScheduleConfig.from_durations([600, 240, 600])

    assert schedule.slice_minutes == (600, 240, 600)
    assert schedule.start_times() == ["00:00", "10:00", "14:00"]


@pytest.mark.parametrize(
    "durations",
    [
        [],
        [720, 719],
        [1440, 0],
        [720.0, 720.0],
        [-60, 1500],
    ],
)
def test_from_durations_rejects_invalid(durations):
    with pytest.raises(InvalidScheduleError):
        ScheduleConfig.from_durations(durations)


def test_from_durations_accepts_generated_zero_slices():
    generated = ScheduleConfig.generate(2000)

    assert ScheduleConfig.from_durations(list(generated.slice_minutes)) == generated
