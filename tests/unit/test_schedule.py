import pytest
from pydantic import ValidationError
from incubator_api.models import TurningSchedule
from incubator_api.schedule import calculate_schedule, format_duration


def test_three_turns_every_eight_hours():
    assert calculate_schedule(3, 8) == ["08:00", "16:00", "00:00"]


def test_single_turn():
    assert calculate_schedule(1, 24) == ["08:00"]


def test_wraps_past_midnight():
    assert calculate_schedule(4, 6) == ["08:00", "14:00", "20:00", "02:00"]


def test_length_matches_turns_per_day():
    for turns in range(1, 25):
        assert len(calculate_schedule(turns, 1)) == turns


def test_duplicates_allowed_when_wrapping_full_days():
    assert calculate_schedule(3, 24) == ["08:00", "08:00", "08:00"]


def test_fractional_interval():
    assert calculate_schedule(3, 1.5) == ["08:00", "09:30", "11:00"]
    # 1.01h = 60.6 minutes, truncated to whole minutes
    assert calculate_schedule(2, 1.01) == ["08:00", "09:00"]


@pytest.mark.parametrize("turns, interval, index, expected", [
    (21, 1.13, 20, "06:36"),  # 480 + 20 * 67.8 = 1836 minutes
    (16, 1.14, 15, "01:06"),  # 480 + 15 * 68.4 = 1506 minutes
    (11, 2.3, 10, "07:00"),   # 480 + 10 * 138 = 1860 minutes
])
def test_whole_minutes_are_not_truncated_early(turns, interval, index, expected):
    assert calculate_schedule(turns, interval)[index] == expected


@pytest.mark.parametrize("turns, interval", [(0, 8), (25, 8), (3, 0.5), (3, 25)])
def test_out_of_range_parameters_rejected(turns, interval):
    with pytest.raises(ValueError):
        calculate_schedule(turns, interval)


def test_turning_schedule_derives_times():
    schedule = TurningSchedule(turns_per_day=4, interval_hours=6)
    assert schedule.times == ["08:00", "14:00", "20:00", "02:00"]


def test_turning_schedule_ignores_client_times():
    schedule = TurningSchedule(turns_per_day=1, interval_hours=24, times=["03:00", "04:00"])
    assert schedule.times == ["08:00"]


def test_turning_schedule_default():
    assert TurningSchedule().times == ["08:00", "16:00", "00:00"]


def test_turning_schedule_validation():
    with pytest.raises(ValidationError):
        TurningSchedule(turns_per_day=30, interval_hours=8)
    with pytest.raises(ValidationError):
        TurningSchedule(turns_per_day=3, interval_hours=0)


@pytest.mark.parametrize("seconds, expected", [
    (3900, "1h 5m"),
    (250, "4m 10s"),
    (9, "9s"),
    (0, "0s"),
    (-5, "0s"),
])
def test_format_duration(seconds, expected):
    assert format_duration(seconds) == expected
