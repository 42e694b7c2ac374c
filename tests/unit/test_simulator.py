from datetime import datetime, timedelta, timezone
from incubator_api.models import MotorStatus
from incubator_api.simulator import IncubatorSimulator


NOW = datetime(2025, 10, 8, 12, 0, tzinfo=timezone.utc)


def test_initial_status_is_plausible():
    status = IncubatorSimulator(seed=11).initial_status(NOW)
    assert 37.2 <= status.temperature <= 38.3
    assert 57 <= status.humidity <= 63
    assert status.motor_status == MotorStatus.IDLE
    assert status.turns_today == 2
    assert 3600 <= status.next_turn_in < 7200
    assert status.last_updated == NOW


def test_same_seed_same_data():
    first = IncubatorSimulator(seed=4).generate_history(10, NOW)
    second = IncubatorSimulator(seed=4).generate_history(10, NOW)
    assert [(r.temperature, r.humidity) for r in first] == [(r.temperature, r.humidity) for r in second]


def test_history_spacing_and_turning_events():
    history = IncubatorSimulator(seed=2).generate_history(100, NOW)

    assert len(history) == 100
    assert history[0].timestamp == NOW
    assert history[-1].timestamp == NOW - 99 * timedelta(minutes=15)
    assert [i for i, r in enumerate(history) if r.egg_turning] == [0, 32, 64, 96]
    assert all((r.motor_status == MotorStatus.RUNNING) == r.egg_turning for r in history)
    assert len({r.id for r in history}) == 100


def test_reading_from_status_copies_values():
    sim = IncubatorSimulator(seed=8)
    status = sim.initial_status(NOW)
    reading = sim.reading_from_status(status, NOW + timedelta(minutes=1))

    assert reading.temperature == status.temperature
    assert reading.humidity == status.humidity
    assert reading.egg_turning is False
    assert reading.timestamp == NOW + timedelta(minutes=1)
