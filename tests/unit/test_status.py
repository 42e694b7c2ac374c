import random
from datetime import datetime, timedelta, timezone
from incubator_api.models import MotorStatus, RemoteStatus, Status
from incubator_api.status import apply_remote_status, mark_disconnected, simulate_status, tick_countdown


NOW = datetime(2025, 10, 8, 12, 0, tzinfo=timezone.utc)


def make_status(**overrides):
    values = dict(
        temperature=37.8,
        humidity=60.0,
        motor_status=MotorStatus.IDLE,
        turns_today=2,
        next_turn_in=120,
        last_updated=NOW,
        connected=True
    )
    values.update(overrides)
    return Status(**values)


def test_simulation_stays_within_clamp_ranges():
    rng = random.Random(42)
    status = make_status(temperature=39.95, humidity=79.8)
    for i in range(10000):
        status = simulate_status(status, rng, NOW + timedelta(seconds=i))
        assert 36.0 <= status.temperature <= 40.0
        assert 40 <= status.humidity <= 80


def test_simulation_clamps_at_the_edges():
    rng = random.Random(1)
    low = make_status(temperature=36.0, humidity=40.0)
    high = make_status(temperature=40.0, humidity=80.0)
    for _ in range(200):
        low = simulate_status(low, rng, NOW)
        high = simulate_status(high, rng, NOW)
        assert low.temperature >= 36.0 and low.humidity >= 40.0
        assert high.temperature <= 40.0 and high.humidity <= 80.0


def test_simulation_step_size_and_rounding():
    rng = random.Random(7)
    status = make_status()
    for _ in range(500):
        following = simulate_status(status, rng, NOW)
        assert abs(following.temperature - status.temperature) <= 0.1 + 1e-9
        assert abs(following.humidity - status.humidity) <= 0.5 + 0.05 + 1e-9
        assert round(following.temperature, 1) == following.temperature
        assert round(following.humidity, 1) == following.humidity
        status = following


def test_simulation_reports_connected_and_updates_timestamp():
    later = NOW + timedelta(seconds=5)
    status = simulate_status(make_status(connected=False), random.Random(0), later)
    assert status.connected is True
    assert status.last_updated == later


def test_simulation_leaves_other_fields_alone():
    status = simulate_status(make_status(), random.Random(0), NOW)
    assert status.turns_today == 2
    assert status.next_turn_in == 120
    assert status.motor_status == MotorStatus.IDLE


def test_apply_remote_status_replaces_fields():
    remote = RemoteStatus(temperature=38.1, humidity=58.0, motor_status="running", turns_today=3, next_turn_in=30)
    later = NOW + timedelta(seconds=5)
    status = apply_remote_status(make_status(connected=False), remote, later)
    assert status.temperature == 38.1
    assert status.humidity == 58.0
    assert status.motor_status == MotorStatus.RUNNING
    assert status.turns_today == 3
    assert status.next_turn_in == 30
    assert status.last_updated == later
    assert status.connected is True


def test_mark_disconnected_keeps_values():
    before = make_status()
    after = mark_disconnected(before)
    assert after.connected is False
    assert (after.temperature, after.humidity, after.next_turn_in) == (before.temperature, before.humidity, before.next_turn_in)
    assert before.connected is True


def test_countdown_decrements():
    assert tick_countdown(make_status(next_turn_in=10)).next_turn_in == 9


def test_countdown_never_negative():
    status = make_status(next_turn_in=0)
    for _ in range(3):
        status = tick_countdown(status)
        assert status.next_turn_in == 0
