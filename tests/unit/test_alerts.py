import pytest
from datetime import datetime, timedelta, timezone
from incubator_api.alerts import acknowledge_alert, active_alerts, add_alerts, evaluate_alerts, find_suppressing_alert
from incubator_api.models import Alert, AlertCategory, AlertConfig, AlertSeverity, MotorStatus, Status


NOW = datetime(2025, 10, 8, 12, 0, tzinfo=timezone.utc)
CONFIG = AlertConfig(temp_min=37.0, temp_max=38.5, humidity_min=55, humidity_max=65)


def make_status(temperature=37.8, humidity=60.0):
    return Status(
        temperature=temperature,
        humidity=humidity,
        motor_status=MotorStatus.IDLE,
        turns_today=0,
        next_turn_in=0,
        last_updated=NOW,
        connected=True
    )


def make_alert(alert_id="alert-1", category=AlertCategory.TEMPERATURE, age=timedelta(minutes=2), acknowledged=False):
    return Alert(
        id=alert_id,
        category=category,
        severity=AlertSeverity.CRITICAL,
        message="Temperature too high",
        timestamp=NOW - age,
        acknowledged=acknowledged
    )


def test_normal_readings_raise_nothing():
    assert evaluate_alerts(make_status(), CONFIG, [], NOW) == []


def test_high_temperature_is_critical():
    alerts = evaluate_alerts(make_status(temperature=39.0), CONFIG, [], NOW)
    assert len(alerts) == 1
    alert = alerts[0]
    assert alert.category == AlertCategory.TEMPERATURE
    assert alert.severity == AlertSeverity.CRITICAL
    assert alert.message == "Temperature too high: 39.0°C (max: 38.5°C)"
    assert alert.timestamp == NOW
    assert alert.acknowledged is False


def test_low_humidity_is_warning():
    alerts = evaluate_alerts(make_status(humidity=50.0), CONFIG, [], NOW)
    assert len(alerts) == 1
    assert alerts[0].category == AlertCategory.HUMIDITY
    assert alerts[0].severity == AlertSeverity.WARNING
    assert alerts[0].message == "Humidity too low: 50.0% (min: 55.0%)"


def test_both_categories_in_order():
    alerts = evaluate_alerts(make_status(temperature=36.5, humidity=70.0), CONFIG, [], NOW)
    assert [a.category for a in alerts] == [AlertCategory.TEMPERATURE, AlertCategory.HUMIDITY]
    assert [a.severity for a in alerts] == [AlertSeverity.WARNING, AlertSeverity.CRITICAL]
    assert alerts[0].id != alerts[1].id


def test_recent_unacknowledged_alert_suppresses_duplicate():
    existing = [make_alert(age=timedelta(minutes=2))]
    assert evaluate_alerts(make_status(temperature=39.0), CONFIG, existing, NOW) == []


def test_suppression_is_per_category():
    existing = [make_alert(age=timedelta(minutes=2))]
    alerts = evaluate_alerts(make_status(temperature=39.0, humidity=70.0), CONFIG, existing, NOW)
    assert [a.category for a in alerts] == [AlertCategory.HUMIDITY]


def test_acknowledged_alert_does_not_suppress():
    existing = acknowledge_alert([make_alert(age=timedelta(minutes=2))], "alert-1")
    alerts = evaluate_alerts(make_status(temperature=39.0), CONFIG, existing, NOW)
    assert len(alerts) == 1


def test_window_expires_after_five_minutes():
    assert find_suppressing_alert([make_alert(age=timedelta(seconds=299))], AlertCategory.TEMPERATURE, NOW)
    assert find_suppressing_alert([make_alert(age=timedelta(seconds=300))], AlertCategory.TEMPERATURE, NOW) is None
    alerts = evaluate_alerts(make_status(temperature=39.0), CONFIG, [make_alert(age=timedelta(minutes=6))], NOW)
    assert len(alerts) == 1


def test_add_alerts_prepends_and_caps():
    existing = [make_alert(alert_id=f"old-{i}") for i in range(50)]
    new = [make_alert(alert_id="new-1"), make_alert(alert_id="new-2")]
    result = add_alerts(existing, new, cap=50)
    assert len(result) == 50
    assert [a.id for a in result[:3]] == ["new-1", "new-2", "old-0"]
    assert result[-1].id == "old-47"


def test_acknowledge_only_flips_matching_alert():
    alerts = [make_alert("a"), make_alert("b")]
    result = acknowledge_alert(alerts, "b")
    assert [a.acknowledged for a in result] == [False, True]
    assert len(result) == 2
    # original records are not mutated
    assert alerts[1].acknowledged is False


def test_acknowledge_unknown_id():
    with pytest.raises(KeyError):
        acknowledge_alert([make_alert("a")], "missing")


def test_active_alerts():
    alerts = [make_alert("a"), make_alert("b", acknowledged=True)]
    assert [a.id for a in active_alerts(alerts)] == ["a"]
