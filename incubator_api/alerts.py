"""
Alert evaluation module
Derives threshold alerts from the live status with a suppression window
"""
import itertools
from datetime import datetime, timedelta
from typing import List, Optional, Sequence

from .config import ALERT_SUPPRESSION_SECONDS, MAX_ALERTS
from .models import Alert, AlertCategory, AlertConfig, AlertSeverity, Classification, Status
from .thresholds import classify_humidity, classify_temperature

SUPPRESSION_WINDOW = timedelta(seconds=ALERT_SUPPRESSION_SECONDS)

_alert_counter = itertools.count(1)


def _new_alert_id(category: AlertCategory, now: datetime) -> str:
    return f"alert-{category.value}-{int(now.timestamp() * 1000)}-{next(_alert_counter)}"


def find_suppressing_alert(
    alerts: Sequence[Alert],
    category: AlertCategory,
    now: datetime,
    window: timedelta = SUPPRESSION_WINDOW
) -> Optional[Alert]:
    """Return an unacknowledged alert of this category younger than the window, if any"""
    for alert in alerts:
        if alert.category == category and not alert.acknowledged and now - alert.timestamp < window:
            return alert
    return None


def _build_alert(
    category: AlertCategory,
    classification: Classification,
    value: float,
    minimum: float,
    maximum: float,
    now: datetime
) -> Alert:
    label = "Temperature" if category == AlertCategory.TEMPERATURE else "Humidity"
    unit = "°C" if category == AlertCategory.TEMPERATURE else "%"

    if classification == Classification.HIGH:
        severity = AlertSeverity.CRITICAL
        message = f"{label} too high: {value}{unit} (max: {maximum}{unit})"
    else:
        severity = AlertSeverity.WARNING
        message = f"{label} too low: {value}{unit} (min: {minimum}{unit})"

    return Alert(
        id=_new_alert_id(category, now),
        category=category,
        severity=severity,
        message=message,
        timestamp=now,
        acknowledged=False
    )


def evaluate_alerts(
    status: Status,
    config: AlertConfig,
    existing: Sequence[Alert],
    now: datetime,
    window: timedelta = SUPPRESSION_WINDOW
) -> List[Alert]:
    """
    Check temperature then humidity against the configured bounds.

    A breach produces a new alert unless an unacknowledged alert of the same
    category was raised within the suppression window. Alerts are not
    retracted when the condition clears.
    """
    checks = [
        (AlertCategory.TEMPERATURE, classify_temperature(status.temperature, config),
         status.temperature, config.temp_min, config.temp_max),
        (AlertCategory.HUMIDITY, classify_humidity(status.humidity, config),
         status.humidity, config.humidity_min, config.humidity_max),
    ]

    new_alerts = []
    for category, classification, value, minimum, maximum in checks:
        if classification == Classification.NORMAL:
            continue
        if find_suppressing_alert(existing, category, now, window):
            continue
        new_alerts.append(_build_alert(category, classification, value, minimum, maximum, now))

    return new_alerts


def add_alerts(existing: Sequence[Alert], new_alerts: Sequence[Alert], cap: int = MAX_ALERTS) -> List[Alert]:
    """Prepend new alerts, keeping at most cap entries (oldest dropped)"""
    return (list(new_alerts) + list(existing))[:cap]


def acknowledge_alert(alerts: Sequence[Alert], alert_id: str) -> List[Alert]:
    """Mark the matching alert acknowledged; raises KeyError for an unknown id"""
    found = False
    result = []
    for alert in alerts:
        if alert.id == alert_id:
            found = True
            alert = alert.model_copy(update={"acknowledged": True})
        result.append(alert)

    if not found:
        raise KeyError(alert_id)
    return result


def active_alerts(alerts: Sequence[Alert]) -> List[Alert]:
    return [a for a in alerts if not a.acknowledged]
