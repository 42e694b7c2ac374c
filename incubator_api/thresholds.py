"""
Threshold evaluation for temperature and humidity
"""
from .models import AlertConfig, Classification


def classify(value: float, minimum: float, maximum: float) -> Classification:
    """Classify a measurement against its bounds: below min is LOW, above max is HIGH"""
    if value < minimum:
        return Classification.LOW
    if value > maximum:
        return Classification.HIGH
    return Classification.NORMAL


def classify_temperature(temperature: float, config: AlertConfig) -> Classification:
    return classify(temperature, config.temp_min, config.temp_max)


def classify_humidity(humidity: float, config: AlertConfig) -> Classification:
    return classify(humidity, config.humidity_min, config.humidity_max)
