"""
Configuration module
Centralized configuration and environment variables
"""
import os
from typing import Any, Dict, Optional

import yaml


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


# Device Configuration
DEVICE_API_URL = os.getenv("DEVICE_API_URL", "http://192.168.1.100/api")
DEVICE_TIMEOUT = float(os.getenv("DEVICE_TIMEOUT", "5"))  # seconds
DEVICE_LOG_LIMIT = int(os.getenv("DEVICE_LOG_LIMIT", "20"))
USE_MOCK_DATA = _env_bool("USE_MOCK_DATA", "true")

# Polling cadences (seconds)
COUNTDOWN_INTERVAL = float(os.getenv("COUNTDOWN_INTERVAL", "1"))
STATUS_INTERVAL = float(os.getenv("STATUS_INTERVAL", "5"))
LOG_INTERVAL = float(os.getenv("LOG_INTERVAL", "900"))

# Retention caps
MAX_READINGS = 500
MAX_ALERTS = 50
ALERT_SUPPRESSION_SECONDS = 300

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FORMAT = os.getenv("LOG_FORMAT", "text")

# Optional YAML overrides
CONFIG_FILE = os.getenv("INCUBATOR_CONFIG_FILE", "/app/config.yaml")

# API Configuration
API_VERSION = "1.0.0"
API_TITLE = "Egg Incubator Monitoring API"


def default_config() -> Dict[str, Any]:
    """Configuration derived from environment variables"""
    return {
        "device": {
            "url": DEVICE_API_URL,
            "timeout": DEVICE_TIMEOUT,
            "log_limit": DEVICE_LOG_LIMIT,
            "use_mock_data": USE_MOCK_DATA
        },
        "polling": {
            "countdown_interval": COUNTDOWN_INTERVAL,
            "status_interval": STATUS_INTERVAL,
            "log_interval": LOG_INTERVAL
        },
        "alerts": {
            "temp_min": 37.0,
            "temp_max": 38.5,
            "humidity_min": 55.0,
            "humidity_max": 65.0
        },
        "logging": {
            "level": LOG_LEVEL,
            "format": LOG_FORMAT
        }
    }


def load_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load configuration from a YAML file, section by section on top of the
    environment defaults. A missing file falls back to the defaults.
    """
    config = default_config()
    path = config_path or CONFIG_FILE

    try:
        with open(path, 'r') as file:
            overrides = yaml.safe_load(file) or {}
    except FileNotFoundError:
        return config

    if not isinstance(overrides, dict):
        raise ValueError(f"Config file {path} must contain a mapping, got {type(overrides).__name__}")

    for section, values in overrides.items():
        if isinstance(values, dict) and isinstance(config.get(section), dict):
            config[section].update(values)
        else:
            config[section] = values

    return config
