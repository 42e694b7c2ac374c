"""
Prometheus metrics module
All metric definitions for monitoring and observability
"""
from prometheus_client import Counter, Histogram, Gauge


# API Request Metrics
REQUEST_COUNT = Counter(
    'api_requests_total',
    'Total API requests',
    ['method', 'endpoint']
)

REQUEST_DURATION = Histogram(
    'api_request_duration_seconds',
    'API request duration'
)

# Incubator Metrics
INCUBATOR_TEMPERATURE = Gauge(
    'incubator_temperature_celsius',
    'Current incubator temperature'
)

INCUBATOR_HUMIDITY = Gauge(
    'incubator_humidity_percent',
    'Current incubator relative humidity'
)

INCUBATOR_NEXT_TURN = Gauge(
    'incubator_next_turn_seconds',
    'Seconds until the next egg turn'
)

INCUBATOR_TURNS_TODAY = Gauge(
    'incubator_turns_today',
    'Egg turns completed today'
)

DEVICE_CONNECTED = Gauge(
    'incubator_device_connected',
    'Device connectivity (1=connected, 0=unreachable)'
)

# Alert Metrics
ALERTS_ACTIVE = Gauge(
    'incubator_alerts_active',
    'Unacknowledged alerts'
)

ALERTS_RAISED = Counter(
    'incubator_alerts_raised_total',
    'Alerts raised',
    ['category', 'severity']
)

# Device Access Metrics
DEVICE_REQUEST_FAILURES = Counter(
    'incubator_device_request_failures_total',
    'Failed device requests',
    ['operation', 'kind']
)
