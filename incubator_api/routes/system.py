"""
System routes
Health checks, API information, and Prometheus metrics
"""
from datetime import datetime, timezone

from fastapi import APIRouter, Request, Response
from fastapi.responses import PlainTextResponse
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST

from ..config import API_TITLE, API_VERSION
from ..models import HealthStatus

router = APIRouter()


@router.get("/", summary="API Information", tags=["System Information"])
async def root():
    """Root endpoint with API information"""
    return {
        "name": API_TITLE,
        "version": API_VERSION,
        "endpoints": {
            "status": "/api/v1/status",
            "readings": "/api/v1/readings",
            "readings_export": "/api/v1/readings/export",
            "alerts": "/api/v1/alerts",
            "alert_config": "/api/v1/alerts/config",
            "schedule": "/api/v1/schedule",
            "mode": "/api/v1/mode",
            "events": "/ws/events",
            "metrics": "/metrics",
            "health": "/health",
            "docs": "/docs"
        }
    }


@router.get("/health", response_model=HealthStatus, summary="Health Check", tags=["System Information"])
async def health_check(request: Request):
    """
    Health check endpoint.

    Checks performed:
    - **Timers**: Polling tasks are running and the status refresh ran recently
    - **Device**: The current status came from a reachable device (or mock mode)

    Returns 'healthy' status only if all checks pass.
    """
    engine = request.app.state.engine
    now = datetime.now(timezone.utc)

    # Status refresh should run at least every 3 intervals
    refresh_recent = True
    last_refresh = engine.last_status_refresh
    if last_refresh and (now - last_refresh).total_seconds() > 3 * engine.status_interval:
        refresh_recent = False

    is_healthy = (
        engine.running and
        refresh_recent and
        engine.status.connected
    )

    return HealthStatus(
        status="healthy" if is_healthy else "unhealthy",
        timestamp=now,
        version=API_VERSION,
        use_mock_data=engine.use_mock_data,
        device_connected=engine.status.connected,
        timers_running=engine.running,
        last_status_refresh=last_refresh,
        last_error=engine.last_error
    )


@router.get("/metrics", response_class=PlainTextResponse, summary="Prometheus Metrics", tags=["Metrics"])
async def metrics():
    """
    Prometheus metrics endpoint in text exposition format.

    **Incubator Metrics:**
    - `incubator_temperature_celsius`, `incubator_humidity_percent`
    - `incubator_next_turn_seconds`, `incubator_turns_today`
    - `incubator_device_connected`: 1 if the device answered the last status poll
    - `incubator_alerts_active`: Unacknowledged alerts
    - `incubator_alerts_raised_total{category, severity}`
    - `incubator_device_request_failures_total{operation, kind}`

    **API Metrics:**
    - `api_requests_total{method, endpoint}`: Request counter
    - `api_request_duration_seconds`: Request duration histogram
    """
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)
