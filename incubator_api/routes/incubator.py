"""
Incubator routes
Live status, reading history, alerts, thresholds, turning schedule and data source
"""
import csv
import io
from datetime import date, datetime, timezone
from itertools import islice
from typing import List, Optional

from fastapi import APIRouter, HTTPException, Query, Request, Response

from ..alerts import active_alerts
from ..models import Alert, AlertConfig, MockMode, Reading, Status, TurningSchedule
from ..readings import ReadingFilter
from ..schedule import format_duration

router = APIRouter(prefix="/api/v1")

CSV_HEADERS = ["Timestamp", "Temperature (°C)", "Humidity (%)", "Egg Turning Event", "Motor Status"]


def _engine(request: Request):
    return request.app.state.engine


def readings_to_csv(readings: List[Reading]) -> str:
    """One row per reading, ISO-8601 timestamps, Yes/No turning flag"""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADERS)
    for r in readings:
        writer.writerow([
            r.timestamp.isoformat(),
            f"{r.temperature:.1f}",
            f"{r.humidity:.1f}",
            "Yes" if r.egg_turning else "No",
            r.motor_status.value
        ])
    return buffer.getvalue()


@router.get("/status", response_model=Status, summary="Get Live Status", tags=["Incubator"])
async def get_status(request: Request):
    """
    Current snapshot: temperature, humidity, motor state, turns completed
    today, seconds until the next turn and device connectivity.

    `connected=false` means the last device poll failed; the values are the
    last ones received.
    """
    return _engine(request).status


@router.get("/status/countdown", summary="Get Next Turn Countdown", tags=["Incubator"])
async def get_countdown(request: Request):
    """Seconds until the next turn, also rendered for display (e.g. '1h 5m')"""
    status = _engine(request).status
    return {
        "next_turn_in": status.next_turn_in,
        "display": format_duration(status.next_turn_in)
    }


def _reading_filter(
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    temp_min: Optional[float] = None,
    temp_max: Optional[float] = None,
    humidity_min: Optional[float] = None,
    humidity_max: Optional[float] = None,
    turning_only: bool = False
) -> ReadingFilter:
    return ReadingFilter(
        date_from=date_from,
        date_to=date_to,
        temp_min=temp_min,
        temp_max=temp_max,
        humidity_min=humidity_min,
        humidity_max=humidity_max,
        turning_only=turning_only
    )


@router.get("/readings", response_model=List[Reading], summary="Get Reading History", tags=["Incubator"])
async def get_readings(
    request: Request,
    date_from: Optional[date] = Query(None, description="First day to include (YYYY-MM-DD)"),
    date_to: Optional[date] = Query(None, description="Last day to include (YYYY-MM-DD)"),
    temp_min: Optional[float] = Query(None, description="Minimum temperature in °C"),
    temp_max: Optional[float] = Query(None, description="Maximum temperature in °C"),
    humidity_min: Optional[float] = Query(None, description="Minimum humidity in %"),
    humidity_max: Optional[float] = Query(None, description="Maximum humidity in %"),
    turning_only: bool = Query(False, description="Only readings flagged as egg turning events"),
    limit: int = Query(500, ge=1, le=500, description="Maximum number of records")
):
    """
    Query the reading history, most recent first.

    Up to 500 readings are kept in memory. All filters are optional and
    combined with AND.
    """
    predicate = _reading_filter(date_from, date_to, temp_min, temp_max, humidity_min, humidity_max, turning_only)
    return list(islice(_engine(request).readings.query(predicate), limit))


@router.get("/readings/export", summary="Export Readings as CSV", tags=["Incubator"])
async def export_readings(
    request: Request,
    date_from: Optional[date] = Query(None),
    date_to: Optional[date] = Query(None),
    temp_min: Optional[float] = Query(None),
    temp_max: Optional[float] = Query(None),
    humidity_min: Optional[float] = Query(None),
    humidity_max: Optional[float] = Query(None),
    turning_only: bool = Query(False)
):
    """Download the (filtered) history as CSV"""
    predicate = _reading_filter(date_from, date_to, temp_min, temp_max, humidity_min, humidity_max, turning_only)
    content = readings_to_csv(list(_engine(request).readings.query(predicate)))
    filename = f"incubator-logs-{datetime.now(timezone.utc).date().isoformat()}.csv"
    return Response(
        content=content,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'}
    )


@router.post("/readings/refresh", summary="Refresh Reading History", tags=["Incubator"])
async def refresh_readings(request: Request):
    """
    Refresh the history now instead of waiting for the 15 minute timer.

    In mock mode a reading of the current status is appended; otherwise the
    latest logs are reloaded from the device. Device failures are reported
    through `/health`, not as an error response.
    """
    engine = _engine(request)
    await engine.refresh_logs()
    return {"count": len(engine.readings)}


@router.get("/alerts", response_model=List[Alert], summary="List Alerts", tags=["Alerts"])
async def get_alerts(
    request: Request,
    active_only: bool = Query(False, description="Only unacknowledged alerts")
):
    """Alerts, most recent first (up to 50 kept)"""
    alerts = _engine(request).alerts
    return active_alerts(alerts) if active_only else alerts


@router.post("/alerts/{alert_id}/acknowledge", response_model=Alert, summary="Acknowledge Alert", tags=["Alerts"])
async def acknowledge_alert(alert_id: str, request: Request):
    """
    Mark an alert as acknowledged.

    The alert stays in the list. A new breach of the same category can raise
    a new alert immediately afterwards.
    """
    engine = _engine(request)
    try:
        engine.acknowledge(alert_id)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Alert not found: {alert_id}")
    return next(a for a in engine.alerts if a.id == alert_id)


@router.get("/alerts/config", response_model=AlertConfig, summary="Get Alert Thresholds", tags=["Alerts"])
async def get_alert_config(request: Request):
    return _engine(request).alert_config


@router.put(
    "/alerts/config",
    response_model=AlertConfig,
    summary="Update Alert Thresholds",
    tags=["Alerts"],
    responses={422: {"description": "Validation error (e.g., temp_min > temp_max)"}}
)
async def set_alert_config(config: AlertConfig, request: Request):
    """
    Update the temperature and humidity bounds used for alerting.

    **Validation Rules:**
    - All values must be numbers
    - `temp_min` <= `temp_max`, `humidity_min` <= `humidity_max`

    New bounds apply from the next status refresh.
    """
    engine = _engine(request)
    engine.set_alert_config(config)
    return engine.alert_config


@router.get("/schedule", response_model=TurningSchedule, summary="Get Turning Schedule", tags=["Turning"])
async def get_schedule(request: Request):
    return _engine(request).turning_schedule


@router.get("/schedule/preview", response_model=TurningSchedule, summary="Preview Turning Schedule", tags=["Turning"])
async def preview_schedule(
    turns_per_day: int = Query(..., ge=1, le=24),
    interval_hours: float = Query(..., ge=1, le=24)
):
    """Compute the turn times for the given parameters without saving them"""
    return TurningSchedule(turns_per_day=turns_per_day, interval_hours=interval_hours)


@router.put(
    "/schedule",
    response_model=TurningSchedule,
    summary="Save Turning Schedule",
    tags=["Turning"],
    responses={422: {"description": "turns_per_day or interval_hours out of range (1-24)"}}
)
async def save_schedule(schedule: TurningSchedule, request: Request):
    """
    Save the turning schedule. Turn times are derived from `turns_per_day`
    and `interval_hours`, starting at 08:00.

    When polling the device, the schedule is also sent to it in the
    background; a failed send is logged only.
    """
    engine = _engine(request)
    engine.save_schedule(schedule)
    return engine.turning_schedule


@router.get("/mode", response_model=MockMode, summary="Get Data Source", tags=["Data Source"])
async def get_mode(request: Request):
    return MockMode(use_mock_data=_engine(request).use_mock_data)


@router.put("/mode", response_model=MockMode, summary="Switch Data Source", tags=["Data Source"])
async def set_mode(mode: MockMode, request: Request):
    """Switch between simulated data and device polling; the status refreshes right away"""
    engine = _engine(request)
    engine.set_use_mock_data(mode.use_mock_data)
    return MockMode(use_mock_data=engine.use_mock_data)
