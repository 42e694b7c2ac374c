#!/usr/bin/env python3
"""
Egg Incubator Monitoring API
Live status, reading history, threshold alerts and turning schedule for an incubator
"""
import asyncio
import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI

from .config import API_TITLE, API_VERSION, load_config
from .device_client import DeviceClient
from .engine import IncubatorEngine
from .logging_setup import setup_logging
from .metrics import REQUEST_COUNT, REQUEST_DURATION
from .models import AlertConfig
from .routes import incubator, monitor, system
from .websocket import WebSocketManager

logger = logging.getLogger(__name__)

tags_metadata = [
    {
        "name": "System Information",
        "description": "API metadata, health checks, and version information"
    },
    {
        "name": "Incubator",
        "description": "Live status, reading history and CSV export"
    },
    {
        "name": "Alerts",
        "description": "Threshold alerts, acknowledgement and alert thresholds"
    },
    {
        "name": "Turning",
        "description": "Egg turning schedule"
    },
    {
        "name": "Data Source",
        "description": "Switch between simulated data and the incubator device"
    },
    {
        "name": "Metrics",
        "description": "Prometheus metrics export for Grafana integration"
    }
]

DESCRIPTION = """
# Egg Incubator Monitoring

Keeps the live state of an egg incubator (temperature, humidity, turning
motor) and raises alerts when readings leave the configured bounds.

## Data Flow

```
Incubator controller (HTTP) or simulator
                ↓
  Status poll (5s) · Countdown (1s) · Log poll (15min)
                ↓
        Incubator engine (single state owner)
                ↓
    REST API · WebSocket events · Prometheus metrics
```

## Alerts

- Temperature or humidity below its minimum raises a **warning**, above its maximum a **critical** alert
- A repeat breach of the same category does not raise a duplicate while an unacknowledged alert
  younger than 5 minutes exists
- Acknowledging an alert keeps it in the list (up to 50 alerts kept)

## Turning Schedule

Turns start at 08:00 and are spaced `interval_hours` apart, wrapping past midnight.
"""


def create_app(engine: Optional[IncubatorEngine] = None, config: Optional[Dict[str, Any]] = None) -> FastAPI:
    """Build the API around an engine (created from configuration when not given)"""
    config = config or load_config()
    setup_logging(config)

    if engine is None:
        device = config["device"]
        polling = config["polling"]
        engine = IncubatorEngine(
            client=DeviceClient(base_url=device["url"], timeout=float(device["timeout"])),
            use_mock_data=bool(device["use_mock_data"]),
            alert_config=AlertConfig(**config["alerts"]),
            countdown_interval=float(polling["countdown_interval"]),
            status_interval=float(polling["status_interval"]),
            log_interval=float(polling["log_interval"]),
            log_limit=int(device["log_limit"]),
            device_timeout=float(device["timeout"])
        )

    app = FastAPI(
        title=API_TITLE,
        description=DESCRIPTION,
        version=API_VERSION,
        openapi_tags=tags_metadata,
        license_info={
            "name": "MIT"
        }
    )
    app.state.engine = engine
    app.state.ws_manager = WebSocketManager()
    app.state.broadcast_tasks = set()

    def broadcast_done(task: asyncio.Task):
        app.state.broadcast_tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error(f"Event broadcast failed: {task.exception()}")

    def forward_event(event: Dict[str, Any]):
        task = asyncio.get_running_loop().create_task(app.state.ws_manager.broadcast(event))
        app.state.broadcast_tasks.add(task)
        task.add_done_callback(broadcast_done)

    engine.add_listener(forward_event)

    # Middleware for metrics
    @app.middleware("http")
    async def metrics_middleware(request, call_next):
        with REQUEST_DURATION.time():
            REQUEST_COUNT.labels(method=request.method, endpoint=request.url.path).inc()
            response = await call_next(request)
            return response

    @app.on_event("startup")
    async def startup_event():
        """Start background timers on application startup"""
        logger.info("Application starting up - starting incubator engine")
        app.state.engine.start()

    @app.on_event("shutdown")
    async def shutdown_event():
        """Cleanup on application shutdown"""
        logger.info("Application shutting down")
        await app.state.engine.stop()
        app.state.engine.client.close()

    app.include_router(system.router)
    app.include_router(incubator.router)
    app.include_router(monitor.router)
    return app


def run():
    import uvicorn
    uvicorn.run(create_app(), host="0.0.0.0", port=8000)


if __name__ == "__main__":
    run()
