"""
Incubator engine
Owns the live state and drives it from three independent timers
"""
import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Set, Tuple

from .alerts import acknowledge_alert, active_alerts, add_alerts, evaluate_alerts
from .config import (
    COUNTDOWN_INTERVAL, DEVICE_LOG_LIMIT, DEVICE_TIMEOUT, LOG_INTERVAL, MAX_ALERTS, MAX_READINGS,
    STATUS_INTERVAL
)
from .device_client import DeviceClient, DeviceError, DeviceTimeoutError
from .metrics import (
    ALERTS_ACTIVE, ALERTS_RAISED, DEVICE_CONNECTED, DEVICE_REQUEST_FAILURES,
    INCUBATOR_HUMIDITY, INCUBATOR_NEXT_TURN, INCUBATOR_TEMPERATURE, INCUBATOR_TURNS_TODAY
)
from .models import Alert, AlertConfig, Reading, RemoteStatus, Status, TurningSchedule
from .readings import ReadingStore
from .simulator import IncubatorSimulator
from .status import apply_remote_status, mark_disconnected, simulate_status, tick_countdown

logger = logging.getLogger(__name__)


# Events
@dataclass(frozen=True)
class CountdownTick:
    pass


@dataclass(frozen=True)
class SimulationTick:
    now: datetime


@dataclass(frozen=True)
class RemoteStatusReceived:
    remote: RemoteStatus
    now: datetime


@dataclass(frozen=True)
class DeviceUnreachable:
    operation: str
    error: str


@dataclass(frozen=True)
class ReadingSynthesized:
    reading: Reading


@dataclass(frozen=True)
class LogsReceived:
    readings: Tuple[Reading, ...]


@dataclass(frozen=True)
class AlertConfigChanged:
    config: AlertConfig


@dataclass(frozen=True)
class AlertAcknowledged:
    alert_id: str


@dataclass(frozen=True)
class ScheduleSaved:
    schedule: TurningSchedule


@dataclass(frozen=True)
class MockModeChanged:
    use_mock_data: bool


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class IncubatorEngine:
    """
    Single owner of the incubator state.

    Every mutation goes through dispatch(), which is only called from the
    event loop thread (timer tasks and request handlers), so no locking is
    needed. Device calls run in worker threads and come back as events.
    """

    def __init__(
        self,
        client: DeviceClient,
        simulator: Optional[IncubatorSimulator] = None,
        use_mock_data: bool = True,
        alert_config: Optional[AlertConfig] = None,
        schedule: Optional[TurningSchedule] = None,
        countdown_interval: float = COUNTDOWN_INTERVAL,
        status_interval: float = STATUS_INTERVAL,
        log_interval: float = LOG_INTERVAL,
        log_limit: int = DEVICE_LOG_LIMIT,
        device_timeout: float = DEVICE_TIMEOUT,
        clock: Callable[[], datetime] = utcnow
    ):
        self.client = client
        self.simulator = simulator or IncubatorSimulator()
        self.clock = clock

        self.countdown_interval = countdown_interval
        self.status_interval = status_interval
        self.log_interval = log_interval
        self.log_limit = log_limit
        self.device_timeout = device_timeout

        # State
        now = self.clock()
        self.use_mock_data = use_mock_data
        self.status: Status = self.simulator.initial_status(now).model_copy(
            update={"connected": use_mock_data}
        )
        self.readings = ReadingStore(max_size=MAX_READINGS)
        if use_mock_data:
            self.readings.replace_all(self.simulator.generate_history(100, now))
        self.alerts: List[Alert] = []
        self.alert_config = alert_config or AlertConfig()
        self.turning_schedule = schedule or TurningSchedule()

        # Health
        self.running = False
        self.last_status_refresh: Optional[datetime] = None
        self.last_error: Optional[str] = None

        self._tasks: List[asyncio.Task] = []
        self._background: Set[asyncio.Task] = set()
        self._listeners: List[Callable[[Dict[str, Any]], None]] = []

    # ------------------------------------------------------------------
    # State transitions
    # ------------------------------------------------------------------

    def dispatch(self, event) -> List[Alert]:
        """Apply one event to the state; returns the alerts it raised"""
        previous = self.status

        if isinstance(event, CountdownTick):
            self.status = tick_countdown(self.status)

        elif isinstance(event, SimulationTick):
            self.status = simulate_status(self.status, self.simulator.rng, event.now)

        elif isinstance(event, RemoteStatusReceived):
            self.status = apply_remote_status(self.status, event.remote, event.now)
            self.last_error = None

        elif isinstance(event, DeviceUnreachable):
            self.last_error = f"{event.operation}: {event.error}"
            if event.operation == "status":
                self.status = mark_disconnected(self.status)

        elif isinstance(event, ReadingSynthesized):
            self.readings.append(event.reading)

        elif isinstance(event, LogsReceived):
            self.readings.replace_all(event.readings)
            logger.info(f"Loaded {len(event.readings)} readings from device")

        elif isinstance(event, AlertConfigChanged):
            self.alert_config = event.config
            logger.info(f"Alert thresholds updated: {event.config.model_dump()}")

        elif isinstance(event, AlertAcknowledged):
            self.alerts = acknowledge_alert(self.alerts, event.alert_id)
            logger.info(f"Alert {event.alert_id} acknowledged")

        elif isinstance(event, ScheduleSaved):
            self.turning_schedule = event.schedule
            logger.info(f"Turning schedule saved: {', '.join(event.schedule.times)}")

        elif isinstance(event, MockModeChanged):
            self.use_mock_data = event.use_mock_data
            logger.info(f"Data source switched to {'mock' if event.use_mock_data else 'device'}")

        else:
            raise TypeError(f"Unknown event: {event!r}")

        new_alerts = []
        if (self.status.temperature, self.status.humidity) != (previous.temperature, previous.humidity):
            new_alerts = self.check_alerts()
            self._emit({"type": "status", "status": self.status.model_dump(mode="json")})

        self._update_metrics()
        return new_alerts

    def check_alerts(self) -> List[Alert]:
        """Evaluate thresholds against the current status and record new alerts"""
        new_alerts = evaluate_alerts(self.status, self.alert_config, self.alerts, self.clock())
        if new_alerts:
            self.alerts = add_alerts(self.alerts, new_alerts, MAX_ALERTS)
            for alert in new_alerts:
                logger.warning(f"Alert raised ({alert.severity.value}): {alert.message}")
                ALERTS_RAISED.labels(category=alert.category.value, severity=alert.severity.value).inc()
                self._emit({"type": "alert", "alert": alert.model_dump(mode="json")})
        return new_alerts

    def _update_metrics(self):
        INCUBATOR_TEMPERATURE.set(self.status.temperature)
        INCUBATOR_HUMIDITY.set(self.status.humidity)
        INCUBATOR_NEXT_TURN.set(self.status.next_turn_in)
        INCUBATOR_TURNS_TODAY.set(self.status.turns_today)
        DEVICE_CONNECTED.set(1 if self.status.connected else 0)
        ALERTS_ACTIVE.set(len(active_alerts(self.alerts)))

    # ------------------------------------------------------------------
    # Listeners (live event stream)
    # ------------------------------------------------------------------

    def add_listener(self, callback: Callable[[Dict[str, Any]], None]):
        self._listeners.append(callback)

    def _emit(self, message: Dict[str, Any]):
        for callback in self._listeners:
            try:
                callback(message)
            except Exception as e:
                logger.error(f"Error in engine listener: {e}")

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def tick_countdown(self):
        self.dispatch(CountdownTick())

    def refresh_from_simulation(self) -> List[Alert]:
        return self.dispatch(SimulationTick(now=self.clock()))

    async def _call_device(self, func, *args):
        """Run a blocking device call in a worker thread, bounded by the device timeout"""
        try:
            return await asyncio.wait_for(asyncio.to_thread(func, *args), self.device_timeout)
        except asyncio.TimeoutError as e:
            raise DeviceTimeoutError(f"No answer from device within {self.device_timeout}s") from e

    async def refresh_from_source(self) -> List[Alert]:
        """Fetch the live status from the device; failures only flip the connected flag"""
        try:
            remote = await self._call_device(self.client.fetch_status)
        except DeviceError as e:
            logger.warning(f"Cannot reach incubator device: {e}")
            DEVICE_REQUEST_FAILURES.labels(operation="status", kind=e.kind).inc()
            if self.use_mock_data:
                return []
            return self.dispatch(DeviceUnreachable(operation="status", error=str(e)))

        if self.use_mock_data:
            logger.debug("Discarding device status received after switching to mock data")
            return []
        return self.dispatch(RemoteStatusReceived(remote=remote, now=self.clock()))

    async def refresh_status(self) -> List[Alert]:
        self.last_status_refresh = self.clock()
        if self.use_mock_data:
            return self.refresh_from_simulation()
        return await self.refresh_from_source()

    async def refresh_logs(self):
        """Append a synthesized reading (mock) or reload the log from the device"""
        if self.use_mock_data:
            reading = self.simulator.reading_from_status(self.status, self.clock())
            self.dispatch(ReadingSynthesized(reading=reading))
            return

        try:
            readings = await self._call_device(self.client.fetch_logs, self.log_limit)
        except DeviceError as e:
            logger.error(f"Failed to fetch logs: {e}")
            DEVICE_REQUEST_FAILURES.labels(operation="logs", kind=e.kind).inc()
            self.dispatch(DeviceUnreachable(operation="logs", error=str(e)))
            return

        if self.use_mock_data:
            logger.debug("Discarding device logs received after switching to mock data")
            return
        self.dispatch(LogsReceived(readings=tuple(readings)))

    def acknowledge(self, alert_id: str):
        """Raises KeyError if no alert has this id"""
        self.dispatch(AlertAcknowledged(alert_id=alert_id))

    def set_alert_config(self, config: AlertConfig):
        self.dispatch(AlertConfigChanged(config=config))

    def save_schedule(self, schedule: TurningSchedule) -> Optional[asyncio.Task]:
        """
        Store the schedule and, when polling the device, send it in the
        background. Send failures are logged, not raised.
        """
        self.dispatch(ScheduleSaved(schedule=schedule))
        if self.use_mock_data:
            return None
        return self._spawn(self._post_schedule(schedule))

    async def _post_schedule(self, schedule: TurningSchedule):
        try:
            await self._call_device(self.client.post_schedule, schedule)
        except DeviceError as e:
            logger.error(f"Failed to save schedule on device: {e}")
            DEVICE_REQUEST_FAILURES.labels(operation="schedule", kind=e.kind).inc()

    def set_use_mock_data(self, use_mock_data: bool) -> Optional[asyncio.Task]:
        """Switch data source and refresh the status right away"""
        if use_mock_data == self.use_mock_data:
            return None
        self.dispatch(MockModeChanged(use_mock_data=use_mock_data))
        return self._spawn(self.refresh_status())

    # ------------------------------------------------------------------
    # Timers
    # ------------------------------------------------------------------

    def _spawn(self, coro) -> Optional[asyncio.Task]:
        """Run a coroutine in the background without waiting for it"""
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No loop yet, the status timer refreshes on start()
            coro.close()
            return None

        task = loop.create_task(coro)
        self._background.add(task)
        task.add_done_callback(self._background_done)
        return task

    def _background_done(self, task: asyncio.Task):
        self._background.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error(f"Background task failed: {task.exception()}", exc_info=task.exception())

    async def _countdown_loop(self):
        while True:
            await asyncio.sleep(self.countdown_interval)
            try:
                self.tick_countdown()
            except Exception as e:
                logger.error(f"Error in countdown timer: {e}", exc_info=True)

    async def _status_loop(self):
        # Overlapping refreshes are allowed, the last one to complete wins
        while True:
            self._spawn(self.refresh_status())
            await asyncio.sleep(self.status_interval)

    async def _log_loop(self):
        while True:
            await asyncio.sleep(self.log_interval)
            self._spawn(self.refresh_logs())

    def start(self):
        """Start the countdown, status and log timers on the running loop"""
        if self.running:
            return
        logger.info(
            f"Starting incubator engine (mock={self.use_mock_data}, status every {self.status_interval}s, "
            f"logs every {self.log_interval}s)"
        )
        self.check_alerts()
        self._update_metrics()
        self._tasks = [
            asyncio.create_task(self._countdown_loop(), name="countdown"),
            asyncio.create_task(self._status_loop(), name="status-refresh"),
            asyncio.create_task(self._log_loop(), name="log-refresh"),
        ]
        self.running = True

    async def stop(self):
        """Cancel the timers and any in-flight refresh"""
        tasks = self._tasks + list(self._background)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks = []
        self._background.clear()
        self.running = False
        logger.info("Incubator engine stopped")
