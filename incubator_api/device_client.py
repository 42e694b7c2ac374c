"""
Device client module
HTTP access to the incubator controller (status, logs, turning schedule)
"""
import json
import logging
import time
from typing import Any, List, Optional

import requests
from pydantic import ValidationError

from .config import DEVICE_API_URL, DEVICE_TIMEOUT
from .models import Reading, RemoteReading, RemoteStatus, TurningSchedule

logger = logging.getLogger(__name__)

# Read bodies byte by byte so the deadline is checked while a slow device is still sending
READ_CHUNK_SIZE = 1


class DeviceError(Exception):
    """Base class for all device access failures"""
    kind = "error"


class DeviceTimeoutError(DeviceError):
    """The device did not answer within the timeout"""
    kind = "timeout"


class DeviceConnectionError(DeviceError):
    """Transport-level failure (refused, DNS, reset...)"""
    kind = "connection"


class DeviceResponseError(DeviceError):
    """The device answered with a non-2xx status code"""
    kind = "response"

    def __init__(self, status_code: int, detail: Optional[str] = None):
        self.status_code = status_code
        self.detail = detail
        message = f"Device returned {status_code}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class DevicePayloadError(DeviceError):
    """The device answered 2xx but the body is not what we expect"""
    kind = "payload"


def _error_detail(content: bytes) -> Optional[str]:
    """Extract the 'error' field of a failed response body, when present"""
    try:
        body = json.loads(content)
    except ValueError:
        return None
    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])
    return None


class DeviceClient:
    """
    Talks to the incubator controller over HTTP.

    `timeout` bounds the whole call (connect, headers and body), not only
    each socket read.
    """

    def __init__(self, base_url: str = DEVICE_API_URL, timeout: float = DEVICE_TIMEOUT,
                 session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def _timed_out(self, url: str) -> DeviceTimeoutError:
        return DeviceTimeoutError(f"Timed out after {self.timeout}s calling {url}")

    def _read_body(self, response: requests.Response, deadline: float, url: str) -> bytes:
        body = bytearray()
        try:
            if time.monotonic() > deadline:
                raise self._timed_out(url)
            for chunk in response.iter_content(chunk_size=READ_CHUNK_SIZE):
                body.extend(chunk)
                if time.monotonic() > deadline:
                    raise self._timed_out(url)
        finally:
            response.close()
        return bytes(body)

    def _request(self, method: str, path: str, **kwargs) -> Any:
        url = f"{self.base_url}{path}"
        deadline = time.monotonic() + self.timeout
        try:
            response = self.session.request(method, url, timeout=self.timeout, stream=True, **kwargs)
            content = self._read_body(response, deadline, url)
        except requests.Timeout as e:
            raise self._timed_out(url) from e
        except requests.RequestException as e:
            raise DeviceConnectionError(f"Cannot reach device at {url}: {e}") from e

        if not response.ok:
            raise DeviceResponseError(response.status_code, _error_detail(content))

        if not content:
            return None
        try:
            return json.loads(content)
        except ValueError as e:
            raise DevicePayloadError(f"Invalid JSON from {url}: {e}") from e

    def fetch_status(self) -> RemoteStatus:
        """Get the live status from the device"""
        data = self._request("GET", "/status")
        try:
            return RemoteStatus.model_validate(data)
        except ValidationError as e:
            raise DevicePayloadError(f"Malformed status payload: {e}") from e

    def fetch_logs(self, limit: int = 20) -> List[Reading]:
        """Get the latest logged readings, newest first"""
        data = self._request("GET", "/logs", params={"limit": limit})
        if not isinstance(data, list):
            raise DevicePayloadError(f"Expected a list of readings, got {type(data).__name__}")
        try:
            return [RemoteReading.model_validate(item).to_reading() for item in data]
        except ValidationError as e:
            raise DevicePayloadError(f"Malformed log entry: {e}") from e

    def post_schedule(self, schedule: TurningSchedule):
        """Send the turning schedule to the device"""
        self._request("POST", "/schedule", json={
            "turns_per_day": schedule.turns_per_day,
            "interval_hours": schedule.interval_hours
        })
        logger.info(f"Schedule sent to device: {schedule.turns_per_day} turns every {schedule.interval_hours}h")

    def close(self):
        self.session.close()
