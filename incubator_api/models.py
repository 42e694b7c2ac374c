"""
Data models module
All Pydantic models for incubator state, configuration and API responses
"""
import math
from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .schedule import calculate_schedule


# Enums
class MotorStatus(str, Enum):
    RUNNING = "running"
    IDLE = "idle"


class Classification(str, Enum):
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"


class AlertCategory(str, Enum):
    TEMPERATURE = "temperature"
    HUMIDITY = "humidity"
    TURNING = "turning"


class AlertSeverity(str, Enum):
    WARNING = "warning"
    CRITICAL = "critical"


# Incubator state
class Reading(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "id": "reading-1728390600000-1",
                "timestamp": "2025-10-08T12:30:00Z",
                "temperature": 37.8,
                "humidity": 58.2,
                "egg_turning": False,
                "motor_status": "idle"
            }
        }
    )

    id: str = Field(description="Unique reading identifier")
    timestamp: datetime = Field(description="UTC timestamp of the reading")
    temperature: float = Field(description="Temperature in °C")
    humidity: float = Field(description="Relative humidity in %")
    egg_turning: bool = Field(False, description="True if the reading coincides with an egg turning event")
    motor_status: MotorStatus = Field(MotorStatus.IDLE, description="Turning motor state")


class Status(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "temperature": 37.8,
                "humidity": 60.1,
                "motor_status": "idle",
                "turns_today": 2,
                "next_turn_in": 4210,
                "last_updated": "2025-10-08T12:30:05Z",
                "connected": True
            }
        }
    )

    temperature: float = Field(description="Current temperature in °C")
    humidity: float = Field(description="Current relative humidity in %")
    motor_status: MotorStatus = Field(MotorStatus.IDLE, description="Turning motor state")
    turns_today: int = Field(0, ge=0, description="Turns completed in the current day")
    next_turn_in: int = Field(0, ge=0, description="Seconds until the next scheduled turn")
    last_updated: datetime = Field(description="UTC timestamp of the last refresh")
    connected: bool = Field(True, description="False if the last device refresh failed")


class AlertConfig(BaseModel):
    temp_min: float = Field(37.0, description="Minimum acceptable temperature in °C")
    temp_max: float = Field(38.5, description="Maximum acceptable temperature in °C")
    humidity_min: float = Field(55.0, description="Minimum acceptable humidity in %")
    humidity_max: float = Field(65.0, description="Maximum acceptable humidity in %")

    @field_validator('temp_min', 'temp_max', 'humidity_min', 'humidity_max')
    @classmethod
    def must_be_finite(cls, v):
        if not math.isfinite(v):
            raise ValueError('threshold must be a finite number')
        return v

    @model_validator(mode='after')
    def min_must_not_exceed_max(self):
        if self.temp_min > self.temp_max:
            raise ValueError('temp_min must be <= temp_max')
        if self.humidity_min > self.humidity_max:
            raise ValueError('humidity_min must be <= humidity_max')
        return self

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "temp_min": 37.0,
                "temp_max": 38.5,
                "humidity_min": 55,
                "humidity_max": 65
            }
        }
    )


class Alert(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Unique alert identifier")
    category: AlertCategory = Field(description="What the alert is about")
    severity: AlertSeverity = Field(description="warning for low readings, critical for high readings")
    message: str = Field(description="Human-readable description including the offending value and bound")
    timestamp: datetime = Field(description="UTC creation timestamp")
    acknowledged: bool = Field(False, description="True once an operator acknowledged the alert")


class TurningSchedule(BaseModel):
    turns_per_day: int = Field(3, ge=1, le=24, description="Number of egg turns per day. Valid range: 1-24")
    interval_hours: float = Field(8.0, ge=1, le=24, description="Hours between turns. Valid range: 1-24")
    times: List[str] = Field(
        default_factory=list,
        description="Times of day (HH:MM) derived from turns_per_day and interval_hours, starting at 08:00"
    )

    @model_validator(mode='after')
    def derive_times(self):
        # Always derived, client-supplied times are ignored
        self.times = calculate_schedule(self.turns_per_day, self.interval_hours)
        return self

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "turns_per_day": 3,
                "interval_hours": 8,
                "times": ["08:00", "16:00", "00:00"]
            }
        }
    )


class MockMode(BaseModel):
    use_mock_data: bool = Field(description="True to simulate data locally, False to poll the device")


# Device payloads
class RemoteStatus(BaseModel):
    temperature: float
    humidity: float
    motor_status: MotorStatus
    turns_today: int = Field(ge=0)
    next_turn_in: int = Field(ge=0)


class RemoteReading(BaseModel):
    id: str
    timestamp: datetime
    temperature: float
    humidity: float
    egg_turning: bool
    motor_status: MotorStatus

    def to_reading(self) -> Reading:
        return Reading(**self.model_dump())


class HealthStatus(BaseModel):
    status: str = Field(description="Overall health status: 'healthy' or 'unhealthy'")
    timestamp: datetime = Field(description="UTC timestamp of health check")
    version: str = Field(description="API version")
    use_mock_data: bool = Field(description="True if data is simulated locally")
    device_connected: bool = Field(description="Connectivity flag of the current status snapshot")
    timers_running: bool = Field(description="True if the polling tasks are running")
    last_status_refresh: Optional[datetime] = Field(None, description="UTC timestamp of the last status refresh tick")
    last_error: Optional[str] = Field(None, description="Last device error message, if any")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "status": "healthy",
                "timestamp": "2025-10-08T12:30:00Z",
                "version": "1.0.0",
                "use_mock_data": False,
                "device_connected": True,
                "timers_running": True,
                "last_status_refresh": "2025-10-08T12:29:58Z",
                "last_error": None
            }
        }
    )
