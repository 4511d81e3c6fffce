"""Telemetry schemas for the desktop companion app."""

import uuid
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from src.models.job import GameType


class HeartbeatRequest(BaseModel):
    """Optional status snapshot sent with a heartbeat.

    Never required: the heartbeat endpoint accepts an empty, malformed
    or partially filled body.
    """

    model_config = ConfigDict(extra="ignore")

    game_running: bool | None = None
    current_city: str | None = None
    current_job: dict[str, Any] | None = None

    @classmethod
    def from_body(cls, raw: bytes) -> "HeartbeatRequest":
        """Parse a raw request body, falling back to an empty snapshot."""
        if not raw:
            return cls()
        try:
            return cls.model_validate_json(raw)
        except ValidationError:
            return cls()


class HeartbeatResponse(BaseModel):
    """Response schema for POST /api/telemetry/heartbeat."""

    success: bool
    timestamp: datetime
    next_heartbeat_in: int = Field(
        ..., description="Seconds until the client should send the next heartbeat"
    )


class DisconnectResponse(BaseModel):
    """Response schema for DELETE /api/telemetry/heartbeat."""

    success: bool


# Per-job ceilings keep stored values and vehicle totals inside their
# integer and NUMERIC(12, 2) columns
MAX_JOB_DISTANCE_KM = 100_000
MAX_JOB_REVENUE = 100_000_000


class TelemetryJobRequest(BaseModel):
    """Request schema for POST /api/telemetry/job.

    Distances, revenue and damage arrive as raw game floats; rounding to
    stored precision happens in the telemetry service.
    """

    model_config = ConfigDict(allow_inf_nan=False)

    game: GameType
    server: str | None = Field(default=None, max_length=100)
    cargo: str = Field(..., min_length=1, max_length=200)
    source_city: str = Field(..., min_length=1, max_length=100)
    destination_city: str = Field(..., min_length=1, max_length=100)
    # 0.5 is the smallest distance that rounds to a whole kilometre
    distance_km: float = Field(..., ge=0.5, le=MAX_JOB_DISTANCE_KM)
    revenue: float = Field(..., ge=0, le=MAX_JOB_REVENUE)
    damage_percent: float = Field(default=0, ge=0, le=100)
    truck_id: uuid.UUID | None = None
    trailer_id: uuid.UUID | None = None
    telemetry_data: dict[str, Any] | None = None

    @field_validator("server", "truck_id", "trailer_id", mode="before")
    @classmethod
    def empty_string_to_none(cls, v: Any) -> Any:
        """Clients send "" for absent optional references."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("cargo", "source_city", "destination_city")
    @classmethod
    def require_text(cls, v: str) -> str:
        """Reject values that are only whitespace."""
        if not v.strip():
            raise ValueError("must not be blank")
        return v


class TelemetryJobResponse(BaseModel):
    """Response schema for a stored telemetry job."""

    success: bool
    job_id: uuid.UUID
    message: str
