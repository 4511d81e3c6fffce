"""Device link schemas.

Request/response bodies for pairing code issuance, code exchange and
linked device management.
"""

import uuid
from datetime import datetime

from pydantic import BaseModel, Field, field_validator


class PairingCodeResponse(BaseModel):
    """Response schema for POST /api/auth/device."""

    code: str
    expires_at: datetime
    expires_in_seconds: int


class DeviceVerifyRequest(BaseModel):
    """Request schema for POST /api/auth/device/verify."""

    code: str = Field(..., description="6-digit pairing code shown on the dashboard")
    device_name: str | None = Field(
        default=None,
        max_length=100,
        description="Label for the linked device",
    )

    @field_validator("device_name")
    @classmethod
    def strip_device_name(cls, v: str | None) -> str | None:
        """Strip whitespace and convert empty strings to None."""
        if v is not None:
            v = v.strip()
            if not v:
                return None
        return v


class DeviceVerifyResponse(BaseModel):
    """Response schema for a successful code exchange."""

    access_token: str
    user_id: uuid.UUID
    display_name: str
    avatar_url: str | None = None
    expires_at: datetime


class LinkedDeviceResponse(BaseModel):
    """A linked device as shown on the account settings page."""

    model_config = {"from_attributes": True}

    id: uuid.UUID
    device_name: str | None
    last_used_at: datetime | None
    expires_at: datetime
    created_at: datetime


class LinkedDeviceListResponse(BaseModel):
    """Response schema for GET /api/auth/devices."""

    devices: list[LinkedDeviceResponse]
    total: int
