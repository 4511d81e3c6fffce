"""Telemetry endpoints for the desktop companion app.

All endpoints authenticate with the device bearer token issued by the
pairing code exchange.
"""

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.config import settings
from src.core.device_auth import CurrentDevice, OptionalDevice
from src.database import get_db
from src.logging_config import get_logger
from src.middleware.rate_limit import limiter
from src.schemas.telemetry import (
    DisconnectResponse,
    HeartbeatRequest,
    HeartbeatResponse,
    TelemetryJobRequest,
    TelemetryJobResponse,
)
from src.services.telemetry_service import (
    InvalidVehicleError,
    TelemetryPersistenceError,
    record_disconnect,
    record_heartbeat,
    submit_telemetry_job,
)

logger = get_logger(__name__)

router = APIRouter(prefix="/api/telemetry", tags=["telemetry"])


@router.post("/heartbeat", response_model=HeartbeatResponse)
@limiter.limit("120/minute")
async def heartbeat(
    request: Request,
    device: CurrentDevice,
    db: AsyncSession = Depends(get_db),
) -> HeartbeatResponse:
    """Mark the driver online.

    The body is an optional status snapshot; anything unparsable is
    treated as empty.
    """
    snapshot = HeartbeatRequest.from_body(await request.body())
    try:
        timestamp = await record_heartbeat(db, device, snapshot)
    except TelemetryPersistenceError:
        logger.exception("Heartbeat failed", user_id=str(device.user_id))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to record heartbeat",
        )

    return HeartbeatResponse(
        success=True,
        timestamp=timestamp,
        next_heartbeat_in=settings.heartbeat_interval_seconds,
    )


@router.delete("/heartbeat", response_model=DisconnectResponse)
async def disconnect(
    request: Request,
    device: OptionalDevice,
    db: AsyncSession = Depends(get_db),
) -> DisconnectResponse:
    """Mark the driver offline.

    A missing or stale token is not an error: there is nothing to update.
    """
    try:
        await record_disconnect(db, device)
    except TelemetryPersistenceError:
        logger.exception("Disconnect update failed")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to record disconnect",
        )
    return DisconnectResponse(success=True)


@router.post("/job", response_model=TelemetryJobResponse)
@limiter.limit("60/minute")
async def submit_job(
    body: TelemetryJobRequest,
    request: Request,
    device: CurrentDevice,
    db: AsyncSession = Depends(get_db),
) -> TelemetryJobResponse:
    """Store a delivery completed in-game, already approved."""
    try:
        job = await submit_telemetry_job(db, device, body)
    except InvalidVehicleError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        )
    except TelemetryPersistenceError:
        logger.exception("Failed to submit telemetry job", user_id=str(device.user_id))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to submit job",
        )

    return TelemetryJobResponse(
        success=True,
        job_id=job.id,
        message="Job submitted successfully",
    )
