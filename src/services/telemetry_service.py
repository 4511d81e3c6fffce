"""Telemetry ingestion service.

Presence updates from heartbeats and disconnects, and auto-approved
job records submitted by a linked desktop app.
"""

import uuid
from datetime import UTC, datetime
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.logging_config import get_logger
from src.models.device_token import DeviceToken
from src.models.job import Job, JobStatus
from src.models.user import User
from src.models.vehicle import Trailer, Truck
from src.schemas.telemetry import HeartbeatRequest, TelemetryJobRequest

logger = get_logger(__name__)

_WHOLE = Decimal("1")
_CENTS = Decimal("0.01")


class TelemetryPersistenceError(Exception):
    """Telemetry could not be written to the store."""


class InvalidVehicleError(Exception):
    """A referenced truck or trailer does not belong to the submitting user."""


def round_distance(value: float) -> int:
    """Round a distance to whole kilometres, halves away from zero."""
    return int(Decimal(str(value)).quantize(_WHOLE, rounding=ROUND_HALF_UP))


def round_money(value: float) -> Decimal:
    """Round to two decimal places, halves away from zero.

    Goes through ``str`` so the decimal the client wrote is rounded, not
    its binary float approximation (2499.995 -> 2500.00).
    """
    return Decimal(str(value)).quantize(_CENTS, rounding=ROUND_HALF_UP)


async def record_heartbeat(
    db: AsyncSession,
    device_token: DeviceToken,
    snapshot: HeartbeatRequest | None = None,
) -> datetime:
    """Mark the device's owner online and refresh the device's last use.

    Returns:
        The server timestamp recorded as last seen.
    """
    now = datetime.now(UTC)
    try:
        device_token.last_used_at = now
        await db.execute(
            update(User)
            .where(User.id == device_token.user_id)
            .values(is_online=True, last_seen_at=now)
        )
        await db.commit()
    except SQLAlchemyError as exc:
        await db.rollback()
        raise TelemetryPersistenceError("Failed to record heartbeat") from exc

    if snapshot is not None and snapshot.game_running is not None:
        logger.debug(
            "Heartbeat received",
            user_id=str(device_token.user_id),
            game_running=snapshot.game_running,
            current_city=snapshot.current_city,
        )
    return now


async def record_disconnect(
    db: AsyncSession,
    device_token: DeviceToken | None,
) -> bool:
    """Mark the device's owner offline.

    A missing or unresolvable device is a no-op. The device's
    ``last_used_at`` is left alone: disconnecting is not use.

    Returns:
        True if a presence update was written.
    """
    if device_token is None:
        return False

    now = datetime.now(UTC)
    try:
        await db.execute(
            update(User)
            .where(User.id == device_token.user_id)
            .values(is_online=False, last_seen_at=now)
        )
        await db.commit()
    except SQLAlchemyError as exc:
        await db.rollback()
        raise TelemetryPersistenceError("Failed to record disconnect") from exc

    logger.info("Desktop app disconnected", user_id=str(device_token.user_id))
    return True


async def _check_vehicle_ownership(
    db: AsyncSession,
    user_id: uuid.UUID,
    truck_id: uuid.UUID | None,
    trailer_id: uuid.UUID | None,
) -> None:
    if truck_id is not None:
        result = await db.execute(
            select(Truck.id).where(Truck.id == truck_id, Truck.user_id == user_id)
        )
        if result.scalar_one_or_none() is None:
            raise InvalidVehicleError("Invalid truck")

    if trailer_id is not None:
        result = await db.execute(
            select(Trailer.id).where(
                Trailer.id == trailer_id,
                Trailer.user_id == user_id,
            )
        )
        if result.scalar_one_or_none() is None:
            raise InvalidVehicleError("Invalid trailer")


async def submit_telemetry_job(
    db: AsyncSession,
    device_token: DeviceToken,
    request: TelemetryJobRequest,
) -> Job:
    """Store a completed delivery reported by the desktop app.

    The job is stored approved. The job insert and the vehicle counter
    increments commit together or not at all; counters are bumped with
    in-place SQL arithmetic so concurrent submissions for the same truck
    never lose an increment.

    Raises:
        InvalidVehicleError: Truck or trailer not owned by the user.
        TelemetryPersistenceError: The store rejected the write.
    """
    user_id = device_token.user_id
    distance_km = round_distance(request.distance_km)
    revenue = round_money(request.revenue)
    damage_percent = round_money(request.damage_percent)

    await _check_vehicle_ownership(db, user_id, request.truck_id, request.trailer_id)

    now = datetime.now(UTC)
    job = Job(
        user_id=user_id,
        game=request.game.value,
        server=request.server,
        cargo=request.cargo,
        source_city=request.source_city,
        destination_city=request.destination_city,
        distance_km=distance_km,
        revenue=revenue,
        damage_percent=damage_percent,
        truck_id=request.truck_id,
        trailer_id=request.trailer_id,
        completed_at=now,
        status=JobStatus.APPROVED.value,
        reviewed_at=now,
        is_telemetry_job=True,
        telemetry_data=request.telemetry_data,
    )

    try:
        device_token.last_used_at = now
        db.add(job)
        await db.flush()

        if request.truck_id is not None:
            result = await db.execute(
                update(Truck)
                .where(Truck.id == request.truck_id, Truck.user_id == user_id)
                .values(
                    total_km=Truck.total_km + distance_km,
                    total_revenue=Truck.total_revenue + revenue,
                    total_jobs=Truck.total_jobs + 1,
                )
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                raise TelemetryPersistenceError(
                    "Truck disappeared before counter update"
                )

        if request.trailer_id is not None:
            result = await db.execute(
                update(Trailer)
                .where(Trailer.id == request.trailer_id, Trailer.user_id == user_id)
                .values(
                    total_km=Trailer.total_km + distance_km,
                    total_jobs=Trailer.total_jobs + 1,
                )
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                raise TelemetryPersistenceError(
                    "Trailer disappeared before counter update"
                )

        await db.commit()
    except TelemetryPersistenceError:
        await db.rollback()
        raise
    except SQLAlchemyError as exc:
        await db.rollback()
        raise TelemetryPersistenceError("Failed to store telemetry job") from exc

    logger.info(
        "Telemetry job stored",
        user_id=str(user_id),
        job_id=str(job.id),
        game=job.game,
        distance_km=distance_km,
    )
    return job
