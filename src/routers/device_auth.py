"""Device link endpoints.

A signed-in user requests a pairing code from the dashboard and types
it into the desktop app, which exchanges it for its own bearer token.
"""

import uuid

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.auth import CurrentUser
from src.database import get_db
from src.logging_config import get_logger
from src.middleware.rate_limit import get_client_ip, limiter
from src.schemas.device_auth import (
    DeviceVerifyRequest,
    DeviceVerifyResponse,
    LinkedDeviceListResponse,
    LinkedDeviceResponse,
    PairingCodeResponse,
)
from src.services import audit_service
from src.services.audit_service import log_event
from src.services.device_service import (
    DeviceTokenStoreError,
    PairingCodeError,
    PairingCodeFormatError,
    exchange_pairing_code,
    issue_pairing_code,
    list_linked_devices,
    revoke_device_token,
)

logger = get_logger(__name__)

router = APIRouter(prefix="/api/auth", tags=["device-auth"])


@router.post("/device", response_model=PairingCodeResponse)
@limiter.limit("10/minute")
async def issue_device_code(
    request: Request,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db),
) -> PairingCodeResponse:
    """Issue a 6-digit pairing code for linking the desktop app.

    Replaces any pending code the user already holds.
    """
    try:
        pairing = await issue_pairing_code(db, current_user.id)
    except DeviceTokenStoreError:
        logger.exception("Failed to issue pairing code", user_id=str(current_user.id))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to generate code",
        )

    await log_event(
        db,
        event_type=audit_service.DEVICE_CODE_ISSUED,
        user_id=current_user.id,
        detail={"expires_at": pairing.expires_at.isoformat()},
        ip_address=get_client_ip(request),
    )

    return PairingCodeResponse(
        code=pairing.code,
        expires_at=pairing.expires_at,
        expires_in_seconds=pairing.expires_in_seconds,
    )


@router.post("/device/verify", response_model=DeviceVerifyResponse)
@limiter.limit("10/minute")
async def verify_device_code(
    body: DeviceVerifyRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> DeviceVerifyResponse:
    """Exchange a pairing code for a device bearer token.

    Unauthenticated: possession of a live code is the credential.
    """
    try:
        linked = await exchange_pairing_code(db, body.code, body.device_name)
    except PairingCodeFormatError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid code format",
        )
    except PairingCodeError:
        await log_event(
            db,
            event_type=audit_service.DEVICE_LINK_FAILED,
            ip_address=get_client_ip(request),
        )
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid or expired code",
        )
    except DeviceTokenStoreError:
        logger.exception("Failed to exchange pairing code")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to verify code",
        )

    await log_event(
        db,
        event_type=audit_service.DEVICE_LINKED,
        user_id=linked.user_id,
        detail={"device_name": body.device_name},
        ip_address=get_client_ip(request),
    )

    return DeviceVerifyResponse(
        access_token=linked.access_token,
        user_id=linked.user_id,
        display_name=linked.display_name,
        avatar_url=linked.avatar_url,
        expires_at=linked.expires_at,
    )


@router.get("/devices", response_model=LinkedDeviceListResponse)
@limiter.limit("30/minute")
async def list_devices(
    request: Request,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db),
) -> LinkedDeviceListResponse:
    """List the current user's linked desktop apps (tokens never included)."""
    devices = await list_linked_devices(db, current_user.id)
    return LinkedDeviceListResponse(
        devices=[LinkedDeviceResponse.model_validate(d) for d in devices],
        total=len(devices),
    )


@router.delete("/devices/{device_id}", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit("10/minute")
async def revoke_device(
    device_id: uuid.UUID,
    request: Request,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db),
) -> Response:
    """Revoke a linked device; its token stops working immediately."""
    removed = await revoke_device_token(db, device_id, current_user.id)
    if not removed:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Device not found",
        )

    await log_event(
        db,
        event_type=audit_service.DEVICE_REVOKED,
        user_id=current_user.id,
        detail={"device_id": str(device_id)},
        ip_address=get_client_ip(request),
    )

    return Response(status_code=status.HTTP_204_NO_CONTENT)
