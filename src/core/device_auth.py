"""Bearer authentication for the desktop companion app.

Every device-authenticated endpoint resolves its caller through
``get_current_device``. Failures are reported with one opaque 401;
the reason is only logged, with the token redacted.
"""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.database import get_db
from src.logging_config import get_logger, redact_token
from src.models.device_token import DeviceToken
from src.services.device_service import resolve_access_token

logger = get_logger(__name__)

_BEARER_PREFIX = "Bearer "


def extract_bearer_token(request: Request) -> str | None:
    """Return the token from an ``Authorization: Bearer`` header, if any."""
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith(_BEARER_PREFIX):
        return None
    token = auth_header[len(_BEARER_PREFIX):].strip()
    return token or None


async def get_current_device(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> DeviceToken:
    """Resolve the calling device from its bearer token.

    Raises:
        HTTPException 401: Missing or malformed header, or a token that is
            unknown, unverified or expired.
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid or expired access token",
        headers={"WWW-Authenticate": "Bearer"},
    )

    token = extract_bearer_token(request)
    if token is None:
        logger.warning(
            "Device authentication failed",
            reason="missing_header",
            path=request.url.path,
        )
        raise credentials_exception

    device_token = await resolve_access_token(db, token)
    if device_token is None:
        logger.warning(
            "Device authentication failed",
            reason="unknown_or_expired",
            token=redact_token(token),
            path=request.url.path,
        )
        raise credentials_exception

    return device_token


async def get_optional_device(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> DeviceToken | None:
    """Resolve the calling device if possible, never failing the request."""
    token = extract_bearer_token(request)
    if token is None:
        return None
    return await resolve_access_token(db, token)


# Type aliases for cleaner route signatures
CurrentDevice = Annotated[DeviceToken, Depends(get_current_device)]
OptionalDevice = Annotated[DeviceToken | None, Depends(get_optional_device)]
