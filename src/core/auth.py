"""Session authentication dependency for web-facing endpoints.

The web application owns login and session issuance. Requests reach
this service carrying its signed session JWT either as an httpOnly
cookie or as an Authorization Bearer header; this module only
validates it and resolves the user.
"""

from typing import Annotated

from fastapi import Cookie, Depends, HTTPException, Request, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.config import settings
from src.core.security import TokenData, decode_access_token
from src.database import get_db
from src.logging_config import get_logger
from src.models.user import User

logger = get_logger(__name__)


async def get_current_user(
    request: Request,
    session_token: Annotated[str | None, Cookie(alias=settings.jwt_cookie_name)] = None,
    db: AsyncSession = Depends(get_db),
) -> User:
    """Extract and validate the current web user.

    Auth paths (checked in order):
    1. httpOnly session cookie
    2. Authorization Bearer JWT

    Returns:
        The authenticated User object

    Raises:
        HTTPException 401: If no valid session is found
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Unauthorized",
        headers={"WWW-Authenticate": "Bearer"},
    )

    if not session_token:
        auth_header = request.headers.get("Authorization")
        if auth_header and auth_header.startswith("Bearer "):
            session_token = auth_header[7:]

    if not session_token:
        raise credentials_exception

    payload = decode_access_token(session_token)
    if payload is None:
        raise credentials_exception

    try:
        token_data = TokenData(payload)
    except (KeyError, ValueError):
        raise credentials_exception

    result = await db.execute(select(User).where(User.id == token_data.user_id))
    user = result.scalar_one_or_none()
    if user is None or not user.is_active:
        logger.warning(
            "Session for unknown or disabled user",
            user_id=str(token_data.user_id),
            path=request.url.path,
        )
        raise credentials_exception
    return user


# Type alias for cleaner route signatures
CurrentUser = Annotated[User, Depends(get_current_user)]
