"""Security utilities.

Session JWT verification for web-authenticated endpoints, and the
random material used by the device link handshake.
"""

import secrets
import uuid
from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from src.config import settings

# Pairing codes are 6-digit numbers in [100000, 999999]
PAIRING_CODE_MIN = 100_000
PAIRING_CODE_SPAN = 900_000

DEVICE_TOKEN_PREFIX = "vtc_"


# ============================================================================
# Session JWTs
# ============================================================================


def create_access_token(
    user_id: uuid.UUID,
    expires_delta: timedelta | None = None,
) -> str:
    """Create a session JWT for a web user.

    Sessions are normally minted by the web application; this mirrors its
    claim layout so operators and tests can produce compatible tokens.

    Args:
        user_id: User's unique identifier
        expires_delta: Optional custom expiration time (default 24 hours)

    Returns:
        Encoded JWT token string
    """
    if expires_delta is None:
        expires_delta = timedelta(hours=24)

    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "exp": now + expires_delta,
        "iat": now,
        "type": "access",
    }

    return jwt.encode(
        payload,
        settings.secret_key,
        algorithm=settings.jwt_algorithm,
    )


def decode_access_token(token: str) -> dict | None:
    """Decode and validate a session JWT.

    Args:
        token: The JWT token string to decode

    Returns:
        Token payload dict if valid, None if invalid or expired
    """
    try:
        payload = jwt.decode(
            token,
            settings.secret_key,
            algorithms=[settings.jwt_algorithm],
        )
    except JWTError:
        return None

    if payload.get("type") != "access":
        return None

    return payload


class TokenData:
    """Parsed session token data for type safety."""

    def __init__(self, payload: dict):
        self.user_id: uuid.UUID = uuid.UUID(payload["sub"])
        self.exp: datetime = datetime.fromtimestamp(payload["exp"], tz=timezone.utc)


# ============================================================================
# Device link material
# ============================================================================


def generate_pairing_code() -> str:
    """Generate a uniformly distributed 6-digit pairing code.

    ``secrets.randbelow`` rejection-samples, so every code in the range
    is equally likely.
    """
    return str(secrets.randbelow(PAIRING_CODE_SPAN) + PAIRING_CODE_MIN)


def generate_device_access_token() -> str:
    """Generate an opaque bearer token for a linked device."""
    return DEVICE_TOKEN_PREFIX + secrets.token_hex(16)
