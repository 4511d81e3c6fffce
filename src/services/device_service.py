"""Device link service.

Implements the two-phase handshake that gives the desktop companion app
a credential of its own:

1. A signed-in user asks for a short-lived 6-digit pairing code.
2. The desktop app exchanges that code for a long-lived bearer token.

Also resolves bearer tokens for device-authenticated endpoints and
manages already-linked devices.
"""

import re
import uuid
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.config import settings
from src.core.security import (
    DEVICE_TOKEN_PREFIX,
    generate_device_access_token,
    generate_pairing_code,
)
from src.logging_config import get_logger, redact_token
from src.models.device_token import DeviceToken
from src.models.user import User

logger = get_logger(__name__)

_CODE_PATTERN = re.compile(r"[0-9]{6}")
_CODE_ATTEMPTS = 3
_DEFAULT_DISPLAY_NAME = "Driver"


class PairingCodeFormatError(ValueError):
    """Submitted pairing code is not a 6-digit string."""


class PairingCodeError(Exception):
    """Pairing code is unknown, already exchanged, or expired.

    Deliberately carries no detail about which: a guessing client must
    not be able to tell the cases apart.
    """


class DeviceTokenStoreError(Exception):
    """The store failed while writing a device token."""


@dataclass
class PairingCode:
    """A freshly issued pairing code."""

    code: str
    expires_at: datetime
    expires_in_seconds: int


@dataclass
class LinkedDevice:
    """Result of a successful code exchange."""

    access_token: str
    user_id: uuid.UUID
    display_name: str
    avatar_url: str | None
    expires_at: datetime


def as_utc(value: datetime) -> datetime:
    """Return ``value`` as an aware UTC datetime.

    Some backends (SQLite) hand timestamptz columns back naive.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def is_expired(device_token: DeviceToken, now: datetime | None = None) -> bool:
    """Whether the token's expiry has been reached."""
    now = now or datetime.now(UTC)
    return as_utc(device_token.expires_at) <= now


async def issue_pairing_code(
    db: AsyncSession,
    user_id: uuid.UUID,
) -> PairingCode:
    """Issue a new pairing code for a user.

    Any unverified code the user still holds is deleted first, so at most
    one pending code exists per user. The cleanup is committed on its own
    and is not undone if the insert fails.

    Raises:
        DeviceTokenStoreError: If the code could not be stored.
    """
    try:
        await db.execute(
            delete(DeviceToken).where(
                DeviceToken.user_id == user_id,
                DeviceToken.is_verified.is_(False),
            )
        )
        await db.commit()
    except SQLAlchemyError as exc:
        await db.rollback()
        raise DeviceTokenStoreError("Failed to clear previous pairing codes") from exc

    ttl = timedelta(minutes=settings.device_code_expire_minutes)
    expires_at = datetime.now(UTC) + ttl

    # Retry on a collision with another user's live code
    for _attempt in range(_CODE_ATTEMPTS):
        code = generate_pairing_code()
        db.add(
            DeviceToken(
                user_id=user_id,
                code=code,
                is_verified=False,
                expires_at=expires_at,
            )
        )
        try:
            await db.commit()
            break
        except IntegrityError:
            await db.rollback()
            logger.warning("Pairing code collision, retrying", user_id=str(user_id))
        except SQLAlchemyError as exc:
            await db.rollback()
            raise DeviceTokenStoreError("Failed to store pairing code") from exc
    else:
        raise DeviceTokenStoreError("Failed to generate a unique pairing code")

    logger.info(
        "Pairing code issued",
        user_id=str(user_id),
        expires_at=expires_at.isoformat(),
    )
    return PairingCode(
        code=code,
        expires_at=expires_at,
        expires_in_seconds=int(ttl.total_seconds()),
    )


async def exchange_pairing_code(
    db: AsyncSession,
    code: str,
    device_name: str | None = None,
) -> LinkedDevice:
    """Exchange a pairing code for a bearer token.

    The verified flag is flipped with a conditional update keyed on the
    record still being unverified, so of two concurrent exchanges of the
    same code exactly one succeeds.

    Raises:
        PairingCodeFormatError: Code is not exactly six digits.
        PairingCodeError: Code unknown, already used, or expired.
        DeviceTokenStoreError: The store failed during the exchange.
    """
    if not isinstance(code, str) or not _CODE_PATTERN.fullmatch(code):
        raise PairingCodeFormatError("Invalid code format")

    now = datetime.now(UTC)

    result = await db.execute(
        select(DeviceToken).where(
            DeviceToken.code == code,
            DeviceToken.is_verified.is_(False),
        )
    )
    pending = result.scalar_one_or_none()
    if pending is None:
        raise PairingCodeError("Invalid or expired code")

    if is_expired(pending, now):
        try:
            await db.execute(delete(DeviceToken).where(DeviceToken.id == pending.id))
            await db.commit()
        except SQLAlchemyError as exc:
            await db.rollback()
            raise DeviceTokenStoreError("Failed to discard expired code") from exc
        logger.info("Expired pairing code discarded", user_id=str(pending.user_id))
        raise PairingCodeError("Invalid or expired code")

    access_token = generate_device_access_token()
    expires_at = now + timedelta(days=settings.device_token_expire_days)
    user_id = pending.user_id

    try:
        result = await db.execute(
            update(DeviceToken)
            .where(
                DeviceToken.id == pending.id,
                DeviceToken.is_verified.is_(False),
            )
            .values(
                access_token=access_token,
                is_verified=True,
                code=None,
                device_name=device_name or settings.device_default_name,
                last_used_at=now,
                expires_at=expires_at,
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            await db.rollback()
            logger.warning("Pairing code lost exchange race", user_id=str(user_id))
            raise PairingCodeError("Invalid or expired code")
        await db.commit()
    except SQLAlchemyError as exc:
        await db.rollback()
        raise DeviceTokenStoreError("Failed to verify pairing code") from exc

    profile = await db.execute(
        select(User.display_name, User.avatar_url).where(User.id == user_id)
    )
    row = profile.one_or_none()

    logger.info(
        "Device linked",
        user_id=str(user_id),
        access_token=redact_token(access_token),
    )
    return LinkedDevice(
        access_token=access_token,
        user_id=user_id,
        display_name=(row.display_name if row else None) or _DEFAULT_DISPLAY_NAME,
        avatar_url=row.avatar_url if row else None,
        expires_at=expires_at,
    )


async def resolve_access_token(
    db: AsyncSession,
    access_token: str,
) -> DeviceToken | None:
    """Resolve a bearer token to its verified, unexpired device record.

    Read-only: expired records are reported as absent but left in place
    for the sweep.
    """
    if not access_token.startswith(DEVICE_TOKEN_PREFIX):
        return None

    result = await db.execute(
        select(DeviceToken).where(
            DeviceToken.access_token == access_token,
            DeviceToken.is_verified.is_(True),
        )
    )
    device_token = result.scalar_one_or_none()
    if device_token is None or is_expired(device_token):
        return None
    return device_token


async def list_linked_devices(
    db: AsyncSession,
    user_id: uuid.UUID,
) -> list[DeviceToken]:
    """List a user's verified, unexpired devices, most recently used first."""
    result = await db.execute(
        select(DeviceToken)
        .where(
            DeviceToken.user_id == user_id,
            DeviceToken.is_verified.is_(True),
            DeviceToken.expires_at > datetime.now(UTC),
        )
        .order_by(DeviceToken.last_used_at.desc())
    )
    return list(result.scalars().all())


async def revoke_device_token(
    db: AsyncSession,
    device_id: uuid.UUID,
    user_id: uuid.UUID,
) -> bool:
    """Delete a linked device owned by the given user.

    Returns:
        True if a device was removed, False if not found.
    """
    result = await db.execute(
        delete(DeviceToken).where(
            DeviceToken.id == device_id,
            DeviceToken.user_id == user_id,
            DeviceToken.is_verified.is_(True),
        )
    )
    await db.commit()
    removed = result.rowcount > 0
    if removed:
        logger.info(
            "Device revoked",
            user_id=str(user_id),
            device_id=str(device_id),
        )
    return removed


async def purge_expired_device_tokens(db: AsyncSession) -> int:
    """Delete every pairing code and bearer token past its expiry.

    Returns:
        Number of records removed.
    """
    result = await db.execute(
        delete(DeviceToken)
        .where(DeviceToken.expires_at <= datetime.now(UTC))
        .execution_options(synchronize_session=False)
    )
    await db.commit()
    count = result.rowcount
    if count > 0:
        logger.info("Purged expired device tokens", count=count)
    return count
