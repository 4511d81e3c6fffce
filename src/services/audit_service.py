"""Security audit logging service.

Records device link lifecycle events (code issued, device linked, link
failed, device revoked) to the security_audit_logs table.
"""

import json
import uuid
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.logging_config import get_logger
from src.models.security_audit_log import SecurityAuditLog

logger = get_logger(__name__)

DEVICE_CODE_ISSUED = "device.code_issued"
DEVICE_LINKED = "device.linked"
DEVICE_LINK_FAILED = "device.link_failed"
DEVICE_REVOKED = "device.revoked"


async def log_event(
    db: AsyncSession,
    event_type: str,
    user_id: uuid.UUID | None = None,
    detail: dict[str, Any] | None = None,
    ip_address: str | None = None,
) -> None:
    """Write and commit a security audit log entry.

    Callers commit their own change first; the entry goes in its own
    transaction. Fire-and-forget: logs errors but never raises, and a
    failed write is rolled back so the session stays usable.
    """
    entry = SecurityAuditLog(
        event_type=event_type,
        user_id=user_id,
        detail=json.dumps(detail, default=str) if detail else None,
        ip_address=ip_address,
    )
    try:
        db.add(entry)
        await db.commit()
    except Exception:
        logger.exception(
            "Failed to write audit log",
            event_type=event_type,
        )
        try:
            await db.rollback()
        except SQLAlchemyError:
            logger.exception("Failed to roll back audit log write")
