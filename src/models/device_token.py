"""Device token model for desktop app pairing.

A single record serves both phases of the device link handshake:
while ``is_verified`` is false it is a short-lived pairing code shown
to the user; once exchanged it carries the long-lived bearer token the
desktop app authenticates with. The transition is one-way.
"""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, String, false, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.models.base import Base


class DeviceToken(Base):
    """Pairing code / bearer credential for a linked desktop app."""

    __tablename__ = "device_tokens"
    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # Cleared on exchange; only looked up together with is_verified = false
    code: Mapped[str | None] = mapped_column(
        String(6),
        nullable=True,
        unique=True,
    )

    access_token: Mapped[str | None] = mapped_column(
        String(64),
        nullable=True,
        unique=True,
        index=True,
    )

    is_verified: Mapped[bool] = mapped_column(
        nullable=False,
        default=False,
        server_default=false(),
    )

    device_name: Mapped[str | None] = mapped_column(
        String(100),
        nullable=True,
    )

    expires_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        index=True,
    )

    last_used_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    user = relationship("User", back_populates="device_tokens")

    def __repr__(self) -> str:
        return (
            f"<DeviceToken(user_id={self.user_id}, "
            f"verified={self.is_verified}, device={self.device_name})>"
        )
