"""User profile model.

Accounts are created and managed by the web application; this service
reads display metadata at device link time and maintains the presence
fields (is_online, last_seen_at) from desktop heartbeats.
"""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, String, false
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.models.base import Base, TimestampMixin


class User(Base, TimestampMixin):
    """Driver account and public profile.

    Attributes:
        id: Unique user identifier (UUID)
        email: Login email, owned by the web application
        display_name: Name shown on the dashboard and desktop app
        avatar_url: Optional avatar image reference
        is_active: Whether the account may authenticate
        is_online: True while a linked desktop app is sending heartbeats
        last_seen_at: Timestamp of the last heartbeat or disconnect
    """

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
        index=True,
    )
    display_name: Mapped[str | None] = mapped_column(
        String(50),
        nullable=True,
    )
    avatar_url: Mapped[str | None] = mapped_column(
        String(500),
        nullable=True,
    )
    is_active: Mapped[bool] = mapped_column(
        default=True,
    )
    is_online: Mapped[bool] = mapped_column(
        nullable=False,
        default=False,
        server_default=false(),
    )
    last_seen_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    device_tokens = relationship(
        "DeviceToken",
        back_populates="user",
        cascade="all, delete-orphan",
    )
    jobs = relationship(
        "Job",
        back_populates="user",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, display_name={self.display_name})>"
