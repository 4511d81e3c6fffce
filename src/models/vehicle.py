"""Truck and trailer models.

Vehicles are managed from the garage pages of the web application.
This service only checks ownership and bumps the cumulative counters
when a telemetry job references a vehicle.
"""

import uuid
from decimal import Decimal

from sqlalchemy import ForeignKey, Integer, Numeric, String, text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from src.models.base import Base, TimestampMixin


class Truck(Base, TimestampMixin):
    """A driver's truck with lifetime totals."""

    __tablename__ = "trucks"

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
    game: Mapped[str] = mapped_column(String(10), nullable=False)
    brand: Mapped[str] = mapped_column(String(50), nullable=False)
    model: Mapped[str] = mapped_column(String(50), nullable=False)
    custom_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    total_jobs: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default=text("0")
    )
    total_km: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default=text("0")
    )
    total_revenue: Mapped[Decimal] = mapped_column(
        Numeric(14, 2), nullable=False, default=Decimal("0"), server_default=text("0")
    )

    def __repr__(self) -> str:
        return f"<Truck(id={self.id}, {self.brand} {self.model})>"


class Trailer(Base, TimestampMixin):
    """A driver's trailer."""

    __tablename__ = "trailers"

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
    game: Mapped[str] = mapped_column(String(10), nullable=False)
    trailer_type: Mapped[str] = mapped_column(String(50), nullable=False)
    custom_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    total_jobs: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default=text("0")
    )
    total_km: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default=text("0")
    )

    def __repr__(self) -> str:
        return f"<Trailer(id={self.id}, type={self.trailer_type})>"
