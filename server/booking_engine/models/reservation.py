"""Reservation and reservation event model definitions."""

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, Integer, String, Text, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..core.database import Base


class ReservationRecord(Base):
    """Persisted reservation of a resource interval."""

    __tablename__ = "reservations"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)

    resource_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("resources.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    # Half-open interval [starts_at, ends_at) in the resource's local time
    starts_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    ends_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    status: Mapped[str] = mapped_column(String(16), nullable=False, index=True)
    reference: Mapped[str] = mapped_column(String(32), nullable=False, unique=True)
    customer_ref: Mapped[str | None] = mapped_column(String(128), nullable=True, index=True)
    cancellation_reason: Mapped[str | None] = mapped_column(String(32), nullable=True)

    # Set once by the coordinator's clock; hold expiry is measured from it
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)

    __table_args__ = (
        CheckConstraint("starts_at < ends_at", name="ck_reservation_interval_not_empty"),
        Index(
            "uq_reservation_active_interval",
            "resource_id",
            "starts_at",
            "ends_at",
            unique=True,
            postgresql_where=text("status <> 'cancelled'"),
            sqlite_where=text("status <> 'cancelled'"),
        ),
    )

    events: Mapped[list["ReservationEventRecord"]] = relationship(
        "ReservationEventRecord",
        back_populates="reservation",
        cascade="all, delete-orphan",
        order_by="ReservationEventRecord.sequence",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return (
            f"<ReservationRecord(id={self.id}, resource_id={self.resource_id}, "
            f"starts_at={self.starts_at}, ends_at={self.ends_at}, status={self.status})>"
        )


class ReservationEventRecord(Base):
    """Append-only history entry of a reservation."""

    __tablename__ = "reservation_events"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)

    reservation_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("reservations.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    sequence: Mapped[int] = mapped_column(Integer, nullable=False)
    action: Mapped[str] = mapped_column(String(32), nullable=False)
    at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    note: Mapped[str | None] = mapped_column(Text, nullable=True)

    reservation: Mapped["ReservationRecord"] = relationship("ReservationRecord", back_populates="events")
