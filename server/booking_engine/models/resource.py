"""Resource model definition."""

from datetime import datetime

from sqlalchemy import JSON, Boolean, DateTime, String, func
from sqlalchemy.orm import Mapped, mapped_column

from ..core.database import Base


class ResourceRecord(Base):
    """Catalog entry for a bookable car or tour."""

    __tablename__ = "resources"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)

    kind: Mapped[str] = mapped_column(String(16), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    granularity: Mapped[str] = mapped_column(String(8), nullable=False)

    # Operating calendar: weekday numbers (0 = Monday) and ISO dates
    weekdays: Mapped[list[int]] = mapped_column(JSON, nullable=False, default=list)
    dates: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    slot_templates: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)

    is_available: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, server_default=func.now())

    def __repr__(self) -> str:
        return f"<ResourceRecord(id={self.id}, kind='{self.kind}', granularity='{self.granularity}')>"
