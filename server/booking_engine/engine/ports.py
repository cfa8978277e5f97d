"""Collaborators the booking coordinator depends on."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from datetime import datetime
from typing import Protocol
from uuid import UUID

from .domain import Reservation, ReservationStatus, Resource

Clock = Callable[[], datetime]


class ResourceCatalog(Protocol):
    async def get_resource(self, resource_id: str) -> Resource:
        """Return the resource or raise NotFoundError."""
        ...

    async def create_resource(self, resource: Resource) -> Resource:
        """Register a resource or raise ConflictError if the ID is taken."""
        ...


class ReservationStore(Protocol):
    async def add(self, reservation: Reservation) -> None: ...

    async def update(self, reservation: Reservation) -> None: ...

    async def get(self, reservation_id: UUID) -> Reservation | None: ...

    async def list_by_resource(
        self,
        resource_id: str,
        statuses: Iterable[ReservationStatus] | None = None,
    ) -> list[Reservation]: ...

    async def list_by_customer(
        self,
        customer_ref: str,
        statuses: Iterable[ReservationStatus] | None = None,
    ) -> list[Reservation]: ...

    async def list_active(self) -> list[Reservation]: ...

    async def list_pending_created_before(
        self,
        cutoff: datetime,
        limit: int = 100,
        after: tuple[datetime, UUID] | None = None,
    ) -> list[Reservation]:
        """
        Pending reservations created before ``cutoff``, ordered by ``(created_at, id)``.

        ``after`` is the ``(created_at, id)`` of the last row of the previous
        page; only rows strictly after it are returned.
        """
        ...
