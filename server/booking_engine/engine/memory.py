"""In-process catalog and reservation store, used for tests and the memory backend."""

import asyncio
from collections.abc import Iterable
from datetime import datetime
from uuid import UUID

from ..core.exceptions import ConflictError, NotFoundError
from .domain import Reservation, ReservationStatus, Resource


class InMemoryResourceCatalog:
    """Resource catalog backed by a dict."""

    def __init__(self, resources: Iterable[Resource] = ()):
        self._resources = {resource.id: resource for resource in resources}

    async def create_resource(self, resource: Resource) -> Resource:
        """
        Register a new resource.

        Raises:
            ConflictError: If a resource with the same ID already exists
        """
        if resource.id in self._resources:
            raise ConflictError(
                detail=f"Resource with ID '{resource.id}' already exists",
                conflicting_resource={"id": resource.id}
            )
        self._resources[resource.id] = resource
        return resource

    async def get_resource(self, resource_id: str) -> Resource:
        resource = self._resources.get(resource_id)
        if resource is None:
            raise NotFoundError(resource_type="resource", resource_id=resource_id)
        return resource


class InMemoryReservationStore:
    """
    Reservation store backed by a dict.

    Every call yields to the event loop once, like a real I/O round trip
    would, so concurrent callers interleave the way they do against a database.
    """

    def __init__(self):
        self._reservations: dict[UUID, Reservation] = {}

    async def add(self, reservation: Reservation) -> None:
        await asyncio.sleep(0)
        if reservation.id in self._reservations:
            raise ValueError(f"Reservation {reservation.id} already stored")
        self._reservations[reservation.id] = reservation

    async def update(self, reservation: Reservation) -> None:
        await asyncio.sleep(0)
        if reservation.id not in self._reservations:
            raise NotFoundError(resource_type="reservation", resource_id=str(reservation.id))
        self._reservations[reservation.id] = reservation

    async def get(self, reservation_id: UUID) -> Reservation | None:
        await asyncio.sleep(0)
        return self._reservations.get(reservation_id)

    async def list_by_resource(
        self,
        resource_id: str,
        statuses: Iterable[ReservationStatus] | None = None,
    ) -> list[Reservation]:
        await asyncio.sleep(0)
        wanted = set(statuses) if statuses is not None else None
        found = [
            reservation
            for reservation in self._reservations.values()
            if reservation.resource_id == resource_id
            and (wanted is None or reservation.status in wanted)
        ]
        return sorted(found, key=lambda r: (r.interval, r.created_at))

    async def list_by_customer(
        self,
        customer_ref: str,
        statuses: Iterable[ReservationStatus] | None = None,
    ) -> list[Reservation]:
        await asyncio.sleep(0)
        wanted = set(statuses) if statuses is not None else None
        found = [
            reservation
            for reservation in self._reservations.values()
            if reservation.customer_ref == customer_ref
            and (wanted is None or reservation.status in wanted)
        ]
        return sorted(found, key=lambda r: (r.interval.start, r.created_at))

    async def list_active(self) -> list[Reservation]:
        await asyncio.sleep(0)
        return [reservation for reservation in self._reservations.values() if reservation.is_active]

    async def list_pending_created_before(
        self,
        cutoff: datetime,
        limit: int = 100,
        after: tuple[datetime, UUID] | None = None,
    ) -> list[Reservation]:
        await asyncio.sleep(0)
        pending = [
            reservation
            for reservation in self._reservations.values()
            if reservation.status == ReservationStatus.PENDING
            and reservation.created_at < cutoff
            and (after is None or (reservation.created_at, reservation.id) > after)
        ]
        return sorted(pending, key=lambda r: (r.created_at, r.id))[:limit]
