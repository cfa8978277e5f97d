"""SQLAlchemy-backed resource catalog."""

import logging
from datetime import date

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..core.exceptions import ConflictError, NotFoundError
from ..engine.domain import Granularity, Resource, ResourceKind
from ..models.resource import ResourceRecord

logger = logging.getLogger(__name__)


def _to_domain(record: ResourceRecord) -> Resource:
    return Resource(
        id=record.id,
        kind=ResourceKind(record.kind),
        name=record.name,
        granularity=Granularity(record.granularity),
        weekdays=frozenset(record.weekdays),
        dates=frozenset(date.fromisoformat(value) for value in record.dates),
        slot_templates=tuple(record.slot_templates),
        is_available=record.is_available,
    )


class SqlAlchemyResourceCatalog:
    """Resource catalog stored in the ``resources`` table."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def create_resource(self, resource: Resource) -> Resource:
        """
        Register a new resource.

        Raises:
            ConflictError: If a resource with the same ID already exists
        """
        record = ResourceRecord(
            id=resource.id,
            kind=resource.kind.value,
            name=resource.name,
            granularity=resource.granularity.value,
            weekdays=sorted(resource.weekdays),
            dates=[day.isoformat() for day in sorted(resource.dates)],
            slot_templates=list(resource.slot_templates),
            is_available=resource.is_available,
        )

        async with self.session_factory() as db:
            db.add(record)
            try:
                await db.commit()
            except IntegrityError as e:
                await db.rollback()
                logger.warning(
                    "Resource creation failed - ID already exists",
                    extra={"resource_id": resource.id}
                )
                raise ConflictError(
                    detail=f"Resource with ID '{resource.id}' already exists",
                    conflicting_resource={"id": resource.id}
                ) from e

        logger.info(
            "Resource created successfully",
            extra={"resource_id": resource.id, "kind": resource.kind.value, "granularity": resource.granularity.value}
        )
        return resource

    async def get_resource(self, resource_id: str) -> Resource:
        """
        Get resource by ID.

        Raises:
            NotFoundError: If the resource is unknown
        """
        async with self.session_factory() as db:
            stmt = select(ResourceRecord).where(ResourceRecord.id == resource_id)
            result = await db.execute(stmt)
            record = result.scalar_one_or_none()

        if record is None:
            logger.warning("Resource not found", extra={"resource_id": resource_id})
            raise NotFoundError(resource_type="resource", resource_id=resource_id)
        return _to_domain(record)
