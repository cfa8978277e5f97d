"""Resource router for catalog operations."""

import logging
from uuid import uuid4

from fastapi import APIRouter, HTTPException

from ..core.dependencies import CoordinatorDependency
from ..core.exceptions import ProblemDetailsException
from ..engine import domain
from ..engine.coordinator import BookingCoordinator
from ..schemas.common import PROBLEM_RESPONSES
from ..schemas.resource import CreateResourceRequest, GetResourceRequest, Resource

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/resource", tags=["resource"], responses=PROBLEM_RESPONSES)


def _convert_resource_to_schema(resource: domain.Resource) -> Resource:
    """Convert domain resource to schema."""
    return Resource(
        id=resource.id,
        kind=resource.kind,
        name=resource.name,
        granularity=resource.granularity,
        weekdays=sorted(resource.weekdays),
        dates=sorted(resource.dates),
        slot_templates=list(resource.slot_templates),
        is_available=resource.is_available,
    )


@router.post("/create", response_model=Resource)
async def create_resource(
    request: CreateResourceRequest,
    coordinator: BookingCoordinator = CoordinatorDependency,
) -> Resource:
    """Register a bookable car or tour with its operating calendar."""
    resource = domain.Resource(
        id=request.id or uuid4().hex,
        kind=request.kind,
        granularity=request.granularity,
        name=request.name,
        weekdays=frozenset(request.weekdays),
        dates=frozenset(request.dates),
        slot_templates=tuple(request.slot_templates),
        is_available=request.is_available,
    )

    try:
        created = await coordinator.catalog.create_resource(resource)
    except ProblemDetailsException:
        raise
    except Exception as e:
        logger.error(
            "Unexpected error in resource creation",
            extra={"resource_id": resource.id, "error": str(e)},
            exc_info=True
        )
        raise HTTPException(status_code=500, detail="Internal server error") from e

    logger.info(
        "Resource created successfully",
        extra={"resource_id": created.id, "kind": created.kind.value, "granularity": created.granularity.value}
    )
    return _convert_resource_to_schema(created)


@router.post("/get", response_model=Resource)
async def get_resource(
    request: GetResourceRequest,
    coordinator: BookingCoordinator = CoordinatorDependency,
) -> Resource:
    """Get a resource by ID."""
    resource = await coordinator.catalog.get_resource(request.resource_id)
    return _convert_resource_to_schema(resource)
