"""FastAPI routers package."""

from .availability import router as availability_router
from .health import router as health_router
from .metrics import router as metrics_router
from .reservation import router as reservation_router
from .resource import router as resource_router

__all__ = [
    "availability_router",
    "health_router",
    "metrics_router",
    "reservation_router",
    "resource_router",
]
