"""FastAPI application initialization and configuration."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, status
from fastapi.middleware.cors import CORSMiddleware

from .core.config import settings
from .core.database import async_session_factory, close_db, engine, init_db
from .core.exceptions import (
    ProblemDetailsException,
    generic_exception_handler,
    problem_details_handler,
)
from .core.middleware import setup_middleware
from .core.observability import (
    SERVICE_NAME,
    instrument_fastapi,
    instrument_sqlalchemy,
    setup_structured_logging,
    setup_tracing,
)
from .routers import availability, health, metrics, reservation, resource
from .services.factory import build_coordinator
from .workers.manager import WorkerManager

# Configure structured logging
setup_structured_logging()

# Configure traditional logging for compatibility
logging.basicConfig(
    level=getattr(logging, settings.log_level),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan context manager.

    Builds the booking coordinator, loads the availability index from
    persisted reservations and runs the hold expiry worker until shutdown.
    """
    logger.info(
        "Starting booking availability engine",
        extra={"environment": settings.environment, "store_backend": settings.store_backend}
    )

    try:
        setup_tracing(SERVICE_NAME)

        if settings.store_backend == "database":
            instrument_sqlalchemy(engine)
            await init_db()
            logger.info("Database initialized successfully")

        coordinator = build_coordinator(settings, async_session_factory)
        await coordinator.load()
        app.state.coordinator = coordinator

        workers = WorkerManager(coordinator, settings)
        await workers.start_all()
        app.state.workers = workers
    except Exception as e:
        logger.error("Failed to initialize application", extra={"error": str(e)}, exc_info=True)
        raise

    logger.info("Application startup complete")

    yield

    logger.info("Shutting down booking availability engine")
    await app.state.workers.stop_all()
    await close_db()
    logger.info("Application shutdown complete")


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        FastAPI: Configured FastAPI application instance
    """
    app = FastAPI(
        title="Booking Availability Engine",
        description="RPC-over-HTTP API for interval-based availability and double-booking-free reservations of cars and tours",
        version="1.0.0",
        debug=settings.debug,
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )

    setup_middleware(app, enable_logging=True)

    instrument_fastapi(app)

    app.add_exception_handler(ProblemDetailsException, problem_details_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    @app.get(
        "/health",
        status_code=status.HTTP_200_OK,
        tags=["Health"],
        summary="Health Check",
        response_model=dict,
    )
    async def health_check():
        """Liveness probe."""
        return {
            "status": "healthy",
            "service": SERVICE_NAME,
            "version": "1.0.0",
            "environment": settings.environment,
        }

    @app.get(
        "/ready",
        status_code=status.HTTP_200_OK,
        tags=["Health"],
        summary="Readiness Check",
        response_model=dict,
    )
    async def readiness_check():
        """
        Readiness probe.

        The service is ready once the availability index has been loaded and
        the background workers are running.
        """
        coordinator = getattr(app.state, "coordinator", None)
        workers = getattr(app.state, "workers", None)
        return {
            "status": "ready" if coordinator is not None else "starting",
            "service": SERVICE_NAME,
            "checks": {
                "availability_index": "ok" if coordinator is not None else "loading",
                "workers": workers.get_worker_status() if workers is not None else {},
            },
        }

    @app.get(
        "/info",
        status_code=status.HTTP_200_OK,
        tags=["Info"],
        summary="Service Information",
        response_model=dict,
    )
    async def service_info():
        """Service information endpoint."""
        return {
            "service": SERVICE_NAME,
            "version": "1.0.0",
            "description": "Availability and double-booking prevention for car rentals and tours",
            "environment": settings.environment,
            "store_backend": settings.store_backend,
            "hold_duration_seconds": settings.hold_duration_seconds,
            "endpoints": {
                "health": "/health",
                "readiness": "/ready",
                "info": "/info",
                "metrics": "/metrics",
                "docs": "/docs" if settings.debug else None,
            },
        }

    app.include_router(health.router)
    app.include_router(resource.router)
    app.include_router(availability.router)
    app.include_router(reservation.router)
    app.include_router(metrics.router)

    logger.info("FastAPI application created and configured")

    return app


# Create the application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "booking_engine.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
        access_log=True,
    )
