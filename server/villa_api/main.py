"""FastAPI application initialization and configuration."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.exceptions import HTTPException as StarletteHTTPException

from .core.config import settings
from .core.database import check_db, close_db, engine, get_db, init_db
from .core.exceptions import (
    ProblemDetailsException,
    generic_exception_handler,
    http_exception_handler,
    problem_details_handler,
    validation_exception_handler,
)
from .core.middleware import setup_middleware
from .core.observability import (
    SERVICE_NAME,
    SERVICE_VERSION,
    instrument_fastapi,
    instrument_sqlalchemy,
    setup_metrics,
    setup_structured_logging,
    setup_tracing,
)
from .routers import (
    admin_router,
    auth_router,
    blog_router,
    booking_router,
    campaign_router,
    chat_router,
    contact_router,
    faq_router,
    health_router,
    inventory_router,
    location_router,
    metrics_router,
    promotion_router,
)
from .schemas.health import HealthStatus, ReadinessResponse
from .workers.manager import worker_manager

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

    Sets up observability and the schema, and runs the background workers
    while the application is serving.
    """
    logger.info("Starting Villa booking API", extra={"environment": settings.environment, "debug": settings.debug})

    try:
        setup_tracing()
        setup_metrics()
        instrument_sqlalchemy(engine)

        # Production schemas are managed by Alembic
        if not settings.is_production:
            await init_db()
            logger.info("Database tables ensured")

        if settings.enable_workers:
            await worker_manager.start_all()
    except Exception as e:
        logger.error("Failed to initialize application", extra={"error": str(e)}, exc_info=True)
        raise

    logger.info("Application startup complete")

    yield

    logger.info("Shutting down Villa booking API")

    try:
        if settings.enable_workers:
            await worker_manager.stop_all()
        await close_db()
    except Exception as e:
        logger.error("Error during application cleanup", extra={"error": str(e)}, exc_info=True)

    logger.info("Application shutdown complete")


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        FastAPI: Configured FastAPI application instance
    """
    app = FastAPI(
        title="Villa Ingrosso Booking API",
        description="Bookings, guest accounts, content and back office for a holiday villa",
        version=SERVICE_VERSION,
        debug=settings.debug,
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )

    setup_middleware(app, enable_logging=True)

    instrument_fastapi(app)

    app.add_exception_handler(ProblemDetailsException, problem_details_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    @app.get(
        "/health",
        status_code=status.HTTP_200_OK,
        tags=["Health"],
        summary="Health Check",
        response_model=dict,
    )
    async def health_check():
        return {
            "status": HealthStatus.HEALTHY.value,
            "service": SERVICE_NAME,
            "version": SERVICE_VERSION,
            "environment": settings.environment,
            "debug": settings.debug,
        }

    @app.get(
        "/ready",
        tags=["Health"],
        summary="Readiness Check",
        description="Check that the database answers queries",
        response_model=ReadinessResponse,
    )
    async def readiness_check(db: AsyncSession = Depends(get_db)) -> JSONResponse:
        """
        Readiness check that runs a trivial query against the database.

        Returns 503 with ``status: degraded`` when the database is unreachable.
        """
        try:
            database_ok = await check_db(db)
        except Exception as e:
            logger.warning("Readiness database check failed", extra={"error": str(e)})
            database_ok = False

        response_data = ReadinessResponse(
            status=HealthStatus.READY if database_ok else HealthStatus.DEGRADED,
            service=SERVICE_NAME,
            checks={"database": "ok" if database_ok else "error"},
        )
        return JSONResponse(
            status_code=status.HTTP_200_OK if database_ok else status.HTTP_503_SERVICE_UNAVAILABLE,
            content=response_data.model_dump(mode="json"),
        )

    @app.get(
        "/info",
        status_code=status.HTTP_200_OK,
        tags=["Info"],
        summary="Service Information",
        response_model=dict,
    )
    async def service_info():
        return {
            "service": SERVICE_NAME,
            "version": SERVICE_VERSION,
            "description": "Booking and back-office API for Villa Ingrosso",
            "environment": settings.environment,
            "debug": settings.debug,
            "features": {
                "session_auth": True,
                "jwt_auth": True,
                "email": bool(settings.sendgrid_api_key),
                "sms": bool(settings.bird_api_key),
                "distance": bool(settings.google_maps_api_key),
                "workers": settings.enable_workers,
            },
            "endpoints": {
                "health": "/health",
                "readiness": "/ready",
                "info": "/info",
                "metrics": "/metrics",
                "docs": "/docs" if settings.debug else None,
            },
        }

    app.include_router(health_router)
    app.include_router(auth_router)
    app.include_router(booking_router)
    app.include_router(admin_router)
    app.include_router(contact_router)
    app.include_router(chat_router)
    app.include_router(blog_router)
    app.include_router(faq_router)
    app.include_router(inventory_router)
    app.include_router(promotion_router)
    app.include_router(campaign_router)
    app.include_router(location_router)
    app.include_router(metrics_router)

    logger.info("FastAPI application created and configured")

    return app


# Create the application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "villa_api.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
        access_log=True,
    )
